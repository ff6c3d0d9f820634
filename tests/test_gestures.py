"""Tests for the pointer gesture state machine, driven through the engine."""

from __future__ import annotations

import pytest

from jigsaw_madness.gestures import DRAGGING, HOLDING, IDLE, PANNING, PINCHING, SELECTING

from conftest import place, screen_center, spread


@pytest.fixture
def board(engine):
    """Engine with one piece on screen and the rest parked far away."""
    spread(engine)
    piece = engine.by_id[0]
    place(piece, 200, 200)
    return engine, piece


def test_pinch_returns_to_start_without_drift(board) -> None:
    """Zooming to 2x and back in one pinch restores the camera."""
    engine, _ = board
    cam = engine.camera
    cam.x, cam.y, cam.scale = 0.0, 0.0, 1.0

    engine.press(1, 350, 300, now=0.0)
    engine.press(2, 450, 300, now=0.0)
    assert engine.gestures.state == PINCHING
    for step in range(1, 51):
        spread_px = 50 + step
        engine.move(1, 400 - spread_px, 300, now=step * 0.01)
        engine.move(2, 400 + spread_px, 300, now=step * 0.01)
    assert cam.scale == pytest.approx(2.0)
    assert cam.screen_to_world(400, 300) == pytest.approx((400, 300))
    for step in range(49, -1, -1):
        spread_px = 50 + step
        engine.move(1, 400 - spread_px, 300, now=1.0)
        engine.move(2, 400 + spread_px, 300, now=1.0)

    assert cam.scale == pytest.approx(1.0)
    assert cam.x == pytest.approx(0.0, abs=1e-9)
    assert cam.y == pytest.approx(0.0, abs=1e-9)


def test_pinch_follows_centroid(board) -> None:
    """Moving both fingers together pans by the same amount."""
    engine, _ = board
    cam = engine.camera
    x0, y0 = cam.x, cam.y
    engine.press("a", 300, 300, now=0.0)
    engine.press("b", 500, 300, now=0.0)
    engine.move("a", 340, 320, now=0.1)
    engine.move("b", 540, 320, now=0.1)
    assert cam.scale == pytest.approx(1.0)
    assert (cam.x, cam.y) == pytest.approx((x0 + 40, y0 + 20))


def test_pinch_state_is_cleared_on_release(board) -> None:
    """A finished pinch leaves no anchor behind for the next gesture."""
    engine, _ = board
    engine.press(1, 300, 300, now=0.0)
    engine.press(2, 500, 300, now=0.0)
    engine.move(2, 600, 300, now=0.1)
    engine.release(2, 600, 300, now=0.2)
    assert engine.gestures.state == IDLE
    assert engine.gestures.pinch is None
    engine.release(1, 300, 300, now=0.3)
    scale = engine.camera.scale

    engine.press(3, 100, 100, now=1.0)
    engine.move(3, 120, 100, now=1.1)
    assert engine.gestures.state == PANNING
    assert engine.camera.scale == scale


def test_hold_then_drag(board) -> None:
    """Holding past the delay picks the piece up and moves it with the pointer."""
    engine, piece = board
    sx, sy = screen_center(engine, piece)
    engine.press(0, sx, sy, now=0.0)
    assert engine.gestures.state == HOLDING
    engine.update(now=0.1)
    assert engine.gestures.state == HOLDING
    engine.update(now=0.25)
    assert engine.gestures.state == DRAGGING
    assert piece.is_selected

    engine.move(0, sx + 20, sy + 10, now=0.3)
    assert (piece.current_x, piece.current_y) == pytest.approx((220, 210))
    engine.release(0, sx + 20, sy + 10, now=0.35)
    assert engine.gestures.state == IDLE
    assert piece.is_selected


def test_drag_distance_is_in_world_units(board) -> None:
    """At 2x zoom a 40px pointer move drags the piece 20 world px."""
    engine, piece = board
    engine.camera.set_scale(2.0)
    sx, sy = screen_center(engine, piece)
    engine.press(0, sx, sy, now=0.0, alt=True)
    assert engine.gestures.state == DRAGGING
    engine.move(0, sx + 40, sy, now=0.05)
    assert piece.current_x == pytest.approx(220)


def test_movement_before_delay_pans_instead(board) -> None:
    """Moving during the hold cancels it; the camera pans and the piece stays."""
    engine, piece = board
    x0 = engine.camera.x
    sx, sy = screen_center(engine, piece)
    engine.press(0, sx, sy, now=0.0)
    engine.move(0, sx + 15, sy, now=0.05)
    assert engine.gestures.state == PANNING
    assert engine.camera.x == pytest.approx(x0 + 15)
    engine.update(now=0.5)
    assert engine.gestures.state == PANNING
    assert not piece.is_selected
    assert (piece.current_x, piece.current_y) == (200, 200)


def test_small_jitter_keeps_the_hold(board) -> None:
    """Movement inside the tolerance does not cancel the hold."""
    engine, piece = board
    sx, sy = screen_center(engine, piece)
    engine.press(0, sx, sy, now=0.0)
    engine.move(0, sx + 3, sy - 2, now=0.05)
    assert engine.gestures.state == HOLDING
    engine.update(now=0.3)
    assert engine.gestures.state == DRAGGING


def test_tap_on_empty_space_clears_selection(board) -> None:
    engine, piece = board
    engine.select_group(piece)
    engine.press(0, 20, 20, now=0.0)
    engine.release(0, 20, 20, now=0.05)
    assert engine.selected == []
    assert not piece.is_selected


def test_tap_on_piece_does_not_drag(board) -> None:
    """A quick press and release on a piece moves and selects nothing."""
    engine, piece = board
    sx, sy = screen_center(engine, piece)
    engine.press(0, sx, sy, now=0.0)
    engine.release(0, sx, sy, now=0.05)
    engine.update(now=1.0)
    assert engine.gestures.state == IDLE
    assert not piece.is_selected
    assert (piece.current_x, piece.current_y) == (200, 200)


def test_pan_at_zoom_changes_offset_only(board) -> None:
    engine, piece = board
    engine.camera.set_scale(2.0)
    x0, y0 = engine.camera.x, engine.camera.y
    engine.press(0, 20, 20, now=0.0)
    engine.move(0, 50, 35, now=0.1)
    assert engine.camera.scale == 2.0
    assert (engine.camera.x, engine.camera.y) == (x0 + 30, y0 + 15)
    assert (piece.current_x, piece.current_y) == (200, 200)


def test_edge_panning_scrolls_and_keeps_piece_under_pointer(board) -> None:
    """Dragging into the edge band scrolls every frame until the pointer leaves it."""
    engine, piece = board
    sx, sy = screen_center(engine, piece)
    engine.press(0, sx, sy, now=0.0, alt=True)
    engine.move(0, 790, sy, now=0.1)
    assert engine.gestures.edge_panning
    assert engine.mode_label() == "Edge panning"

    grab = engine.camera.screen_to_world(790, sy)
    offset = (grab[0] - piece.current_x, grab[1] - piece.current_y)
    x0 = engine.camera.x
    engine.update(now=0.2)
    engine.update(now=0.3)
    assert engine.camera.x == pytest.approx(x0 - 2 * engine.config.edge_pan_speed)
    grab = engine.camera.screen_to_world(790, sy)
    assert (grab[0] - piece.current_x, grab[1] - piece.current_y) == pytest.approx(offset)

    engine.move(0, 400, sy, now=0.4)
    assert not engine.gestures.edge_panning
    x1 = engine.camera.x
    engine.update(now=0.5)
    assert engine.camera.x == x1
    engine.release(0, 400, sy, now=0.6)
    assert engine.gestures.edge_velocity == (0.0, 0.0)


def test_shift_lasso_selects_pieces(board) -> None:
    """A shift-drag box selects pieces whose centres it covers."""
    engine, piece = board
    sx, sy = screen_center(engine, piece)
    engine.press(0, sx - 50, sy - 50, now=0.0, shift=True)
    assert engine.gestures.state == SELECTING
    engine.move(0, sx + 50, sy + 50, now=0.1)
    assert engine.gestures.lasso_rect() == pytest.approx((piece.center()[0] - 50, piece.center()[1] - 50, 100, 100))
    engine.release(0, sx + 50, sy + 50, now=0.2)
    assert engine.selected == [piece]
    assert engine.gestures.lasso_rect() is None


def test_wheel_zooms_around_cursor(board) -> None:
    engine, _ = board
    anchor = engine.camera.screen_to_world(300, 200)
    engine.wheel(300, 200, 2)
    assert engine.camera.scale == pytest.approx(1.21)
    assert engine.camera.screen_to_world(300, 200) == pytest.approx(anchor)
