"""Tests for edge paths and piece outlines."""

from __future__ import annotations

import random

import pytest

from jigsaw_madness.geometry import (
    BLANK,
    FLAT,
    TAB,
    EdgeVariation,
    TabSide,
    edge_path,
    flatten_path,
    max_protrusion,
    piece_polygon,
)

VARIATION = EdgeVariation(neck_width=0.5, head_width=0.85, head_height=0.95, neck_depth=0.15)
FLAT_TABS = {side: TabSide(FLAT) for side in ("top", "right", "bottom", "left")}


def test_flat_side_is_a_straight_line() -> None:
    """A flat side is a single segment to the end point."""
    assert edge_path(0, 0, 100, 0, "top", TabSide(FLAT), 20) == [("L", (100, 0))]


def test_flat_piece_polygon_is_the_cell() -> None:
    """With no tabs the outline is the padded cell rectangle."""
    poly = piece_polygon(100, 80, FLAT_TABS, 20, 26)
    assert poly == [(26, 26), (126, 26), (126, 106), (26, 106)]


def test_tab_and_blank_mirror_each_other() -> None:
    """Inverting a side mirrors its outline across the shared edge."""
    tab = flatten_path([("M", (0, 0))] + edge_path(0, 0, 100, 0, "bottom", TabSide(TAB, VARIATION), 20))
    blank = flatten_path([("M", (0, 0))] + edge_path(0, 0, 100, 0, "bottom", TabSide(BLANK, VARIATION), 20))
    assert len(tab) == len(blank)
    for (tx, ty), (bx, by) in zip(tab, blank):
        assert tx == pytest.approx(bx)
        assert ty == pytest.approx(-by)
    assert max(y for _, y in tab) > 0


@pytest.mark.parametrize("side", ["top", "right", "bottom", "left"])
def test_tab_points_outward(side) -> None:
    """A tab leaves the cell on its own side; a blank cuts into it."""
    tabs = dict(FLAT_TABS)
    tabs[side] = TabSide(TAB, VARIATION)
    poly = piece_polygon(100, 100, tabs, 20, 26)
    xs = [x for x, _ in poly]
    ys = [y for _, y in poly]
    beyond = {
        "top": min(ys) < 26,
        "bottom": max(ys) > 126,
        "left": min(xs) < 26,
        "right": max(xs) > 126,
    }
    assert beyond[side]
    assert sum(beyond.values()) == 1

    tabs[side] = TabSide(BLANK, VARIATION)
    poly = piece_polygon(100, 100, tabs, 20, 26)
    assert all(26 - 1e-9 <= x <= 126 + 1e-9 and 26 - 1e-9 <= y <= 126 + 1e-9 for x, y in poly)


def test_protrusion_fits_in_padding() -> None:
    """No sampled point of any random tab reaches past the bitmap padding."""
    rng = random.Random(11)
    tab_size = 20
    pad = max_protrusion(tab_size)
    for _ in range(50):
        tabs = {side: TabSide(TAB, EdgeVariation.random(rng)) for side in FLAT_TABS}
        poly = piece_polygon(100, 100, tabs, tab_size, pad)
        for x, y in poly:
            assert -1e-9 <= x <= 100 + 2 * pad + 1e-9
            assert -1e-9 <= y <= 100 + 2 * pad + 1e-9


def test_variation_ranges() -> None:
    """Random variations stay inside their shape ranges."""
    rng = random.Random(0)
    for _ in range(100):
        v = EdgeVariation.random(rng)
        assert 0.4 <= v.neck_width <= 0.6
        assert 0.7 <= v.head_width <= 1.0
        assert 0.8 <= v.head_height <= 1.1
        assert 0.1 <= v.neck_depth <= 0.2


def test_tab_side_to_dict() -> None:
    assert TabSide(FLAT).to_dict() == {"direction": 0}
    d = TabSide(TAB, VARIATION).to_dict()
    assert d["direction"] == 1
    assert d["variation"]["headWidth"] == 0.85


def test_unknown_command_rejected() -> None:
    with pytest.raises(ValueError):
        flatten_path([("M", (0, 0)), ("Q", (1, 1))])
