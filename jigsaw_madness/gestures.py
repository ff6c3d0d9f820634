"""Pointer gesture state machine.

Input is plain screen coordinates, pointer ids and timestamps, so mouse,
touch and synthetic test events all drive it the same way. The machine moves
the camera itself and calls back into the engine for everything that touches
pieces.
"""

import logging
import math

from . import settings
from .camera import clamp

logger = logging.getLogger(__name__)

IDLE = "idle"
HOLDING = "holding"
PANNING = "panning"
SELECTING = "selecting"
DRAGGING = "dragging"
PINCHING = "pinching"


class PinchStart:
    """Camera and finger state captured when a pinch begins."""

    def __init__(self, scale, distance, anchor):
        self.scale = scale
        self.distance = distance
        self.anchor = anchor


def _centroid_and_distance(a, b):
    cx = (a[0] + b[0]) / 2
    cy = (a[1] + b[1]) / 2
    return (cx, cy), math.hypot(b[0] - a[0], b[1] - a[1])


class GestureMachine:
    def __init__(self, engine, camera, config):
        self.engine = engine
        self.camera = camera
        self.config = config
        self.state = IDLE
        self.pointers = {}
        self.primary = None
        self.press_pos = None
        self.last_screen = None
        self.moved = False
        self.hold_target = None
        self.hold_deadline = None
        self.lasso_start = None
        self.lasso_end = None
        self.pinch = None
        self.edge_velocity = (0.0, 0.0)

    # --- Input ---
    def press(self, pointer_id, x, y, now, shift=False, alt=False):
        self.pointers[pointer_id] = (x, y)
        if len(self.pointers) == 2 and self.state in (IDLE, HOLDING, PANNING):
            self._begin_pinch()
            return
        if self.state != IDLE or len(self.pointers) > 1:
            return

        self.primary = pointer_id
        self.press_pos = (x, y)
        self.last_screen = (x, y)
        self.moved = False
        wx, wy = self.camera.screen_to_world(x, y)

        if shift:
            self.state = SELECTING
            self.lasso_start = self.lasso_end = (wx, wy)
            return
        target = self.engine.target_at(wx, wy)
        if target is None:
            self.state = PANNING
        elif alt:
            self._begin_drag(target)
        else:
            self.state = HOLDING
            self.hold_target = target
            self.hold_deadline = now + self.config.hold_delay

    def move(self, pointer_id, x, y, now):
        if pointer_id not in self.pointers:
            return
        self.pointers[pointer_id] = (x, y)
        if self.state == PINCHING:
            self._update_pinch()
            return
        if self.state == IDLE or pointer_id != self.primary:
            return

        if not self.moved:
            px, py = self.press_pos
            tol = self.config.move_tolerance
            self.moved = abs(x - px) > tol or abs(y - py) > tol

        if self.state == HOLDING and self.moved:
            self._clear_hold()
            self.state = PANNING

        lx, ly = self.last_screen
        if self.state == PANNING:
            self.camera.pan(x - lx, y - ly)
        elif self.state == DRAGGING:
            before = self.camera.screen_to_world(lx, ly)
            after = self.camera.screen_to_world(x, y)
            self.engine.drag_by(after[0] - before[0], after[1] - before[1], now)
            self._update_edge_pan(x, y)
        elif self.state == SELECTING:
            self.lasso_end = self.camera.screen_to_world(x, y)
        self.last_screen = (x, y)

    def release(self, pointer_id, x, y, now):
        self.pointers.pop(pointer_id, None)
        if self.state == PINCHING:
            self._end_pinch()
            return
        if pointer_id != self.primary:
            return

        if self.state == PANNING and not self.moved:
            self.engine.clear_selection(now)
        elif self.state == DRAGGING:
            self.edge_velocity = (0.0, 0.0)
            self.engine.end_drag(now)
        elif self.state == SELECTING:
            self.lasso_end = self.camera.screen_to_world(x, y)
            (x0, y0), (x1, y1) = self.lasso_start, self.lasso_end
            self.engine.select_in_box(x0, y0, x1, y1, now)
        self._reset()

    def wheel(self, x, y, steps):
        self.camera.zoom_at(x, y, settings.WHEEL_ZOOM_STEP ** steps)

    def tick(self, now):
        """Per-frame work: fire a due hold and apply edge panning."""
        if self.state == HOLDING and now >= self.hold_deadline:
            target = self.hold_target
            self._clear_hold()
            self._begin_drag(target)

        if self.state == DRAGGING and self.edge_velocity != (0.0, 0.0):
            lx, ly = self.last_screen
            before = self.camera.screen_to_world(lx, ly)
            self.camera.pan(*self.edge_velocity)
            after = self.camera.screen_to_world(lx, ly)
            self.engine.drag_by(after[0] - before[0], after[1] - before[1], now)

    def cancel(self, now):
        if self.state == DRAGGING:
            self.engine.end_drag(now)
        self.pointers.clear()
        self.pinch = None
        self._reset()

    # --- Helpers ---
    @property
    def edge_panning(self):
        return self.state == DRAGGING and self.edge_velocity != (0.0, 0.0)

    def lasso_rect(self):
        if self.state != SELECTING:
            return None
        (x0, y0), (x1, y1) = self.lasso_start, self.lasso_end
        return (min(x0, x1), min(y0, y1), abs(x1 - x0), abs(y1 - y0))

    def _begin_drag(self, target):
        self.state = DRAGGING
        self.edge_velocity = (0.0, 0.0)
        self.engine.begin_drag(target)

    def _clear_hold(self):
        self.hold_target = None
        self.hold_deadline = None

    def _reset(self):
        self.state = IDLE
        self.primary = None
        self.press_pos = None
        self.last_screen = None
        self.moved = False
        self.lasso_start = self.lasso_end = None
        self.edge_velocity = (0.0, 0.0)
        self._clear_hold()

    def _update_edge_pan(self, x, y):
        threshold = self.config.edge_pan_threshold
        speed = self.config.edge_pan_speed
        width, height = self.engine.viewport
        vx = vy = 0.0
        if x < threshold:
            vx = speed
        elif x > width - threshold:
            vx = -speed
        if y < threshold:
            vy = speed
        elif y > height - threshold:
            vy = -speed
        self.edge_velocity = (vx, vy)

    def _begin_pinch(self):
        self._clear_hold()
        a, b = list(self.pointers.values())[:2]
        centroid, distance = _centroid_and_distance(a, b)
        self.pinch = PinchStart(self.camera.scale, max(distance, 1.0),
                                self.camera.screen_to_world(*centroid))
        self.state = PINCHING
        logger.debug("pinch started at %s, scale %.3f", centroid, self.camera.scale)

    def _update_pinch(self):
        if len(self.pointers) < 2 or self.pinch is None:
            return
        a, b = list(self.pointers.values())[:2]
        (cx, cy), distance = _centroid_and_distance(a, b)
        start = self.pinch
        # always derived from the captured start, never from the previous frame
        self.camera.scale = clamp(start.scale * distance / start.distance,
                                  settings.MIN_SCALE, settings.MAX_SCALE)
        ax, ay = start.anchor
        self.camera.x = cx - ax * self.camera.scale
        self.camera.y = cy - ay * self.camera.scale

    def _end_pinch(self):
        self.pinch = None
        self._reset()
