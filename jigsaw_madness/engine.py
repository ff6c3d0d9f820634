"""Live puzzle state: pieces, groups, selection, camera, input and sync."""

import logging
import math
import time

from .camera import Camera
from .gestures import DRAGGING, HOLDING, PANNING, PINCHING, SELECTING, GestureMachine
from .grouping import Grouping
from .remote import RemoteSelections
from .render import Renderer
from .settings import EngineConfig
from .snapping import snap_selection
from .timing import Debouncer, Throttle

logger = logging.getLogger(__name__)

MODE_LABELS = {
    DRAGGING: "Moving piece",
    PINCHING: "Zooming",
    PANNING: "Panning",
    SELECTING: "Selecting",
    HOLDING: "Hold to move",
}


def _as_int(value):
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value):
    if isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


class PuzzleEngine:
    """Owns one puzzle session.

    Outbound callbacks:
      on_piece_move_end(pieces)                    debounced after a release
      on_selection_change(pieces, reference_selected)
      on_drag_move(pieces)                         throttled while dragging
      on_complete()                                once, when every piece is locked
    """

    def __init__(self, viewport=(1280, 800), config=None, on_piece_move_end=None,
                 on_selection_change=None, on_drag_move=None, on_complete=None,
                 clock=time.monotonic):
        self.viewport = viewport
        self.config = config or EngineConfig()
        self.clock = clock
        self.on_selection_change = on_selection_change
        self.on_complete = on_complete
        self.move_end = Debouncer(self.config.move_end_debounce, on_piece_move_end)
        self.drag_move = Throttle(self.config.drag_broadcast_interval, on_drag_move)

        self.camera = Camera()
        self.gestures = GestureMachine(self, self.camera, self.config)
        self.grouping = Grouping()
        self.remote = RemoteSelections()
        self.renderer = None

        self.pieces = []
        self.by_id = {}
        self.by_grid = {}
        self.pitch = (0.0, 0.0)
        self.selected = []
        self.reference = None
        self.piece_count = None
        self.shape_seed = None
        self.placed_pieces = 0
        self.max_z = 0
        self.completion_notified = False

    # --- Setup ---
    def set_pieces(self, pieces, piece_count=None, shape_seed=None, reference=None):
        self.gestures.cancel(self.clock())
        self.pieces = list(pieces)
        self.by_id = {p.id: p for p in self.pieces}
        self.by_grid = {p.grid_pos: p for p in self.pieces}
        self.grouping.reset(self.pieces)
        self.pitch = (self.pieces[0].cell_width, self.pieces[0].cell_height) if self.pieces else (0.0, 0.0)
        self.selected = []
        self.reference = reference
        self.piece_count = piece_count if piece_count is not None else len(self.pieces)
        self.shape_seed = shape_seed
        self.placed_pieces = sum(1 for p in self.pieces if p.is_placed)
        self.max_z = max((p.z_index for p in self.pieces), default=0)
        self.completion_notified = False
        self.remote = RemoteSelections()
        self.renderer = None
        self.move_end.cancel()
        self.drag_move.cancel()
        self.reset_view()

    def resize(self, width, height):
        self.viewport = (width, height)

    def bounds(self):
        """Bounding box of the solved puzzle in world space."""
        if not self.pieces:
            return (0.0, 0.0, 0.0, 0.0)
        return (min(p.correct_x for p in self.pieces),
                min(p.correct_y for p in self.pieces),
                max(p.correct_x + p.width for p in self.pieces),
                max(p.correct_y + p.height for p in self.pieces))

    def reset_view(self):
        self.camera.set_scale(1.0)
        self.camera.center_on(self.bounds(), self.viewport)

    # --- Input (forwarded to the gesture machine) ---
    def press(self, pointer_id, x, y, now=None, shift=False, alt=False):
        self.gestures.press(pointer_id, x, y, self._now(now), shift=shift, alt=alt)

    def move(self, pointer_id, x, y, now=None):
        self.gestures.move(pointer_id, x, y, self._now(now))

    def release(self, pointer_id, x, y, now=None):
        self.gestures.release(pointer_id, x, y, self._now(now))

    def wheel(self, x, y, steps):
        self.gestures.wheel(x, y, steps)

    def _now(self, now):
        return self.clock() if now is None else now

    # --- Hit testing ---
    def piece_at(self, wx, wy):
        for piece in sorted(self.pieces, key=lambda p: p.z_index, reverse=True):
            if not piece.is_locked and piece.contains(wx, wy):
                return piece
        return None

    def target_at(self, wx, wy):
        piece = self.piece_at(wx, wy)
        if piece is not None:
            return piece
        if self.reference is not None and self.reference.contains(wx, wy):
            return self.reference
        return None

    # --- Selection ---
    @property
    def reference_selected(self):
        return self.reference is not None and self.reference.is_selected

    def _with_groups(self, pieces):
        ids = set()
        for p in pieces:
            ids |= self.grouping.members(p.group_id)
        chosen = [self.by_id[pid] for pid in ids if not self.by_id[pid].is_locked]
        return sorted(chosen, key=lambda p: p.z_index)

    def _set_selection(self, pieces, reference_selected):
        before = ({p.id for p in self.selected}, self.reference_selected)
        for p in self.selected:
            p.is_selected = False
        self.selected = list(pieces)
        for p in self.selected:
            p.is_selected = True
        if self.reference is not None:
            self.reference.is_selected = reference_selected
        if before != ({p.id for p in self.selected}, self.reference_selected):
            self._selection_changed()

    def _selection_changed(self):
        if self.on_selection_change is not None:
            self.on_selection_change(list(self.selected), self.reference_selected)

    def clear_selection(self, now=None):
        self._set_selection([], False)

    def select_group(self, piece):
        self._set_selection(self._with_groups([piece]), False)

    def select_in_box(self, x0, y0, x1, y1, now=None):
        min_x, max_x = min(x0, x1), max(x0, x1)
        min_y, max_y = min(y0, y1), max(y0, y1)

        def inside(point):
            return min_x <= point[0] <= max_x and min_y <= point[1] <= max_y

        hits = [p for p in self.pieces if not p.is_locked and inside(p.center())]
        ref = (self.reference is not None and self.reference.visible
               and inside(self.reference.center()))
        self._set_selection(self._with_groups(hits), ref)

    def bring_selected_to_front(self):
        for piece in sorted(self.selected, key=lambda p: p.z_index):
            self.max_z += 1
            piece.z_index = self.max_z

    # --- Dragging ---
    def begin_drag(self, target):
        if target is self.reference:
            if not target.is_selected:
                self._set_selection([], True)
        elif not target.is_selected:
            self.select_group(target)
        else:
            self._set_selection(self._with_groups(self.selected), self.reference_selected)
        self.bring_selected_to_front()

    def drag_by(self, dx, dy, now=None):
        for piece in self.selected:
            piece.move_by(dx, dy)
        if self.reference_selected:
            self.reference.move_by(dx, dy)
        if self.selected or self.reference_selected:
            self.drag_move.trigger(self._now(now), self.selected)

    def end_drag(self, now=None):
        now = self._now(now)
        moved = {p.id: p for p in self.selected}
        result = snap_selection(self.grouping, self.selected, self.by_grid,
                                self.pitch, self.config.snap_distance)
        for p in result.moved:
            moved[p.id] = p

        if result.locked:
            self.placed_pieces += result.newly_placed
            self.selected = [p for p in self.selected if not p.is_locked]
            self._selection_changed()
        elif result.absorbed:
            joined = [self.by_id[pid] for pid in sorted(result.absorbed)]
            self._set_selection(self._with_groups(self.selected + joined), self.reference_selected)
            self.bring_selected_to_front()

        if moved or self.reference_selected:
            self.drag_move.flush()
            self.move_end.trigger(now, moved.values())
        self._check_complete()
        return result

    # --- Progress ---
    @property
    def total_pieces(self):
        return len(self.pieces)

    def progress(self):
        if not self.pieces:
            return 0
        return round(self.placed_pieces / len(self.pieces) * 100)

    @property
    def is_complete(self):
        return bool(self.pieces) and all(p.is_locked for p in self.pieces)

    def _check_complete(self):
        if self.completion_notified or not self.is_complete:
            return
        self.completion_notified = True
        logger.info("puzzle complete (%d pieces)", len(self.pieces))
        if self.on_complete is not None:
            self.on_complete()

    def _lock(self, piece):
        if not piece.is_placed:
            piece.is_placed = True
            self.placed_pieces += 1
        piece.is_locked = True
        piece.current_x, piece.current_y = piece.correct_x, piece.correct_y

    # --- Frame ---
    def update(self, now=None):
        now = self._now(now)
        self.gestures.tick(now)
        self.move_end.poll(now)
        self.drag_move.poll(now)
        self.remote.expire(now, self.config.selection_timeout)

    def render(self, surface):
        if self.renderer is None:
            self.renderer = Renderer()
        self.renderer.draw(surface, self)

    def mode_label(self):
        if self.gestures.edge_panning:
            return "Edge panning"
        return MODE_LABELS.get(self.gestures.state, "")

    def toggle_reference(self):
        if self.reference is None:
            return
        self.reference.visible = not self.reference.visible
        if not self.reference.visible and self.reference.is_selected:
            self._set_selection(self.selected, False)

    # --- Persistence contract ---
    def get_state(self):
        return {
            "pieceCount": self.piece_count,
            "shapeSeed": self.shape_seed,
            "pieces": [p.to_dict() for p in self.pieces],
            "groups": {str(gid): ids for gid, ids in self.grouping.snapshot().items()},
            "camera": self.camera.to_dict(),
            "reference": self.reference.to_dict() if self.reference is not None else None,
            "progress": self.progress(),
        }

    def load_state(self, state, now=None):
        """Overlay saved per-piece state on freshly cut pieces.

        Unknown ids and malformed entries are skipped; groups are rebuilt from
        whatever assignments survive.
        """
        if not isinstance(state, dict):
            logger.warning("ignoring saved state of type %s", type(state).__name__)
            return
        now = self._now(now)
        self._set_selection([], False)

        assignments = {}
        skipped = 0
        for entry in state.get("pieces") or ():
            piece = self.by_id.get(_as_int(entry.get("id"))) if isinstance(entry, dict) else None
            if piece is None:
                skipped += 1
                continue
            x = _as_float(entry.get("x", entry.get("currentX")))
            y = _as_float(entry.get("y", entry.get("currentY")))
            if x is not None and y is not None:
                piece.current_x, piece.current_y = x, y
            piece.is_placed = bool(entry.get("isPlaced", False))
            if entry.get("isLocked"):
                self._lock(piece)
            z = _as_int(entry.get("zIndex"))
            if z is not None:
                piece.z_index = z
            if entry.get("groupId") is not None:
                assignments[piece.id] = str(entry["groupId"])
        if skipped:
            logger.warning("skipped %d saved pieces that do not match the cut", skipped)

        groups = state.get("groups")
        if isinstance(groups, dict):
            for gid, member_ids in groups.items():
                for pid in member_ids if isinstance(member_ids, list) else ():
                    pid = _as_int(pid)
                    if pid in self.by_id and pid not in assignments:
                        assignments[pid] = str(gid)
        self.grouping.restore(assignments)

        if "camera" in state:
            loaded = Camera.from_dict(state["camera"])
            self.camera.x, self.camera.y, self.camera.scale = loaded.x, loaded.y, loaded.scale
        if self.reference is not None:
            self.reference.apply(state.get("reference"))
        if "selections" in state:
            self.remote.replace(state["selections"], now)
        if state.get("shapeSeed") is not None:
            self.shape_seed = state["shapeSeed"]
        if _as_int(state.get("pieceCount")) is not None:
            self.piece_count = _as_int(state["pieceCount"])

        self.placed_pieces = sum(1 for p in self.pieces if p.is_placed)
        self.max_z = max((p.z_index for p in self.pieces), default=0)
        self.completion_notified = self.is_complete
        logger.info("loaded state: %d pieces placed, %d groups",
                    self.placed_pieces, len(self.grouping.groups))

    def apply_remote_update(self, update, now=None):
        """Merge pushed state, leaving anything held locally untouched."""
        if not isinstance(update, dict):
            return
        now = self._now(now)
        local = {p.id for p in self.selected}

        remote_groups = {}
        for entry in update.get("pieces") or ():
            piece = self.by_id.get(_as_int(entry.get("id"))) if isinstance(entry, dict) else None
            if piece is None or piece.id in local:
                continue
            x = _as_float(entry.get("x", entry.get("currentX")))
            y = _as_float(entry.get("y", entry.get("currentY")))
            if x is not None and y is not None and not piece.is_locked:
                piece.current_x, piece.current_y = x, y
            if entry.get("isPlaced") and not piece.is_placed:
                piece.is_placed = True
                self.placed_pieces += 1
            if entry.get("isLocked") and not piece.is_locked:
                self._lock(piece)
            z = _as_int(entry.get("zIndex"))
            if z is not None:
                piece.z_index = z
                self.max_z = max(self.max_z, z)
            if entry.get("groupId") is not None:
                remote_groups.setdefault(str(entry["groupId"]), []).append(piece)

        held_groups = {p.group_id for p in self.selected}
        for members in remote_groups.values():
            base = members[0].group_id
            for other in members[1:]:
                if other.group_id in held_groups or base in held_groups:
                    continue
                self.grouping.merge(base, other.group_id)

        if "selections" in update:
            self.remote.replace(update["selections"], now)
            for entry in self.remote:
                for pid, (x, y) in entry.positions.items():
                    piece = self.by_id.get(pid)
                    if piece is not None and pid not in local and not piece.is_locked:
                        piece.current_x, piece.current_y = x, y

        if self.reference is not None and not self.reference.is_selected:
            self.reference.apply(update.get("reference"))
        self._check_complete()
