"""Release-time snapping: to the solved position first, else to neighbours."""

import logging
from dataclasses import dataclass, field
from typing import List, Set

logger = logging.getLogger(__name__)


@dataclass
class SnapResult:
    locked: bool = False
    merged: int = 0
    moved: List = field(default_factory=list)
    newly_placed: int = 0
    absorbed: Set[int] = field(default_factory=set)


def _distance(ax, ay, bx, by):
    return ((ax - bx) ** 2 + (ay - by) ** 2) ** 0.5


def snap_to_final(grouping, selected, snap_distance):
    """Lock the first selected group that is within reach of its solved spot."""
    result = SnapResult()
    for piece in selected:
        if piece.is_locked or piece.distance_to_correct() >= snap_distance:
            continue
        dx = piece.correct_x - piece.current_x
        dy = piece.correct_y - piece.current_y
        members = grouping.member_pieces(piece.group_id)
        grouping.move(piece.group_id, dx, dy)
        for member in members:
            # land on the exact solved coordinates
            member.current_x, member.current_y = member.correct_x, member.correct_y
            if not member.is_placed:
                member.is_placed = True
                result.newly_placed += 1
            member.is_locked = True
            member.is_selected = False
        result.locked = True
        result.moved = members
        logger.info("group %s locked in place (%d pieces)", piece.group_id, len(members))
        return result
    return result


def neighbours(piece, by_grid):
    r, c = piece.row, piece.col
    for pos in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
        other = by_grid.get(pos)
        if other is not None:
            yield other


def snap_to_neighbours(grouping, selected, by_grid, pitch, snap_distance):
    """Align and merge every selected piece that sits next to its neighbour."""
    result = SnapResult()
    pitch_x, pitch_y = pitch
    moved = {}
    for piece in list(selected):
        for other in neighbours(piece, by_grid):
            if other.is_locked or other.group_id == piece.group_id:
                continue
            expected_x = other.current_x + (piece.col - other.col) * pitch_x
            expected_y = other.current_y + (piece.row - other.row) * pitch_y
            if _distance(piece.current_x, piece.current_y, expected_x, expected_y) >= snap_distance:
                continue
            gid = piece.group_id
            grouping.move(gid, expected_x - piece.current_x, expected_y - piece.current_y)
            absorbed = grouping.members(other.group_id)
            grouping.merge(gid, other.group_id)
            result.merged += 1
            result.absorbed |= absorbed
            for member in grouping.member_pieces(gid):
                moved[member.id] = member
    result.moved = list(moved.values())
    if result.merged:
        logger.debug("release merged %d neighbour groups", result.merged)
    return result


def snap_selection(grouping, selected, by_grid, pitch, snap_distance):
    """Run the release snap over ``selected`` pieces."""
    selected = [p for p in selected if not p.is_locked]
    if not selected:
        return SnapResult()
    result = snap_to_final(grouping, selected, snap_distance)
    if result.locked:
        return result
    return snap_to_neighbours(grouping, selected, by_grid, pitch, snap_distance)
