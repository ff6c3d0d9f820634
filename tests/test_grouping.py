"""Tests for group bookkeeping."""

from __future__ import annotations

import pytest

from jigsaw_madness.grouping import Grouping, GroupingError


@pytest.fixture
def grouping(cut_puzzle) -> Grouping:
    _, pieces = cut_puzzle
    g = Grouping()
    g.reset(pieces)
    return g


def test_every_piece_starts_alone(grouping) -> None:
    """Each piece begins in its own single-member group."""
    assert len(grouping.groups) == len(grouping.pieces)
    for pid, piece in grouping.pieces.items():
        assert grouping.members(piece.group_id) == {pid}
    grouping.check_consistency()


def test_merge_keeps_back_references(grouping) -> None:
    """After merges every member points at the surviving group."""
    a = grouping.group_of(0)
    b = grouping.group_of(1)
    c = grouping.group_of(5)
    assert grouping.merge(a, b) == a
    grouping.merge(c, a)
    assert b not in grouping.groups and a not in grouping.groups
    assert grouping.members(c) == {0, 1, 5}
    for pid in (0, 1, 5):
        assert grouping.group_of(pid) == c
    grouping.check_consistency()


def test_merge_no_ops(grouping) -> None:
    """Merging a group with itself or with an unknown id changes nothing."""
    a = grouping.group_of(0)
    before = grouping.snapshot()
    assert grouping.merge(a, a) == a
    assert grouping.merge(a, 9999) == a
    assert grouping.snapshot() == before


def test_group_ids_are_never_reused(grouping) -> None:
    """Ids handed out after a restore are fresh."""
    seen = set(grouping.groups)
    grouping.merge(grouping.group_of(0), grouping.group_of(1))
    grouping.restore({0: "a", 1: "a"})
    assert not set(grouping.groups) & seen


def test_move_is_rigid(grouping) -> None:
    """Moving a group translates every member by the same amount."""
    gid = grouping.merge(grouping.group_of(2), grouping.group_of(3))
    before = {pid: (p.current_x, p.current_y) for pid, p in grouping.pieces.items()}
    grouping.move(gid, 12.5, -4)
    for pid, p in grouping.pieces.items():
        bx, by = before[pid]
        if pid in (2, 3):
            assert (p.current_x, p.current_y) == (bx + 12.5, by - 4)
        else:
            assert (p.current_x, p.current_y) == (bx, by)


def test_restore_tolerates_bad_assignments(grouping) -> None:
    """Unknown ids and missing groups are dropped; the rest rebuild cleanly."""
    grouping.restore({0: "g", 1: "g", 4: "h", 999: "g", 7: None})
    grouping.check_consistency()
    assert grouping.group_of(0) == grouping.group_of(1)
    assert grouping.group_of(4) != grouping.group_of(0)
    assert grouping.members(grouping.group_of(7)) == {7}
    assert len(grouping.groups) == len(grouping.pieces) - 1


def test_members_returns_a_copy(grouping) -> None:
    gid = grouping.group_of(0)
    grouping.members(gid).add(42)
    assert grouping.members(gid) == {0}
    assert grouping.members(12345) == set()


def test_consistency_check_catches_drift(grouping) -> None:
    """A stale back-reference is reported."""
    grouping.pieces[3].group_id = grouping.group_of(4)
    with pytest.raises(GroupingError):
        grouping.check_consistency()
