"""Groups of pieces that have snapped together and move as one body."""

import itertools
import logging

logger = logging.getLogger(__name__)


class GroupingError(Exception):
    """Forward map and ``piece.group_id`` back-references disagree."""


class Grouping:
    """Owns ``groups`` (id -> member ids) and keeps ``piece.group_id`` in step.

    Groups only ever merge; ids come from a monotonic counter and are never
    handed out twice in one session.
    """

    def __init__(self):
        self.pieces = {}
        self.groups = {}
        self._ids = itertools.count()

    def reset(self, pieces):
        self.pieces = {p.id: p for p in pieces}
        self.groups = {}
        for p in pieces:
            self._new_group([p.id])

    def _new_group(self, member_ids):
        gid = next(self._ids)
        self.groups[gid] = set(member_ids)
        for pid in member_ids:
            self.pieces[pid].group_id = gid
        return gid

    def group_of(self, piece_id):
        piece = self.pieces.get(piece_id)
        return piece.group_id if piece is not None else None

    def members(self, group_id):
        return set(self.groups.get(group_id, ()))

    def member_pieces(self, group_id):
        return [self.pieces[pid] for pid in sorted(self.groups.get(group_id, ()))]

    def merge(self, a, b):
        """Absorb group ``b`` into group ``a`` and return the surviving id."""
        if a == b or a not in self.groups or b not in self.groups:
            return a
        absorbed = self.groups.pop(b)
        for pid in absorbed:
            self.pieces[pid].group_id = a
        self.groups[a] |= absorbed
        logger.debug("merged group %s into %s (%d pieces)", b, a, len(self.groups[a]))
        return a

    def move(self, group_id, dx, dy):
        for pid in self.groups.get(group_id, ()):
            self.pieces[pid].move_by(dx, dy)

    def restore(self, assignments):
        """Rebuild groups from saved ``{piece_id: saved_group_id}`` pairs.

        Ids that do not belong to a cut piece are ignored, and pieces without
        an assignment stay on their own. Saved group ids are only used to
        tell groups apart; fresh ids are allocated.
        """
        buckets = {}
        dropped = 0
        for pid, saved_gid in assignments.items():
            if pid not in self.pieces or saved_gid is None:
                dropped += 1
                continue
            buckets.setdefault(saved_gid, []).append(pid)
        if dropped:
            logger.warning("ignored %d group assignments for unknown pieces", dropped)

        self.groups = {}
        assigned = set()
        for member_ids in buckets.values():
            self._new_group(sorted(member_ids))
            assigned.update(member_ids)
        for pid in sorted(self.pieces):
            if pid not in assigned:
                self._new_group([pid])

    def snapshot(self):
        return {gid: sorted(members) for gid, members in self.groups.items()}

    def check_consistency(self):
        seen = set()
        for gid, members in self.groups.items():
            if not members:
                raise GroupingError(f"group {gid} is empty")
            for pid in members:
                if pid in seen:
                    raise GroupingError(f"piece {pid} is in more than one group")
                seen.add(pid)
                if self.pieces[pid].group_id != gid:
                    raise GroupingError(
                        f"piece {pid} points at group {self.pieces[pid].group_id}, not {gid}")
        missing = set(self.pieces) - seen
        if missing:
            raise GroupingError(f"pieces without a group: {sorted(missing)}")
