"""Selections held by other users, as pushed by the sharing layer."""

import logging

from . import settings

logger = logging.getLogger(__name__)


def _int_ids(values):
    ids = []
    for v in values or ():
        try:
            ids.append(int(v))
        except (TypeError, ValueError):
            continue
    return ids


def _positions(raw):
    positions = {}
    if not isinstance(raw, dict):
        return positions
    for key, pos in raw.items():
        try:
            pid = int(key)
            if isinstance(pos, dict):
                positions[pid] = (float(pos["x"]), float(pos["y"]))
            else:
                positions[pid] = (float(pos[0]), float(pos[1]))
        except (TypeError, ValueError, KeyError, IndexError):
            continue
    return positions


class RemoteSelection:
    def __init__(self, user_id, color, name, piece_ids, positions=None,
                 reference_selected=False, timestamp=0.0):
        self.user_id = user_id
        self.color = color
        self.name = name
        self.piece_ids = list(piece_ids)
        self.positions = positions or {}
        self.reference_selected = reference_selected
        self.timestamp = timestamp

    def __repr__(self):
        return f"RemoteSelection({self.user_id!r}, {len(self.piece_ids)} pieces)"

    @classmethod
    def from_dict(cls, user_id, data, now):
        return cls(
            user_id=str(user_id),
            color=data.get("color") or settings.REMOTE_DEFAULT_COLOR,
            name=data.get("displayName") or data.get("name") or "Player",
            piece_ids=_int_ids(data.get("pieceIds")),
            positions=_positions(data.get("positions")),
            reference_selected=bool(data.get("referenceSelected", False)),
            timestamp=now,
        )


class RemoteSelections:
    """Per-user selection table; entries expire when not refreshed."""

    def __init__(self):
        self.entries = {}

    def __iter__(self):
        return iter(list(self.entries.values()))

    def __len__(self):
        return len(self.entries)

    def replace(self, selections, now):
        """Take the full selection table from an update.

        ``selections`` maps user id to the broadcast payload, or is a list of
        payloads carrying their own ``userId``.
        """
        if isinstance(selections, list):
            selections = {s.get("userId", i): s for i, s in enumerate(selections)
                          if isinstance(s, dict)}
        if not isinstance(selections, dict):
            return
        fresh = {}
        for user_id, data in selections.items():
            if not isinstance(data, dict):
                continue
            entry = RemoteSelection.from_dict(user_id, data, now)
            if entry.piece_ids or entry.reference_selected:
                fresh[entry.user_id] = entry
        self.entries = fresh

    def expire(self, now, timeout):
        stale = [uid for uid, e in self.entries.items() if now - e.timestamp > timeout]
        for uid in stale:
            logger.debug("dropping stale selection of %s", uid)
            del self.entries[uid]
        return stale

    def held_ids(self):
        ids = set()
        for entry in self.entries.values():
            ids.update(entry.piece_ids)
        return ids
