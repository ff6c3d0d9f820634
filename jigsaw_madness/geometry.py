"""Tab/blank edge shapes and piece outlines.

The same path is used to clip a piece bitmap at cut time and to redraw its
outline while playing, so both always agree.
"""

from dataclasses import dataclass

import numpy as np

from . import settings

TAB = 1
BLANK = -1
FLAT = 0

SIDES = ("top", "right", "bottom", "left")


@dataclass(frozen=True)
class EdgeVariation:
    """Shape multipliers of one internal edge, as fractions of the tab size."""

    neck_width: float
    head_width: float
    head_height: float
    neck_depth: float

    @classmethod
    def random(cls, rng):
        return cls(
            neck_width=rng.uniform(*settings.NECK_WIDTH_RANGE),
            head_width=rng.uniform(*settings.HEAD_WIDTH_RANGE),
            head_height=rng.uniform(*settings.HEAD_HEIGHT_RANGE),
            neck_depth=rng.uniform(*settings.NECK_DEPTH_RANGE),
        )


@dataclass(frozen=True)
class TabSide:
    direction: int = FLAT
    variation: EdgeVariation = None

    def inverted(self):
        return TabSide(-self.direction, self.variation)

    def to_dict(self):
        if self.direction == FLAT:
            return {"direction": FLAT}
        v = self.variation
        return {
            "direction": self.direction,
            "variation": {
                "neckWidth": v.neck_width,
                "headWidth": v.head_width,
                "headHeight": v.head_height,
                "neckDepth": v.neck_depth,
            },
        }


def max_protrusion(tab_size):
    """Furthest a tab can reach past its side; used as bitmap padding."""
    return tab_size * (settings.NECK_DEPTH_RANGE[1] + settings.HEAD_HEIGHT_RANGE[1])


def edge_path(x1, y1, x2, y2, side, tab, tab_size):
    """Path commands from (x1, y1) to (x2, y2) for one side of a piece."""
    if tab.direction == FLAT or tab.variation is None:
        return [("L", (x2, y2))]
    v = tab.variation
    neck_w = tab_size * v.neck_width
    head_w = tab_size * v.head_width
    head_h = tab_size * v.head_height
    neck_d = tab_size * v.neck_depth
    # outward is -y on top and -x on left
    out = -tab.direction if side in ("top", "left") else tab.direction

    if side in ("top", "bottom"):
        d = 1 if x2 > x1 else -1
        mid = x1 + d * abs(x2 - x1) / 2

        def at(along, depth):
            return (mid + d * along, y1 + out * depth)
    else:
        d = 1 if y2 > y1 else -1
        mid = y1 + d * abs(y2 - y1) / 2

        def at(along, depth):
            return (x1 + out * depth, mid + d * along)

    head_mid = neck_d + head_h * 0.5
    head_tip = neck_d + head_h
    return [
        ("L", at(-neck_w, 0)),
        ("C", at(-neck_w, neck_d), at(-head_w, neck_d), at(-head_w, head_mid)),
        ("C", at(-head_w, head_tip), at(head_w, head_tip), at(head_w, head_mid)),
        ("C", at(head_w, neck_d), at(neck_w, neck_d), at(neck_w, 0)),
        ("L", (x2, y2)),
    ]


def piece_path(width, height, tabs, tab_size, padding):
    """Closed outline of a piece, in coordinates local to its padded bitmap."""
    left, top = padding, padding
    right, bottom = padding + width, padding + height
    path = [("M", (left, top))]
    path += edge_path(left, top, right, top, "top", tabs["top"], tab_size)
    path += edge_path(right, top, right, bottom, "right", tabs["right"], tab_size)
    path += edge_path(right, bottom, left, bottom, "bottom", tabs["bottom"], tab_size)
    path += edge_path(left, bottom, left, top, "left", tabs["left"], tab_size)
    return path


def _cubic_points(p0, c1, c2, p3, steps):
    t = np.linspace(0.0, 1.0, steps + 1)[1:, None]
    mt = 1.0 - t
    pts = (
        mt ** 3 * np.asarray(p0)
        + 3 * mt ** 2 * t * np.asarray(c1)
        + 3 * mt * t ** 2 * np.asarray(c2)
        + t ** 3 * np.asarray(p3)
    )
    return [tuple(p) for p in pts.tolist()]


def flatten_path(path, steps=settings.BEZIER_STEPS):
    """Sample a path into polygon vertices."""
    points = []
    current = None
    for cmd in path:
        if cmd[0] in ("M", "L"):
            current = cmd[1]
            points.append(current)
        elif cmd[0] == "C":
            _, c1, c2, end = cmd
            points.extend(_cubic_points(current, c1, c2, end, steps))
            current = end
        else:
            raise ValueError(f"unknown path command {cmd[0]!r}")
    if len(points) > 1 and points[-1] == points[0]:
        points.pop()
    return points


def piece_polygon(width, height, tabs, tab_size, padding, steps=settings.BEZIER_STEPS):
    return flatten_path(piece_path(width, height, tabs, tab_size, padding), steps)
