"""Pan/zoom viewport transform: ``world = (screen - offset) / scale``."""

import logging
import math

from . import settings

logger = logging.getLogger(__name__)


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


class Camera:
    def __init__(self, x=0.0, y=0.0, scale=1.0):
        self.x = x
        self.y = y
        self.scale = clamp(scale, settings.MIN_SCALE, settings.MAX_SCALE)

    def __repr__(self):
        return f"Camera(x={self.x:.2f}, y={self.y:.2f}, scale={self.scale:.3f})"

    def screen_to_world(self, sx, sy):
        return ((sx - self.x) / self.scale, (sy - self.y) / self.scale)

    def world_to_screen(self, wx, wy):
        return (wx * self.scale + self.x, wy * self.scale + self.y)

    def pan(self, dx, dy):
        """Shift by a screen-space delta."""
        self.x += dx
        self.y += dy

    def set_scale(self, scale):
        self.scale = clamp(scale, settings.MIN_SCALE, settings.MAX_SCALE)

    def zoom_at(self, sx, sy, factor):
        """Zoom by ``factor`` keeping the world point under (sx, sy) fixed."""
        wx, wy = self.screen_to_world(sx, sy)
        self.set_scale(self.scale * factor)
        self.x = sx - wx * self.scale
        self.y = sy - wy * self.scale

    def center_on(self, bounds, viewport):
        min_x, min_y, max_x, max_y = bounds
        vw, vh = viewport
        cx = (min_x + max_x) / 2
        cy = (min_y + max_y) / 2
        self.x = vw / 2 - cx * self.scale
        self.y = vh / 2 - cy * self.scale

    def to_dict(self):
        return {"x": self.x, "y": self.y, "scale": self.scale}

    @classmethod
    def from_dict(cls, data):
        """Build a camera from saved values, clamping anything out of range."""
        if not isinstance(data, dict):
            return cls()

        def number(key, default):
            value = data.get(key, default)
            try:
                value = float(value)
            except (TypeError, ValueError):
                logger.warning("camera %s=%r is not a number, using %s", key, value, default)
                return default
            if not math.isfinite(value):
                logger.warning("camera %s=%r is not finite, using %s", key, value, default)
                return default
            return value

        x = clamp(number("x", 0.0), -settings.MAX_OFFSET, settings.MAX_OFFSET)
        y = clamp(number("y", 0.0), -settings.MAX_OFFSET, settings.MAX_OFFSET)
        return cls(x, y, number("scale", 1.0))
