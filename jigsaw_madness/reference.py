"""Translucent preview of the solved picture."""

import logging

import pygame

from . import settings

logger = logging.getLogger(__name__)


class ReferenceImage:
    """Movable, toggleable preview; shares selection with pieces but never snaps."""

    def __init__(self, image, x=0.0, y=0.0, visible=True):
        self.image = image.copy()
        self.image.set_alpha(settings.REFERENCE_ALPHA)
        self.x = x
        self.y = y
        self.width, self.height = image.get_size()
        self.visible = visible
        self.is_selected = False

    def __repr__(self):
        return f"ReferenceImage(x={self.x:.1f}, y={self.y:.1f}, visible={self.visible})"

    def move_by(self, dx, dy):
        self.x += dx
        self.y += dy

    def rect(self):
        return pygame.Rect(int(self.x), int(self.y), self.width, self.height)

    def contains(self, x, y):
        return self.visible and self.x <= x < self.x + self.width and self.y <= y < self.y + self.height

    def center(self):
        return (self.x + self.width / 2, self.y + self.height / 2)

    def to_dict(self):
        return {"x": self.x, "y": self.y, "visible": self.visible}

    def apply(self, data):
        if not isinstance(data, dict):
            return
        try:
            x, y = float(data.get("x", self.x)), float(data.get("y", self.y))
        except (TypeError, ValueError):
            logger.warning("ignoring reference position %r", data)
        else:
            self.x, self.y = x, y
        if "visible" in data:
            self.visible = bool(data["visible"])
