"""A single cut piece and its live state."""

import math

import pygame

from .geometry import piece_polygon


class Piece:
    """Bitmap and state of one puzzle piece.

    ``current_x``/``current_y`` and ``correct_x``/``correct_y`` are the world
    position of the bitmap's top-left corner, padding included.
    """

    def __init__(self, id, row, col, image, correct_pos, current_pos, cell_size,
                 tabs, tab_size, padding):
        self.id = id
        self.row = row
        self.col = col
        self.image = image
        self.mask = pygame.mask.from_surface(image, 127)
        self.correct_x, self.correct_y = correct_pos
        self.current_x, self.current_y = current_pos
        self.cell_width, self.cell_height = cell_size
        self.width, self.height = image.get_size()
        self.tabs = tabs
        self.tab_size = tab_size
        self.padding = padding

        self.is_placed = False
        self.is_locked = False
        self.is_selected = False
        self.group_id = None
        self.z_index = id

    def __repr__(self):
        return f"Piece(id={self.id}, row={self.row}, col={self.col})"

    @property
    def grid_pos(self):
        return (self.row, self.col)

    def move_by(self, dx, dy):
        self.current_x += dx
        self.current_y += dy

    def distance_to_correct(self):
        dx = self.correct_x - self.current_x
        dy = self.correct_y - self.current_y
        return (dx * dx + dy * dy) ** 0.5

    def center(self):
        return (self.current_x + self.width / 2, self.current_y + self.height / 2)

    def contains(self, x, y):
        """Pixel test against the bitmap's alpha at a world point."""
        rx = math.floor(x - self.current_x)
        ry = math.floor(y - self.current_y)
        if rx < 0 or ry < 0 or rx >= self.width or ry >= self.height:
            return False
        return bool(self.mask.get_at((rx, ry)))

    def outline(self):
        """Outline polygon in world space, re-derived from the tab geometry."""
        poly = piece_polygon(self.cell_width, self.cell_height, self.tabs,
                             self.tab_size, self.padding)
        return [(self.current_x + px, self.current_y + py) for px, py in poly]

    def to_dict(self):
        return {
            "id": self.id,
            "x": self.current_x,
            "y": self.current_y,
            "isPlaced": self.is_placed,
            "isLocked": self.is_locked,
            "zIndex": self.z_index,
            "groupId": self.group_id,
        }
