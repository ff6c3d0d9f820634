"""Cuts a source image into interlocking, scattered pieces."""

import logging
import math
import random

import pygame

from . import settings
from .geometry import BLANK, FLAT, TAB, EdgeVariation, TabSide, max_protrusion, piece_polygon
from .piece import Piece

logger = logging.getLogger(__name__)


class CutError(Exception):
    """The source image could not be turned into a puzzle."""


def load_image(path):
    try:
        return pygame.image.load(path)
    except (OSError, pygame.error) as e:
        raise CutError(f"could not load image {path!r}: {e}") from e


def grid_for(width, height, target):
    """Return (rows, cols) closest to ``target`` pieces for the image aspect."""
    aspect = width / height
    target = max(1, int(target))
    cols = round(math.sqrt(target * aspect))
    rows = round(cols / aspect)
    return max(settings.MIN_GRID, rows), max(settings.MIN_GRID, cols)


def derange(order):
    """Swap any slot that maps to itself with its neighbour, in place."""
    n = len(order)
    if n < 2:
        return order
    for i in range(n):
        if order[i] == i:
            j = (i + 1) % n
            order[i], order[j] = order[j], order[i]
    return order


class PuzzleCutter:
    def __init__(self):
        self.rows = 0
        self.cols = 0
        self.piece_width = 0.0
        self.piece_height = 0.0
        self.tab_size = 0.0
        self.padding = 0.0
        self.seed = None
        self.image_size = (0, 0)

    def cut(self, image, target, seed=None):
        """Cut ``image`` (a path or a Surface) into about ``target`` pieces.

        The same seed always reproduces the same edges, bitmaps and scatter.
        """
        surface = image if isinstance(image, pygame.Surface) else load_image(image)
        width, height = surface.get_size()
        if width == 0 or height == 0:
            raise CutError("image is empty")

        if seed is None:
            seed = random.SystemRandom().randrange(2 ** 31)
        rng = random.Random(seed)
        self.seed = seed
        self.image_size = (width, height)
        self.rows, self.cols = grid_for(width, height, target)
        self.piece_width = width / self.cols
        self.piece_height = height / self.rows
        self.tab_size = min(self.piece_width, self.piece_height) * settings.TAB_SIZE_RATIO
        self.padding = max_protrusion(self.tab_size)

        h_edges, v_edges = self._generate_edges(rng)
        scatter = self._scatter_positions(rng)

        pieces = []
        for row in range(self.rows):
            for col in range(self.cols):
                pid = row * self.cols + col
                tabs = self._piece_tabs(row, col, h_edges, v_edges)
                correct = self._correct_pos(row, col)
                bitmap = self._render_piece(surface, row, col, tabs)
                piece = Piece(pid, row, col, bitmap, correct, scatter[pid],
                              (self.piece_width, self.piece_height),
                              tabs, self.tab_size, self.padding)
                pieces.append(piece)

        logger.info("cut %dx%d image into %d x %d = %d pieces (target %d, seed %d)",
                    width, height, self.rows, self.cols, len(pieces), target, seed)
        return pieces

    # --- Edges ---
    def _generate_edges(self, rng):
        def random_edge():
            direction = TAB if rng.random() > 0.5 else BLANK
            return TabSide(direction, EdgeVariation.random(rng))

        # h_edges[r][c] sits between (r, c) and (r, c + 1)
        h_edges = [[random_edge() for _ in range(self.cols - 1)] for _ in range(self.rows)]
        # v_edges[r][c] sits between (r, c) and (r + 1, c)
        v_edges = [[random_edge() for _ in range(self.cols)] for _ in range(self.rows - 1)]
        return h_edges, v_edges

    def _piece_tabs(self, row, col, h_edges, v_edges):
        flat = TabSide(FLAT)
        return {
            "top": flat if row == 0 else v_edges[row - 1][col].inverted(),
            "right": flat if col == self.cols - 1 else h_edges[row][col],
            "bottom": flat if row == self.rows - 1 else v_edges[row][col],
            "left": flat if col == 0 else h_edges[row][col - 1].inverted(),
        }

    # --- Placement ---
    def _correct_pos(self, row, col):
        return (col * self.piece_width - self.padding,
                row * self.piece_height - self.padding)

    def _scatter_positions(self, rng):
        n = self.rows * self.cols
        order = list(range(n))
        rng.shuffle(order)
        derange(order)
        jitter = self.tab_size * settings.SCATTER_JITTER
        positions = []
        for slot in order:
            x, y = self._correct_pos(slot // self.cols, slot % self.cols)
            positions.append((x + rng.uniform(-jitter, jitter), y + rng.uniform(-jitter, jitter)))
        return positions

    # --- Bitmaps ---
    def bitmap_size(self):
        return (int(math.ceil(self.piece_width + 2 * self.padding)),
                int(math.ceil(self.piece_height + 2 * self.padding)))

    def _render_piece(self, surface, row, col, tabs):
        width, height = surface.get_size()
        bw, bh = self.bitmap_size()
        ox = int(round(col * self.piece_width - self.padding))
        oy = int(round(row * self.piece_height - self.padding))

        piece_surface = pygame.Surface((bw, bh), pygame.SRCALPHA)
        src_left, src_top = max(0, ox), max(0, oy)
        src_right, src_bottom = min(width, ox + bw), min(height, oy + bh)
        if src_right > src_left and src_bottom > src_top:
            area = pygame.Rect(src_left, src_top, src_right - src_left, src_bottom - src_top)
            piece_surface.blit(surface, (src_left - ox, src_top - oy), area)

        poly = piece_polygon(self.piece_width, self.piece_height, tabs,
                             self.tab_size, self.padding)
        mask_surface = pygame.Surface((bw, bh), pygame.SRCALPHA)
        pygame.draw.polygon(mask_surface, (255, 255, 255, 255), poly)
        piece_surface.blit(mask_surface, (0, 0), special_flags=pygame.BLEND_RGBA_MULT)
        pygame.draw.polygon(piece_surface, settings.OUTLINE_COLOR, poly, 1)
        return piece_surface


def cut(image, target, seed=None):
    return PuzzleCutter().cut(image, target, seed)
