"""Shared fixtures: headless pygame and synthetic source images."""

from __future__ import annotations

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import numpy as np
import pygame
import pytest

from jigsaw_madness.cutter import PuzzleCutter
from jigsaw_madness.engine import PuzzleEngine


def gradient_surface(width: int, height: int) -> pygame.Surface:
    """Opaque RGB gradient image of the given size."""
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)
    xv, yv = np.meshgrid(x, y, indexing="ij")
    arr = np.stack([xv, yv, 0.5 * (xv + yv)], axis=2).astype(np.uint8)
    return pygame.surfarray.make_surface(arr)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def image() -> pygame.Surface:
    return gradient_surface(400, 300)


@pytest.fixture
def cut_puzzle(image):
    """A 4x3 puzzle (12 pieces) cut with a fixed seed."""
    cutter = PuzzleCutter()
    pieces = cutter.cut(image, 12, seed=3)
    return cutter, pieces


@pytest.fixture
def engine(cut_puzzle):
    cutter, pieces = cut_puzzle
    eng = PuzzleEngine(viewport=(800, 600), clock=FakeClock())
    eng.set_pieces(pieces, piece_count=12, shape_seed=cutter.seed)
    return eng


def spread(engine) -> None:
    """Park every piece far from the board and from each other."""
    for p in engine.pieces:
        p.current_x = 5000.0 + p.id * 1000.0
        p.current_y = 5000.0


def place(piece, x: float, y: float) -> None:
    piece.current_x, piece.current_y = x, y


def screen_center(engine, piece):
    return engine.camera.world_to_screen(*piece.center())
