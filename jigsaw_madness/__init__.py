"""Jigsaw puzzle cutting and interactive assembly."""

from .camera import Camera
from .cutter import CutError, PuzzleCutter, cut, grid_for
from .engine import PuzzleEngine
from .geometry import BLANK, FLAT, TAB, EdgeVariation, TabSide
from .grouping import Grouping, GroupingError
from .piece import Piece
from .reference import ReferenceImage
from .settings import EngineConfig

__all__ = [
    "BLANK",
    "FLAT",
    "TAB",
    "Camera",
    "CutError",
    "EdgeVariation",
    "EngineConfig",
    "Grouping",
    "GroupingError",
    "Piece",
    "PuzzleCutter",
    "PuzzleEngine",
    "ReferenceImage",
    "TabSide",
    "cut",
    "grid_for",
]
