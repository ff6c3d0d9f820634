"""Local save files standing in for the shared persistence service."""

import json
import logging
import os

import pygame
from PIL import Image

logger = logging.getLogger(__name__)


def save_state(path, state):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp = path + ".tmp"
    with open(tmp, "w") as f:
        json.dump(state, f)
    os.replace(tmp, path)
    logger.info("puzzle saved to %s", path)


def load_state(path):
    with open(path, "r") as f:
        state = json.load(f)
    if not isinstance(state, dict):
        raise ValueError(f"{path} does not hold a saved puzzle")
    return state


def list_saves(directory):
    if not os.path.isdir(directory):
        return []
    return sorted(f for f in os.listdir(directory) if f.lower().endswith(".json"))


def save_surface_as_jpg(surface, filename):
    data = pygame.image.tostring(surface, "RGB")
    img = Image.frombytes("RGB", surface.get_size(), data)
    img.save(filename, "JPEG")
    logger.info("saved completed puzzle as %s", filename)


class SaveFile:
    """Persists an engine to one JSON file whenever pieces finish moving."""

    def __init__(self, path, image_path=None):
        self.path = path
        self.image_path = image_path
        self.engine = None

    def attach(self, engine):
        self.engine = engine
        engine.move_end.callback = self.on_piece_move_end

    def on_piece_move_end(self, pieces):
        logger.debug("%d pieces settled, saving", len(pieces))
        self.save()

    def save(self):
        if self.engine is None or not self.engine.pieces:
            return
        state = self.engine.get_state()
        state["image"] = self.image_path
        save_state(self.path, state)
