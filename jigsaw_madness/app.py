"""Play a puzzle in a pygame window."""

import argparse
import logging
import os

import pygame

from . import settings
from .cutter import CutError, PuzzleCutter, load_image
from .engine import PuzzleEngine
from .reference import ReferenceImage
from .render import assemble_solved_image, get_font
from .storage import SaveFile, list_saves, load_state, save_surface_as_jpg

logger = logging.getLogger(__name__)

MOUSE = "mouse"
SAVE_DIR = "saves"


def setup_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s",
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Cut an image into a jigsaw puzzle and play it.")
    parser.add_argument("image", nargs="?", help="source image; optional when --save names a saved puzzle")
    parser.add_argument("--pieces", type=int, default=100, help="target piece count")
    parser.add_argument("--seed", type=int, default=None, help="shape seed; random when omitted")
    parser.add_argument("--save", default=None, help="save file (default saves/puzzle_<image>.json)")
    parser.add_argument("--width", type=int, default=1280)
    parser.add_argument("--height", type=int, default=800)
    parser.add_argument("--list", action="store_true", help="list saved puzzles and exit")
    parser.add_argument("--debug", action="store_true", help="debug logging")
    args = parser.parse_args(argv)
    if not (args.image or args.save or args.list):
        parser.error("an image or --save is required")
    return args


def image_name(path):
    return os.path.splitext(os.path.basename(path))[0]


def read_save(path):
    if not path or not os.path.exists(path):
        return None
    try:
        return load_state(path)
    except (OSError, ValueError) as e:
        logger.warning("could not read %s, starting a new puzzle: %s", path, e)
        return None


def saved_puzzles(directory=SAVE_DIR):
    """Yield (path, image, progress) for every readable save in ``directory``."""
    for name in list_saves(directory):
        path = os.path.join(directory, name)
        state = read_save(path)
        if state is not None:
            yield path, state.get("image"), state.get("progress", 0)


def resolve_image(args):
    if args.image:
        return args.image
    saved = read_save(args.save)
    return saved.get("image") if saved is not None else None


def build_engine(image_path, pieces, seed, save_path, viewport):
    saved = read_save(save_path)
    if saved is not None:
        try:
            pieces = int(saved.get("pieceCount", pieces))
        except (TypeError, ValueError):
            logger.warning("saved pieceCount %r is not a number", saved.get("pieceCount"))
        if isinstance(saved.get("shapeSeed"), int):
            seed = saved["shapeSeed"]

    image = load_image(image_path)
    cutter = PuzzleCutter()
    cut_pieces = cutter.cut(image, pieces, seed)
    reference = ReferenceImage(image, x=cutter.image_size[0] + 2 * cutter.padding, y=0)

    engine = PuzzleEngine(viewport=viewport)
    engine.set_pieces(cut_pieces, piece_count=pieces, shape_seed=cutter.seed, reference=reference)
    if saved is not None:
        engine.load_state(saved)
    store = SaveFile(save_path, image_path)
    store.attach(engine)
    return engine, store, cutter


def handle_event(engine, store, event):
    if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and not getattr(event, "touch", False):
        mods = pygame.key.get_mods()
        engine.press(MOUSE, *event.pos, shift=bool(mods & pygame.KMOD_SHIFT),
                     alt=bool(mods & pygame.KMOD_ALT))
    elif event.type == pygame.MOUSEMOTION and not getattr(event, "touch", False):
        engine.move(MOUSE, *event.pos)
    elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and not getattr(event, "touch", False):
        engine.release(MOUSE, *event.pos)
    elif event.type == pygame.MOUSEWHEEL:
        engine.wheel(*pygame.mouse.get_pos(), event.y)
    elif event.type in (pygame.FINGERDOWN, pygame.FINGERMOTION, pygame.FINGERUP):
        w, h = engine.viewport
        pointer = ("finger", event.finger_id)
        x, y = event.x * w, event.y * h
        if event.type == pygame.FINGERDOWN:
            engine.press(pointer, x, y)
        elif event.type == pygame.FINGERMOTION:
            engine.move(pointer, x, y)
        else:
            engine.release(pointer, x, y)
    elif event.type == pygame.VIDEORESIZE:
        engine.resize(event.w, event.h)
    elif event.type == pygame.KEYDOWN:
        if event.key == pygame.K_r:
            engine.reset_view()
        elif event.key == pygame.K_h:
            engine.toggle_reference()
        elif event.key == pygame.K_s:
            store.save()


def draw_message(screen, text, color=(255, 215, 0), size=72):
    surface = get_font(size).render(text, True, color)
    screen.blit(surface, surface.get_rect(center=screen.get_rect().center))


def export_completed(engine, cutter, image_path):
    os.makedirs("completed", exist_ok=True)
    name = os.path.join("completed", f"{len(engine.pieces)}-Pieces-{image_name(image_path)}.jpeg")
    save_surface_as_jpg(assemble_solved_image(engine.pieces, cutter.image_size), name)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO)
    if args.list:
        for path, image, progress in saved_puzzles():
            print(f"{path}: {image} ({progress}% complete)")
        return 0
    image_path = resolve_image(args)
    if not image_path:
        logger.error("%s does not name a source image", args.save)
        return 1
    save_path = args.save or os.path.join(SAVE_DIR, f"puzzle_{image_name(image_path)}.json")

    pygame.init()
    screen = pygame.display.set_mode((args.width, args.height), pygame.RESIZABLE)
    pygame.display.set_caption("Jigsaw Madness")
    clock = pygame.time.Clock()

    engine = store = cutter = None
    error = None
    try:
        engine, store, cutter = build_engine(image_path, args.pieces, args.seed, save_path,
                                             (args.width, args.height))
    except CutError as e:
        logger.error("%s", e)
        error = "Could not load that image."

    exported = False

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif engine is not None:
                handle_event(engine, store, event)

        if engine is None:
            screen.fill(settings.BACKGROUND_COLOR)
            draw_message(screen, error, color=(178, 34, 34), size=36)
        else:
            engine.update()
            engine.render(screen)
            if engine.is_complete:
                draw_message(screen, "Congratulations!")
                if not exported:
                    export_completed(engine, cutter, image_path)
                    exported = True
        pygame.display.flip()
        clock.tick(settings.FPS)

    if store is not None:
        engine.move_end.cancel()
        store.save()
    pygame.quit()
    return 1 if error else 0
