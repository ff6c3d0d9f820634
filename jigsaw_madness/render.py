"""Per-frame drawing of an engine onto a pygame surface."""

import math

import pygame

from . import settings

FONTS = {}


def get_font(size):
    """Return a cached font of the given size."""
    if size not in FONTS:
        if not pygame.font.get_init():
            pygame.font.init()
        FONTS[size] = pygame.font.SysFont(settings.FONT_NAME, size)
    return FONTS[size]


def parse_color(value, default=settings.REMOTE_DEFAULT_COLOR):
    try:
        return pygame.Color(value)
    except (TypeError, ValueError):
        return pygame.Color(default)


def draw_dashed_lines(surface, color, points, closed=True, dash=8, gap=5, width=2):
    if len(points) < 2:
        return
    segments = list(zip(points, points[1:]))
    if closed:
        segments.append((points[-1], points[0]))
    drawing = True
    left = dash
    for (x0, y0), (x1, y1) in segments:
        length = math.hypot(x1 - x0, y1 - y0)
        pos = 0.0
        while pos < length:
            step = min(left, length - pos)
            if drawing:
                t0, t1 = pos / length, (pos + step) / length
                pygame.draw.line(surface, color,
                                 (x0 + (x1 - x0) * t0, y0 + (y1 - y0) * t0),
                                 (x0 + (x1 - x0) * t1, y0 + (y1 - y0) * t1), width)
            pos += step
            left -= step
            if left <= 0:
                drawing = not drawing
                left = dash if drawing else gap


def assemble_solved_image(pieces, size):
    """Compose every piece bitmap at its solved position."""
    completed = pygame.Surface(size)
    completed.fill((50, 50, 50))
    for p in pieces:
        completed.blit(p.image, (round(p.correct_x), round(p.correct_y)))
    return completed


class Renderer:
    """Draws frames; keeps scaled copies of bitmaps for the current zoom."""

    def __init__(self):
        self._scaled = {}
        self._cache_scale = None

    def _scaled_image(self, image, scale):
        if scale == 1.0:
            return image
        cached = self._scaled.get(image)
        if cached is None:
            w, h = image.get_size()
            size = (max(1, round(w * scale)), max(1, round(h * scale)))
            cached = pygame.transform.smoothscale(image, size)
            self._scaled[image] = cached
        return cached

    def draw(self, surface, engine):
        camera = engine.camera
        if camera.scale != self._cache_scale:
            self._scaled = {}
            self._cache_scale = camera.scale

        surface.fill(settings.BACKGROUND_COLOR)
        view = surface.get_rect()

        locked = sorted((p for p in engine.pieces if p.is_locked), key=lambda p: p.z_index)
        loose = sorted((p for p in engine.pieces if not p.is_locked), key=lambda p: p.z_index)
        for piece in locked:
            self._draw_piece(surface, view, camera, piece)
        if engine.reference is not None and engine.reference.visible:
            self._draw_reference(surface, view, camera, engine.reference)
        for piece in loose:
            self._draw_piece(surface, view, camera, piece)

        for piece in engine.selected:
            self._draw_outline(surface, camera, piece, settings.HIGHLIGHT_COLOR)
        if engine.reference_selected and engine.reference.visible:
            ref = engine.reference
            x, y = camera.world_to_screen(ref.x, ref.y)
            rect = pygame.Rect(round(x), round(y), round(ref.width * camera.scale),
                               round(ref.height * camera.scale))
            pygame.draw.rect(surface, settings.HIGHLIGHT_COLOR, rect, 3)

        lasso = engine.gestures.lasso_rect()
        if lasso is not None:
            self._draw_lasso(surface, camera, lasso)

        for entry in engine.remote:
            self._draw_remote(surface, camera, engine, entry)

        self._draw_overlay(surface, engine)

    def _draw_piece(self, surface, view, camera, piece):
        x, y = camera.world_to_screen(piece.current_x, piece.current_y)
        rect = pygame.Rect(round(x), round(y), max(1, round(piece.width * camera.scale)),
                           max(1, round(piece.height * camera.scale)))
        if rect.colliderect(view):
            surface.blit(self._scaled_image(piece.image, camera.scale), rect)

    def _draw_reference(self, surface, view, camera, reference):
        image = self._scaled_image(reference.image, camera.scale)
        if image is not reference.image:
            image.set_alpha(reference.image.get_alpha())
        x, y = camera.world_to_screen(reference.x, reference.y)
        rect = image.get_rect(topleft=(round(x), round(y)))
        if rect.colliderect(view):
            surface.blit(image, rect)

    def _screen_outline(self, camera, piece):
        return [camera.world_to_screen(x, y) for x, y in piece.outline()]

    def _draw_outline(self, surface, camera, piece, color):
        pygame.draw.lines(surface, color, True, self._screen_outline(camera, piece), 3)

    def _draw_lasso(self, surface, camera, lasso):
        x, y, w, h = lasso
        sx, sy = camera.world_to_screen(x, y)
        rect = pygame.Rect(round(sx), round(sy), max(1, round(w * camera.scale)),
                           max(1, round(h * camera.scale)))
        fill = pygame.Surface(rect.size, pygame.SRCALPHA)
        fill.fill(settings.LASSO_FILL)
        surface.blit(fill, rect)
        corners = [rect.topleft, rect.topright, rect.bottomright, rect.bottomleft]
        draw_dashed_lines(surface, settings.HIGHLIGHT_COLOR, corners, dash=10, gap=5)

    def _draw_remote(self, surface, camera, engine, entry):
        color = parse_color(entry.color)
        tag_x = tag_y = None
        for pid in entry.piece_ids:
            piece = engine.by_id.get(pid)
            if piece is None:
                continue
            outline = self._screen_outline(camera, piece)
            draw_dashed_lines(surface, color, outline)
            top_left = min(outline, key=lambda pt: pt[0] + pt[1])
            if tag_x is None or top_left[1] < tag_y:
                tag_x, tag_y = top_left
        if entry.reference_selected and engine.reference is not None and engine.reference.visible:
            ref = engine.reference
            x, y = camera.world_to_screen(ref.x, ref.y)
            w, h = ref.width * camera.scale, ref.height * camera.scale
            draw_dashed_lines(surface, color, [(x, y), (x + w, y), (x + w, y + h), (x, y + h)])
            if tag_x is None:
                tag_x, tag_y = x, y
        if tag_x is None:
            return
        text = get_font(settings.FONT_SIZE).render(entry.name, True, (255, 255, 255))
        box = text.get_rect(bottomleft=(round(tag_x), round(tag_y) - 4)).inflate(8, 4)
        pygame.draw.rect(surface, color, box, border_radius=4)
        surface.blit(text, text.get_rect(center=box.center))

    def _draw_overlay(self, surface, engine):
        lines = [f"{engine.progress()}% Complete"]
        label = engine.mode_label()
        if label:
            lines.append(label)
        touches = len(engine.gestures.pointers)
        if touches > 1:
            lines.append(f"Touches: {touches}")
        font = get_font(settings.FONT_SIZE)
        y = 10
        for line in lines:
            text = font.render(line, True, (255, 255, 255))
            box = pygame.Rect(10, y, text.get_width() + 20, text.get_height() + 8)
            shade = pygame.Surface(box.size, pygame.SRCALPHA)
            shade.fill((0, 0, 0, 180))
            surface.blit(shade, box)
            surface.blit(text, (box.x + 10, box.y + 4))
            y += box.height + 4
