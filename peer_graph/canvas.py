"""
canvas.py

pygame backend for the draw commands produced by `render.py`.

pygame.draw has no alpha blending or gradients, so translucent shapes are
drawn onto a small SRCALPHA layer first and blitted, and gradients are
built from concentric layers (the same trick the star glows use).
Commands are in logical pixels; `scale` maps them to device pixels.
"""

import math
from typing import Callable, Dict, Iterable, Sequence, Tuple

import pygame

from peer_graph.config import RGBA, ColorStop
from peer_graph.render import (
    Circle,
    DrawCommand,
    LinearGradientRect,
    Line,
    RadialGradientCircle,
    RadialGradientRect,
    RoundRect,
    Text,
)

FONT_NAME = "consolas"
BACKGROUND_DOWNSAMPLE = 8
MAX_GRADIENT_LAYERS = 24
_CACHE_LIMIT = 8


def lerp_color(a: RGBA, b: RGBA, t: float) -> RGBA:
    return tuple(int(round(a[i] + (b[i] - a[i]) * t)) for i in range(4))


def sample_stops(stops: Sequence[ColorStop], t: float) -> RGBA:
    """Color of a gradient at offset t in [0, 1]."""
    if t <= stops[0][0]:
        return stops[0][1]
    for (o1, c1), (o2, c2) in zip(stops, stops[1:]):
        if t <= o2:
            span = o2 - o1
            return lerp_color(c1, c2, (t - o1) / span if span > 0 else 1.0)
    return stops[-1][1]


class PygameCanvas:
    def __init__(self, surface: pygame.Surface, scale: float = 1.0, font_name: str = FONT_NAME):
        if not pygame.font.get_init():
            pygame.font.init()
        self.surface = surface
        self.scale = scale
        self.font_name = font_name
        self._fonts: Dict[Tuple[int, bool], pygame.font.Font] = {}
        self._backgrounds: Dict[tuple, pygame.Surface] = {}

    def rebind(self, surface: pygame.Surface, scale: float):
        self.surface = surface
        if scale != self.scale:
            self._fonts.clear()
        self.scale = scale
        self._backgrounds.clear()

    # --- helpers ---

    def _px(self, v: float) -> int:
        return int(round(v * self.scale))

    def _pt(self, p) -> Tuple[int, int]:
        return (self._px(p[0]), self._px(p[1]))

    def font(self, size: int, bold: bool = False) -> pygame.font.Font:
        key = (max(1, self._px(size)), bold)
        if key not in self._fonts:
            self._fonts[key] = pygame.font.SysFont(self.font_name, key[0], bold=bold)
        return self._fonts[key]

    def _layer(self, x: int, y: int, w: int, h: int,
               draw_fn: Callable[[pygame.Surface, int, int], None]):
        """Draw with an (ox, oy) offset onto a transparent layer, then blend it in."""
        if w <= 0 or h <= 0:
            return
        layer = pygame.Surface((w, h), pygame.SRCALPHA)
        draw_fn(layer, -x, -y)
        self.surface.blit(layer, (x, y))

    # --- dispatch ---

    def paint(self, commands: Iterable[DrawCommand]):
        for cmd in commands:
            self.draw(cmd)

    def draw(self, cmd: DrawCommand):
        if isinstance(cmd, Circle):
            self.draw_circle(cmd)
        elif isinstance(cmd, Line):
            self.draw_line(cmd)
        elif isinstance(cmd, RadialGradientCircle):
            self.draw_radial_circle(cmd)
        elif isinstance(cmd, Text):
            self.draw_text(cmd)
        elif isinstance(cmd, RoundRect):
            self.draw_round_rect(cmd)
        elif isinstance(cmd, (RadialGradientRect, LinearGradientRect)):
            self.draw_background(cmd)
        else:
            raise TypeError(f"Unsupported draw command: {cmd!r}")

    # --- primitives ---

    def draw_circle(self, cmd: Circle):
        if cmd.color[3] == 0:
            return
        cx, cy = self._pt(cmd.center)
        r = max(1, self._px(cmd.radius))
        width = 0 if cmd.width <= 0 else max(1, min(r, self._px(cmd.width)))

        if cmd.color[3] == 255:
            pygame.draw.circle(self.surface, cmd.color, (cx, cy), r, width)
            return
        self._layer(
            cx - r - 1, cy - r - 1, 2 * r + 3, 2 * r + 3,
            lambda layer, ox, oy: pygame.draw.circle(layer, cmd.color, (cx + ox, cy + oy), r, width),
        )

    def draw_radial_circle(self, cmd: RadialGradientCircle):
        cx, cy = self._pt(cmd.center)
        fx, fy = self._pt(cmd.focus) if cmd.focus is not None else (cx, cy)
        r = max(1, self._px(cmd.radius))
        steps = max(4, min(MAX_GRADIENT_LAYERS, r))

        def paint_layers(layer, ox, oy):
            # Outer to inner; pygame.draw overwrites, so each ring keeps its own stop color.
            for i in range(steps):
                t = 1.0 - i / steps
                lx = fx + (cx - fx) * t
                ly = fy + (cy - fy) * t
                ri = max(1, int(round(r * t)))
                pygame.draw.circle(layer, sample_stops(cmd.stops, t), (int(lx) + ox, int(ly) + oy), ri)

        self._layer(cx - r - 1, cy - r - 1, 2 * r + 3, 2 * r + 3, paint_layers)

    def draw_line(self, cmd: Line):
        x1, y1 = self._pt(cmd.start)
        x2, y2 = self._pt(cmd.end)
        width = max(1, self._px(cmd.width))
        glow = self._px(cmd.glow)
        pad = width + glow + 2
        left, top = min(x1, x2) - pad, min(y1, y2) - pad
        w, h = abs(x2 - x1) + 2 * pad, abs(y2 - y1) + 2 * pad

        def paint_line(layer, ox, oy):
            a, b = (x1 + ox, y1 + oy), (x2 + ox, y2 + oy)
            if glow > 0:
                # soft halo: progressively narrower, stronger strokes
                for k in (3, 2, 1):
                    halo = (cmd.color[0], cmd.color[1], cmd.color[2], cmd.color[3] // (k + 1))
                    pygame.draw.line(layer, halo, a, b, width + glow * k // 3)
            pygame.draw.line(layer, cmd.color, a, b, width)

        self._layer(left, top, w, h, paint_line)

    def draw_round_rect(self, cmd: RoundRect):
        x, y = self._px(cmd.rect[0]), self._px(cmd.rect[1])
        w, h = max(1, self._px(cmd.rect[2])), max(1, self._px(cmd.rect[3]))
        radius = self._px(cmd.radius)

        def paint_rect(layer, ox, oy):
            rect = pygame.Rect(x + ox, y + oy, w, h)
            if cmd.fill is not None:
                pygame.draw.rect(layer, cmd.fill, rect, border_radius=radius)
            if cmd.border is not None and cmd.border_width > 0:
                pygame.draw.rect(layer, cmd.border, rect, max(1, self._px(cmd.border_width)),
                                 border_radius=radius)

        self._layer(x, y, w + 1, h + 1, paint_rect)

    def draw_text(self, cmd: Text):
        if not cmd.text:
            return
        surf = self.font(cmd.size, cmd.bold).render(cmd.text, True, cmd.color[:3])
        if cmd.color[3] < 255:
            surf.set_alpha(cmd.color[3])
        x, y = self._pt(cmd.pos)
        if cmd.align == "center":
            x -= surf.get_width() // 2
        self.surface.blit(surf, (x, y - surf.get_height() // 2))

    # --- backgrounds ---

    def draw_background(self, cmd):
        key = (cmd, self.scale)
        tile = self._backgrounds.get(key)
        if tile is None:
            tile = self._build_background(cmd)
            if len(self._backgrounds) >= _CACHE_LIMIT:
                self._backgrounds.clear()
            self._backgrounds[key] = tile
        self.surface.blit(tile, (self._px(cmd.rect[0]), self._px(cmd.rect[1])))

    def _build_background(self, cmd) -> pygame.Surface:
        w = max(1, self._px(cmd.rect[2]))
        h = max(1, self._px(cmd.rect[3]))
        sw = max(2, w // BACKGROUND_DOWNSAMPLE)
        sh = max(2, h // BACKGROUND_DOWNSAMPLE)
        small = pygame.Surface((sw, sh), pygame.SRCALPHA)

        if isinstance(cmd, LinearGradientRect):
            for row in range(sh):
                color = sample_stops(cmd.stops, row / (sh - 1))
                pygame.draw.line(small, color, (0, row), (sw - 1, row))
        else:
            small.fill(cmd.stops[-1][1])
            factor = sw / float(w)
            cx = (cmd.center[0] - cmd.rect[0]) * self.scale * factor
            cy = (cmd.center[1] - cmd.rect[1]) * self.scale * factor
            radius = cmd.radius * self.scale * factor
            # enough rings that neighbours differ by about one pixel
            rings = max(2, int(math.ceil(radius)))
            for i in range(rings):
                t = 1.0 - i / rings
                pygame.draw.circle(small, sample_stops(cmd.stops, t), (int(cx), int(cy)),
                                   max(1, int(round(radius * t))))
        return pygame.transform.smoothscale(small, (w, h))
