"""
render.py

Turns the current graph state into a list of draw commands.

Nothing here touches pygame or keeps state between frames: the same
(state, time, theme, config) always produces the same command list, which
`canvas.PygameCanvas` then paints. Coordinates are logical pixels.
"""

import bisect
import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple, Union

from peer_graph.config import RGBA, ColorStop, ThemePalette, VisualizerConfig, rgba, with_alpha
from peer_graph.model import GraphState, Node

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]

SELF_RADIUS = 14.0
PEER_RADIUS = 11.0


# ---------- Draw commands ----------


@dataclass(frozen=True)
class LinearGradientRect:
    rect: Rect
    stops: Tuple[ColorStop, ...]


@dataclass(frozen=True)
class RadialGradientRect:
    rect: Rect
    center: Point
    radius: float
    stops: Tuple[ColorStop, ...]


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float
    color: RGBA
    width: float = 0.0  # 0 = filled


@dataclass(frozen=True)
class RadialGradientCircle:
    center: Point
    radius: float
    stops: Tuple[ColorStop, ...]
    focus: Optional[Point] = None  # where the first stop sits; defaults to center


@dataclass(frozen=True)
class Line:
    start: Point
    end: Point
    color: RGBA
    width: float = 1.0
    glow: float = 0.0  # blur radius of a soft halo around the stroke


@dataclass(frozen=True)
class RoundRect:
    rect: Rect
    radius: float
    fill: Optional[RGBA]
    border: Optional[RGBA] = None
    border_width: float = 0.0


@dataclass(frozen=True)
class Text:
    text: str
    pos: Point
    color: RGBA
    size: int
    bold: bool = False
    align: str = "center"  # center | left; always vertically centered


DrawCommand = Union[
    LinearGradientRect, RadialGradientRect, Circle, RadialGradientCircle, Line, RoundRect, Text
]


# ---------- Status glyphs ----------


class StatusGlyph(NamedTuple):
    threshold: float
    symbol: str
    label: str
    color: RGBA


STATUS_GLYPHS = (
    StatusGlyph(4, "⚡", "Fat burn", rgba("#f97316")),
    StatusGlyph(8, "\U0001f525", "Ketosis", rgba("#ef4444")),
    StatusGlyph(12, "\U0001f9e0", "Clarity", rgba("#3b82f6")),
    StatusGlyph(16, "✨", "Autophagy", rgba("#10b981")),
    StatusGlyph(24, "\U0001f31f", "Renewal", rgba("#a855f7")),
)
_THRESHOLDS = [g.threshold for g in STATUS_GLYPHS]


def status_glyph(magnitude: float) -> Optional[StatusGlyph]:
    """Highest bucket whose threshold `magnitude` has reached, or None below the first."""
    if not math.isfinite(magnitude):
        return None
    idx = bisect.bisect_right(_THRESHOLDS, magnitude) - 1
    if idx < 0:
        return None
    return STATUS_GLYPHS[idx]


# ---------- Small helpers ----------


def node_status(node: Node, connected_ids: set) -> str:
    if node.is_active:
        return "active"
    if node.id in connected_ids:
        return "connected"
    return "idle"


def orb_label(node: Node) -> str:
    if node.is_self:
        return "You"
    if len(node.label) > 4:
        return node.label[0].upper()
    return node.label


def short_name(node: Node, limit: int = 10) -> str:
    return node.label[:limit]


def breath(node: Node, time: float) -> float:
    if not node.is_active:
        return 1.0
    return 1.0 + math.sin(time * 1.5 + node.phase) * 0.08


def _scaled_stops(stops, factor: float):
    return tuple((off, with_alpha(c, c[3] / 255.0 * factor)) for off, c in stops)


# ---------- Layers ----------


def background_commands(width: float, height: float, time: float,
                        palette: ThemePalette, config: VisualizerConfig) -> List[DrawCommand]:
    rect = (0.0, 0.0, float(width), float(height))
    if config.background_style == "linear":
        cmds: List[DrawCommand] = [LinearGradientRect(rect, palette.background)]
    else:
        cmds = [RadialGradientRect(rect, (width / 2.0, height / 2.0),
                                   max(width, height) * 0.7, palette.background)]

    if width <= 0 or height <= 0:
        return cmds
    base, span = palette.ambient_alpha
    for s in range(config.ambient_dots):
        sx = (s * 137.5 + 42) % width
        sy = (s * 97.3 + 18) % height
        twinkle = math.sin(time * 0.5 + s * 1.7) * 0.5 + 0.5
        cmds.append(Circle((sx, sy), 0.8, with_alpha(palette.ambient_dot, base + twinkle * span)))
    return cmds


def edge_commands(state: GraphState, time: float, palette: ThemePalette,
                  config: VisualizerConfig) -> List[DrawCommand]:
    cmds: List[DrawCommand] = []
    for source, target in state.resolve_edges():
        both_active = source.is_active and target.is_active
        color = palette.edge_active if both_active else palette.edge_idle
        a = color[3] / 255.0

        # wide blurred halo, then the crisp line on top
        cmds.append(Line(source.pos, target.pos, with_alpha(color, a * 0.55), 2.0, glow=10.0))
        cmds.append(Line(source.pos, target.pos, color, 1.0))

        count = config.edge_particles
        for p in range(count):
            t = (time * 0.3 + p / count) % 1.0
            px = source.x + (target.x - source.x) * t
            py = source.y + (target.y - source.y) * t
            alpha = math.sin(t * math.pi) * (0.8 if both_active else 0.64)
            cmds.append(Circle((px, py), 2.0, with_alpha(color, alpha)))
    return cmds


def node_commands(node: Node, time: float, palette: ThemePalette, config: VisualizerConfig,
                  status: str, dragged_id: Optional[str] = None,
                  hovered_id: Optional[str] = None) -> List[DrawCommand]:
    cmds: List[DrawCommand] = []
    x, y = node.x, node.y
    r = (SELF_RADIUS if node.is_self else PEER_RADIUS) * breath(node, time)

    if node.is_active:
        aura_a = palette.aura[3] / 255.0
        cmds.append(RadialGradientCircle((x, y), r * 2.5, (
            (0.0, palette.aura),
            (0.4, palette.aura),
            (0.76, with_alpha(palette.aura, aura_a * 0.25)),
            (1.0, with_alpha(palette.aura, 0.0)),
        )))
        pulse = math.sin(time * 1.5 + node.phase + 1.0) * 0.5 + 0.5
        cmds.append(Circle((x, y), r + 3 + pulse * 4, with_alpha(palette.aura, 0.15 + pulse * 0.2), 1.5))

    orb = {"active": palette.orb_active, "connected": palette.orb_connected}.get(status, palette.orb_idle)
    cmds.append(RadialGradientCircle((x, y), r, orb, focus=(x - r * 0.3, y - r * 0.35)))

    # specular highlight toward the upper left
    cmds.append(RadialGradientCircle((x - r * 0.1, y - r * 0.1), r * 0.7, (
        (0.0, rgba("#ffffff", 0.55)),
        (0.4, rgba("#ffffff", 0.15)),
        (1.0, rgba("#ffffff", 0.0)),
    ), focus=(x - r * 0.35, y - r * 0.35)))

    if config.show_privileged and node.is_privileged:
        cmds.append(Circle((x, y), r, palette.privileged_border, 2.5))
    else:
        cmds.append(Circle((x, y), r, palette.border, 1.0))

    if node.id == hovered_id or node.id == dragged_id:
        cmds.append(Circle((x, y), r + 5, palette.hover_ring, 1.5))

    cmds.append(Text(orb_label(node), (x, y), palette.label, 9 if node.is_self else 8, bold=True))

    name = short_name(node)
    name_y = y + r + 11
    pad = 3.0
    name_w = len(name) * 5.6
    cmds.append(RoundRect((x - name_w / 2 - pad, name_y - 6, name_w + pad * 2, 12), 3, palette.name_pill))
    cmds.append(Text(name, (x, name_y), palette.name_text, 10))

    if config.show_chat_badge and config.interaction.tap_enabled and not node.is_self:
        bx = x + r * 0.7
        by = y - r * 0.7
        cmds.append(Circle((bx, by), 5.5, rgba("#ffffff", 0.85)))
        for d in (-1, 0, 1):
            cmds.append(Circle((bx + d * 2, by), 0.8, rgba("#000000", 0.45)))

    if config.show_glyphs and node.is_active:
        glyph = status_glyph(node.activity_magnitude)
        if glyph is not None:
            cmds.append(Text(glyph.symbol, (x, y + r + 22), glyph.color, 11))
    return cmds


def legend_commands(palette: ThemePalette, config: VisualizerConfig) -> List[DrawCommand]:
    """Fixed panel in the top-left corner; it never looks at the graph."""
    items = [("dot", palette.orb_active[1][1], "Active")]
    if palette.orb_connected != palette.orb_idle:
        items.append(("dot", palette.orb_connected[1][1], "Connected"))
    items.append(("dot", palette.orb_idle[1][1], "Idle"))
    if config.show_glyphs:
        for g in STATUS_GLYPHS:
            items.append(("symbol", g.symbol, f"{g.threshold:g}h+"))

    lx, ly = 6.0, 8.0
    line_h = 13.0
    box_w = 64.0
    box_h = len(items) * line_h + 8
    cmds: List[DrawCommand] = [
        RoundRect((lx, ly, box_w, box_h), 6, palette.legend_fill, palette.legend_border, 0.5)
    ]
    for idx, (kind, mark, label) in enumerate(items):
        iy = ly + 10 + idx * line_h
        if kind == "dot":
            cmds.append(Circle((lx + 9, iy), 3, with_alpha(mark, 1.0)))
            cmds.append(Text(label, (lx + 16, iy), palette.legend_text, 8, align="left"))
        else:
            cmds.append(Text(f"{mark} {label}", (lx + 5, iy), palette.legend_text, 8, align="left"))
    return cmds


# ---------- Frame ----------


def render_frame(
    state: GraphState,
    time: float,
    theme: str,
    config: VisualizerConfig,
    width: float,
    height: float,
    dragged_id: Optional[str] = None,
    hovered_id: Optional[str] = None,
) -> List[DrawCommand]:
    palette = config.palette(theme)
    cmds = background_commands(width, height, time, palette, config)
    if not state.nodes:
        # nothing to explain yet, so no legend either
        return cmds
    cmds.extend(edge_commands(state, time, palette, config))
    connected = state.connected_ids()
    for node in state.nodes:
        status = node_status(node, connected)
        cmds.extend(node_commands(node, time, palette, config, status, dragged_id, hovered_id))
    if config.show_legend:
        cmds.extend(legend_commands(palette, config))
    return cmds
