"""
config.py

Configuration for the peer graph visualizer.

Both the compact dashboard widget and the admin console view are built from
the same engine; what differs between them is captured here as a
`VisualizerConfig` preset (force constants, palette, enabled interactions).
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

RGBA = Tuple[int, int, int, int]
ColorStop = Tuple[float, RGBA]

THEMES = ("dark", "light")


# ---------- Color helpers ----------


def hex_to_rgb(hex_str: str) -> Tuple[int, int, int]:
    """Convert '#rrggbb', 'rrggbb' or '#rgb' to an (r, g, b) tuple; anything else is white."""
    digits = (hex_str or "").strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    try:
        r, g, b = bytes.fromhex(digits)
    except ValueError:
        return (255, 255, 255)
    return (r, g, b)


def rgba(hex_str: str, alpha: float = 1.0) -> RGBA:
    """Hex color plus a 0..1 alpha -> (r, g, b, a) with a in 0..255."""
    r, g, b = hex_to_rgb(hex_str)
    a = int(round(max(0.0, min(1.0, alpha)) * 255))
    return (r, g, b, a)


def with_alpha(color: RGBA, alpha: float) -> RGBA:
    a = int(round(max(0.0, min(1.0, alpha)) * 255))
    return (color[0], color[1], color[2], a)


# ---------- Config groups ----------


@dataclass(frozen=True)
class ForceConfig:
    repulsion: float = 800.0
    attraction: float = 0.003
    damping: float = 0.92
    center_gravity: float = 0.002
    drift_strength: float = 0.04
    drift_frequency_x: float = 0.3
    drift_frequency_y: float = 0.25
    drift_phase_skew: float = 1.3
    margin: float = 24.0
    min_distance: float = 1.0


@dataclass(frozen=True)
class InteractionConfig:
    hit_radius: float = 22.0
    drag_threshold: float = 8.0
    drag_enabled: bool = True
    tap_enabled: bool = True
    hover_enabled: bool = False


@dataclass(frozen=True)
class ThemePalette:
    """All colors one theme needs. Gradient stops are (offset, rgba) pairs."""

    background: Tuple[ColorStop, ...]
    ambient_dot: RGBA
    ambient_alpha: Tuple[float, float]  # base, twinkle range
    edge_active: RGBA
    edge_idle: RGBA
    orb_active: Tuple[ColorStop, ...]
    orb_connected: Tuple[ColorStop, ...]
    orb_idle: Tuple[ColorStop, ...]
    aura: RGBA
    border: RGBA
    privileged_border: RGBA
    hover_ring: RGBA
    label: RGBA
    name_text: RGBA
    name_pill: RGBA
    legend_fill: RGBA
    legend_border: RGBA
    legend_text: RGBA


# Orb gradients shared by both themes; only the chrome around them differs.
_ORB_ACTIVE = (
    (0.0, rgba("#86efac", 0.95)),
    (0.4, rgba("#22c55e", 0.85)),
    (1.0, rgba("#16a34a", 0.7)),
)
_ORB_VIOLET = (
    (0.0, rgba("#c4b5fd", 0.85)),
    (0.4, rgba("#8b5cf6", 0.7)),
    (1.0, rgba("#6366f1", 0.55)),
)
_ORB_BLUE = (
    (0.0, rgba("#bfdbfe", 0.9)),
    (0.4, rgba("#3b82f6", 0.8)),
    (1.0, rgba("#1d4ed8", 0.65)),
)
_ORB_SLATE = (
    (0.0, rgba("#cbd5e1", 0.8)),
    (0.4, rgba("#64748b", 0.7)),
    (1.0, rgba("#475569", 0.55)),
)


def _dark_palette(**overrides) -> ThemePalette:
    palette = ThemePalette(
        background=(
            (0.0, rgba("#1a2332")),
            (0.5, rgba("#121c2b")),
            (1.0, rgba("#0c1421")),
        ),
        ambient_dot=rgba("#ffffff", 0.15),
        ambient_alpha=(0.05, 0.12),
        edge_active=rgba("#22c55e", 0.6),
        edge_idle=rgba("#8b5cf6", 0.4),
        orb_active=_ORB_ACTIVE,
        orb_connected=_ORB_VIOLET,
        orb_idle=_ORB_VIOLET,
        aura=rgba("#22c55e", 0.2),
        border=rgba("#ffffff", 0.25),
        privileged_border=rgba("#f59e0b", 0.9),
        hover_ring=rgba("#ffffff", 0.6),
        label=rgba("#ffffff"),
        name_text=rgba("#ffffff", 0.7),
        name_pill=rgba("#0f1421", 0.75),
        legend_fill=rgba("#0f1421", 0.6),
        legend_border=rgba("#ffffff", 0.1),
        legend_text=rgba("#ffffff", 0.5),
    )
    return replace(palette, **overrides)


def _light_palette(**overrides) -> ThemePalette:
    palette = ThemePalette(
        background=(
            (0.0, rgba("#f8fafc")),
            (0.5, rgba("#f1f5f9")),
            (1.0, rgba("#e8edf3")),
        ),
        ambient_dot=rgba("#000000", 0.06),
        ambient_alpha=(0.3, 0.4),
        edge_active=rgba("#22c55e", 0.6),
        edge_idle=rgba("#8b5cf6", 0.4),
        orb_active=_ORB_ACTIVE,
        orb_connected=_ORB_VIOLET,
        orb_idle=_ORB_VIOLET,
        aura=rgba("#22c55e", 0.2),
        border=rgba("#000000", 0.12),
        privileged_border=rgba("#d97706", 0.9),
        hover_ring=rgba("#0f172a", 0.5),
        label=rgba("#ffffff"),
        name_text=rgba("#000000", 0.6),
        name_pill=rgba("#f1f5f9", 0.8),
        legend_fill=rgba("#ffffff", 0.5),
        legend_border=rgba("#000000", 0.08),
        legend_text=rgba("#000000", 0.45),
    )
    return replace(palette, **overrides)


# ---------- Visualizer config ----------


@dataclass(frozen=True)
class VisualizerConfig:
    name: str = "widget"
    forces: ForceConfig = field(default_factory=ForceConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    palettes: Dict[str, ThemePalette] = field(
        default_factory=lambda: {"dark": _dark_palette(), "light": _light_palette()}
    )
    background_style: str = "radial"  # radial | linear
    ambient_dots: int = 30
    edge_particles: int = 2
    show_glyphs: bool = True
    show_legend: bool = True
    show_chat_badge: bool = True
    show_privileged: bool = False
    spread_fraction: float = 0.28
    time_step: float = 0.016
    measured_time: bool = False
    fps: int = 60

    def palette(self, theme: str) -> ThemePalette:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme '{theme}', expected one of {THEMES}")
        return self.palettes[theme]

    def with_overrides(self, **changes) -> "VisualizerConfig":
        """Copy with top-level fields replaced.

        `forces=` / `interaction=` may be given as dicts, in which case only the
        named fields of that group change.
        """
        for group in ("forces", "interaction"):
            value = changes.get(group)
            if isinstance(value, dict):
                changes[group] = replace(getattr(self, group), **value)
        return replace(self, **changes)


def widget_config() -> VisualizerConfig:
    """Compact dashboard widget: radial glow, twinkling dots, drag to reposition."""
    return VisualizerConfig()


def admin_config() -> VisualizerConfig:
    """Admin console view: flat linear background, hover highlighting,
    privileged borders and a distinct color for connected-but-idle users."""
    return VisualizerConfig(
        name="admin",
        interaction=InteractionConfig(drag_enabled=False, hover_enabled=True),
        palettes={
            "dark": _dark_palette(
                background=((0.0, rgba("#0f172a")), (1.0, rgba("#1e293b"))),
                orb_connected=_ORB_BLUE,
                orb_idle=_ORB_SLATE,
                edge_idle=rgba("#3b82f6", 0.4),
            ),
            "light": _light_palette(
                background=((0.0, rgba("#ffffff")), (1.0, rgba("#e2e8f0"))),
                orb_connected=_ORB_BLUE,
                orb_idle=_ORB_SLATE,
                edge_idle=rgba("#3b82f6", 0.4),
            ),
        },
        background_style="linear",
        ambient_dots=0,
        edge_particles=1,
        show_chat_badge=False,
        show_privileged=True,
    )


PRESETS = {
    "widget": widget_config,
    "admin": admin_config,
}


def get_preset(name: str) -> VisualizerConfig:
    try:
        return PRESETS[name]()
    except KeyError:
        raise KeyError(f"Unknown preset '{name}', expected one of {sorted(PRESETS)}") from None
