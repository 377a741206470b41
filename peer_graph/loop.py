"""
loop.py

The animation loop: owns the graph state, physics, pointer session, theme
and canvas size for one visualizer, and runs simulate -> render -> paint
once per display refresh until torn down.

`tick()` is usable on its own (tests, embedding in another pygame app);
`run()` opens a window and drives everything from pygame's event queue.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pygame

from peer_graph.canvas import PygameCanvas
from peer_graph.config import VisualizerConfig, widget_config
from peer_graph.interaction import (
    POINTER_DOWN,
    POINTER_MOVE,
    POINTER_UP,
    InteractionController,
    PointerEvent,
    normalize_mouse,
    normalize_touch,
)
from peer_graph.model import EdgeSnapshot, GraphState, NodeSnapshot, ingest
from peer_graph.physics import Simulation
from peer_graph.render import DrawCommand, render_frame

logger = logging.getLogger(__name__)

RESIZE = "resize"
QUIT = "quit"


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float
    pixel_ratio: float = 1.0

    @property
    def buffer_size(self) -> Tuple[int, int]:
        """Pixel buffer size: logical size scaled by the device pixel ratio."""
        return (max(1, int(round(self.width * self.pixel_ratio))),
                max(1, int(round(self.height * self.pixel_ratio))))


class AnimationLoop:
    def __init__(
        self,
        config: Optional[VisualizerConfig] = None,
        width: float = 800,
        height: float = 600,
        pixel_ratio: float = 1.0,
        theme: str = "dark",
        on_node_activated: Optional[Callable[[str], None]] = None,
        state: Optional[GraphState] = None,
    ):
        self.config = config or widget_config()
        self.config.palette(theme)  # validates the theme name
        self.theme = theme
        self.viewport = Viewport(float(width), float(height), pixel_ratio)
        self._pending_viewport: Optional[Viewport] = None

        self.state = state if state is not None else GraphState()
        self.simulation = Simulation(self.config.forces, self.viewport.width, self.viewport.height)
        self.controller = InteractionController(self.config.interaction, on_node_activated)

        self.time = 0.0
        self.paused = False
        self.running = False
        self.torn_down = False
        self.frames = 0

        self.canvas: Optional[PygameCanvas] = None
        self.clock: Optional[pygame.time.Clock] = None
        self._owns_display = False

        self.listeners: Dict[str, List[Callable]] = {}
        self.add_listener(POINTER_DOWN, self._on_pointer)
        self.add_listener(POINTER_MOVE, self._on_pointer)
        self.add_listener(POINTER_UP, self._on_pointer)
        self.add_listener(RESIZE, lambda w, h: self.resize(w, h))
        self.add_listener(QUIT, lambda: self.teardown())

    # --- host-facing updates ---

    def ingest(self, nodes: Sequence[NodeSnapshot], edges: Sequence[EdgeSnapshot]):
        vp = self._pending_viewport or self.viewport
        self.state = ingest(self.state, nodes, edges, vp.width, vp.height, self.config.spread_fraction)

    def set_theme(self, theme: str):
        self.config.palette(theme)
        self.theme = theme

    def toggle_theme(self):
        self.set_theme("light" if self.theme == "dark" else "dark")

    def resize(self, width: float, height: float, pixel_ratio: Optional[float] = None):
        """Takes effect at the start of the next tick."""
        ratio = self.viewport.pixel_ratio if pixel_ratio is None else pixel_ratio
        self._pending_viewport = Viewport(float(width), float(height), ratio)

    # --- listeners ---

    def add_listener(self, kind: str, handler: Callable):
        self.listeners.setdefault(kind, []).append(handler)

    def dispatch(self, kind: str, *args):
        for handler in list(self.listeners.get(kind, ())):
            handler(*args)

    def _on_pointer(self, event: PointerEvent):
        self.controller.handle(self.state, event)

    # --- per frame ---

    def _apply_resize(self):
        vp = self._pending_viewport
        if vp is None:
            return
        self._pending_viewport = None
        self.viewport = vp
        self.simulation.resize(vp.width, vp.height)
        if self.canvas is not None and self._owns_display:
            surface = pygame.display.get_surface()
            if surface is not None and surface.get_size() != vp.buffer_size:
                surface = pygame.display.set_mode(vp.buffer_size, pygame.RESIZABLE)
            if surface is not None:
                self.canvas.rebind(surface, vp.pixel_ratio)
        logger.debug("Viewport now %.0fx%.0f @%.2fx", vp.width, vp.height, vp.pixel_ratio)

    def tick(self, dt: Optional[float] = None) -> List[DrawCommand]:
        if self.torn_down:
            return []
        self._apply_resize()

        if not self.paused:
            step = dt if (dt is not None and self.config.measured_time) else self.config.time_step
            self.time += step
            self.simulation.step(self.state, self.time, self.controller.held_id)

        commands = render_frame(
            self.state,
            self.time,
            self.theme,
            self.config,
            self.viewport.width,
            self.viewport.height,
            dragged_id=self.controller.held_id,
            hovered_id=self.controller.hovered_id,
        )
        if self.canvas is not None:
            self.canvas.paint(commands)
        self.frames += 1
        return commands

    # --- pygame driver ---

    def attach(self, surface: pygame.Surface):
        """Paint into an existing surface (embedding in a host pygame app)."""
        self.canvas = PygameCanvas(surface, self.viewport.pixel_ratio)

    def start(self, caption: str = "peer_graph"):
        if self.torn_down:
            logger.warning("Animation loop already torn down; not reopening the display")
            return
        pygame.init()
        pygame.display.set_caption(caption)
        surface = pygame.display.set_mode(self.viewport.buffer_size, pygame.RESIZABLE)
        self._owns_display = True
        self.attach(surface)
        self.clock = pygame.time.Clock()
        self.running = True
        logger.info("Animation loop started (%s preset, %s theme)", self.config.name, self.theme)

    def run(self):
        if not self.running:
            self.start()
        while self.running:
            dt_real = self.clock.tick(self.config.fps) / 1000.0
            for event in pygame.event.get():
                self.handle_pygame_event(event)
            if not self.running:
                break
            self.tick(dt_real)
            pygame.display.flip()
        self.teardown()

    def handle_pygame_event(self, event):
        ratio = self.viewport.pixel_ratio

        if event.type == pygame.QUIT:
            self.dispatch(QUIT)
        elif event.type == pygame.KEYDOWN:
            self.handle_keydown(event.key)
        elif event.type == pygame.VIDEORESIZE:
            self.dispatch(RESIZE, event.w / ratio, event.h / ratio)

        # Touch input also produces synthetic mouse events; keep only the finger ones.
        elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.MOUSEBUTTONUP, pygame.MOUSEMOTION):
            if getattr(event, "touch", False):
                return
            x, y = normalize_mouse(event.pos, ratio)
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.dispatch(POINTER_DOWN, PointerEvent(POINTER_DOWN, x, y))
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self.dispatch(POINTER_UP, PointerEvent(POINTER_UP, x, y))
            elif event.type == pygame.MOUSEMOTION:
                self.dispatch(POINTER_MOVE, PointerEvent(POINTER_MOVE, x, y))
        elif event.type in (pygame.FINGERDOWN, pygame.FINGERUP, pygame.FINGERMOTION):
            x, y = normalize_touch(event.x, event.y, self.viewport.buffer_size, ratio)
            kind = {
                pygame.FINGERDOWN: POINTER_DOWN,
                pygame.FINGERUP: POINTER_UP,
                pygame.FINGERMOTION: POINTER_MOVE,
            }[event.type]
            self.dispatch(kind, PointerEvent(kind, x, y))

    def handle_keydown(self, key):
        if key == pygame.K_ESCAPE:
            self.dispatch(QUIT)
        if key == pygame.K_t:
            self.toggle_theme()
        if key == pygame.K_SPACE:
            self.paused = not self.paused

    # --- teardown ---

    def teardown(self):
        """Stop scheduling frames and detach everything. Safe to call twice."""
        if self.torn_down:
            return
        self.torn_down = True
        self.running = False
        self.listeners.clear()
        self.controller.reset()
        self.canvas = None
        if self._owns_display:
            self._owns_display = False
            pygame.quit()
        logger.info("Animation loop torn down after %d frames", self.frames)
