"""
interaction.py

Pointer handling: press on a node, then either release quickly (a tap,
which activates that person) or move far enough to drag them around.

Mouse and touch input both arrive here as `PointerEvent`s already in
canvas-relative logical pixels.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from peer_graph.config import InteractionConfig
from peer_graph.model import GraphState, Node

logger = logging.getLogger(__name__)

POINTER_DOWN = "pointerdown"
POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"


@dataclass(frozen=True)
class PointerEvent:
    kind: str
    x: float
    y: float


def normalize_mouse(pos: Tuple[float, float], pixel_ratio: float = 1.0,
                    origin: Tuple[float, float] = (0.0, 0.0)) -> Tuple[float, float]:
    """Window pixel position -> canvas-relative logical coordinates."""
    return ((pos[0] - origin[0]) / pixel_ratio, (pos[1] - origin[1]) / pixel_ratio)


def normalize_touch(fx: float, fy: float, window_size: Tuple[int, int], pixel_ratio: float = 1.0,
                    origin: Tuple[float, float] = (0.0, 0.0)) -> Tuple[float, float]:
    """Finger events carry 0..1 fractions of the window; scale them first."""
    return normalize_mouse((fx * window_size[0], fy * window_size[1]), pixel_ratio, origin)


def hit_test(state: GraphState, x: float, y: float, radius: float) -> Optional[Node]:
    # First node within the radius in snapshot order, not the nearest one.
    for node in state.nodes:
        if math.hypot(node.x - x, node.y - y) < radius:
            return node
    return None


# ---------- Session states ----------


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pressed:
    node_id: str
    start: Tuple[float, float]


@dataclass(frozen=True)
class Dragging:
    node_id: str


SessionState = Union[Idle, Pressed, Dragging]


class InteractionController:
    def __init__(
        self,
        config: InteractionConfig,
        on_node_activated: Optional[Callable[[str], None]] = None,
    ):
        self.config = config
        self.on_node_activated = on_node_activated
        self.session: SessionState = Idle()
        self.hovered_id: Optional[str] = None
        self.pointer: Optional[Tuple[float, float]] = None

    @property
    def held_id(self) -> Optional[str]:
        """Node under the pointer session, exempt from physics while held.

        Without drag-to-reposition nobody is ever held; physics keeps running.
        """
        if not self.config.drag_enabled:
            return None
        if isinstance(self.session, (Pressed, Dragging)):
            return self.session.node_id
        return None

    @property
    def dragged_id(self) -> Optional[str]:
        if isinstance(self.session, Dragging):
            return self.session.node_id
        return None

    def _within_threshold(self, session: Pressed, x: float, y: float) -> bool:
        sx, sy = session.start
        threshold = self.config.drag_threshold
        return abs(x - sx) < threshold and abs(y - sy) < threshold

    def _set(self, session: SessionState):
        logger.debug("Pointer session %s -> %s", self.session, session)
        self.session = session

    def handle(self, state: GraphState, event: PointerEvent):
        if event.kind == POINTER_DOWN:
            self.pointer_down(state, event.x, event.y)
        elif event.kind == POINTER_MOVE:
            self.pointer_move(state, event.x, event.y)
        elif event.kind == POINTER_UP:
            self.pointer_up(state, event.x, event.y)

    def pointer_down(self, state: GraphState, x: float, y: float):
        self.pointer = (x, y)
        node = hit_test(state, x, y, self.config.hit_radius)
        if node is not None:
            self._set(Pressed(node.id, (x, y)))

    def pointer_move(self, state: GraphState, x: float, y: float):
        self.pointer = (x, y)
        session = self.session

        if isinstance(session, Idle):
            if self.config.hover_enabled:
                node = hit_test(state, x, y, self.config.hit_radius)
                self.hovered_id = node.id if node is not None else None
            return

        if isinstance(session, Pressed):
            if self._within_threshold(session, x, y):
                return
            self._set(Dragging(session.node_id))

        if self.config.drag_enabled:
            node = state.get(self.session.node_id)
            if node is not None:
                node.x = x
                node.y = y
                node.vx = 0.0
                node.vy = 0.0

    def pointer_up(self, state: GraphState, x: float, y: float):
        self.pointer = (x, y)
        session = self.session
        self._set(Idle())
        # a release can arrive without any move event in between
        if not isinstance(session, Pressed) or not self._within_threshold(session, x, y):
            return
        if not self.config.tap_enabled or self.on_node_activated is None:
            return
        node = state.get(session.node_id)
        if node is not None and not node.is_self:
            self.on_node_activated(node.id)

    def reset(self):
        self.session = Idle()
        self.hovered_id = None
        self.pointer = None
