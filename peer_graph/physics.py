"""
physics.py

Force-directed layout step: pairwise repulsion, edge springs, center
gravity, a gentle per-node drift, then damping and integration.

Everything is O(n^2) per step, which is fine for the few dozen people a
social graph shows at once.
"""

import logging
import math
from typing import Optional, Tuple

from peer_graph.config import ForceConfig
from peer_graph.model import GraphState, Node

logger = logging.getLogger(__name__)


def repulsion_force(distance: float, strength: float, min_distance: float = 1.0) -> float:
    """Inverse-square magnitude; distance is clamped so coincident nodes stay finite."""
    d = max(distance, min_distance)
    return strength / (d * d)


def spring_force(distance: float, stiffness: float) -> float:
    return distance * stiffness


def drift(time: float, phase: float, forces: ForceConfig) -> Tuple[float, float]:
    """Ambient nudge for one node; a pure function of (time, phase)."""
    dx = math.sin(time * forces.drift_frequency_x + phase) * forces.drift_strength
    dy = math.cos(time * forces.drift_frequency_y + phase * forces.drift_phase_skew) * forces.drift_strength
    return dx, dy


def _finite(node: Node) -> bool:
    return all(math.isfinite(v) for v in (node.x, node.y, node.vx, node.vy))


class Simulation:
    def __init__(self, forces: ForceConfig, width: float, height: float):
        self.forces = forces
        self.width = width
        self.height = height

    def resize(self, width: float, height: float):
        self.width = width
        self.height = height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)

    def clamp(self, node: Node):
        m = self.forces.margin
        node.x = max(m, min(self.width - m, node.x))
        node.y = max(m, min(self.height - m, node.y))

    def recover(self, node: Node):
        logger.warning("Node %r had non-finite physics state; resetting to center", node.id)
        node.x, node.y = self.center
        node.vx = 0.0
        node.vy = 0.0

    # --- main step ---

    def step(self, state: GraphState, time: float, dragged_id: Optional[str] = None):
        """Advance every node except `dragged_id` by one frame, in place."""
        f = self.forces
        cx, cy = self.center
        nodes = state.nodes

        for node in nodes:
            if node.id != dragged_id and not _finite(node):
                self.recover(node)

        free = [n for n in nodes if n.id != dragged_id]

        # Repulsion over unordered pairs; a held node still pushes others away.
        for i in range(len(nodes)):
            a = nodes[i]
            for j in range(i + 1, len(nodes)):
                b = nodes[j]
                dx = a.x - b.x
                dy = a.y - b.y
                dist = max(math.hypot(dx, dy), f.min_distance)
                force = repulsion_force(dist, f.repulsion, f.min_distance)
                fx = dx / dist * force
                fy = dy / dist * force
                if a.id != dragged_id:
                    a.vx += fx
                    a.vy += fy
                if b.id != dragged_id:
                    b.vx -= fx
                    b.vy -= fy

        for node in free:
            node.vx += (cx - node.x) * f.center_gravity
            node.vy += (cy - node.y) * f.center_gravity
            ddx, ddy = drift(time, node.phase, f)
            node.vx += ddx
            node.vy += ddy

        for source, target in state.resolve_edges():
            dx = target.x - source.x
            dy = target.y - source.y
            dist = math.hypot(dx, dy) or 1.0
            force = spring_force(dist, f.attraction)
            fx = dx / dist * force
            fy = dy / dist * force
            if source.id != dragged_id:
                source.vx += fx
                source.vy += fy
            if target.id != dragged_id:
                target.vx -= fx
                target.vy -= fy

        for node in free:
            node.vx *= f.damping
            node.vy *= f.damping
            node.x += node.vx
            node.y += node.vy
            if not _finite(node):
                self.recover(node)
            self.clamp(node)
