"""peer_graph: interactive force-directed view of a small social graph.

A "you" node plus connected peers, laid out by a small physics simulation,
painted with pygame, with tap-to-activate and drag-to-reposition.
"""

from peer_graph.config import VisualizerConfig, admin_config, get_preset, widget_config
from peer_graph.interaction import Dragging, Idle, InteractionController, PointerEvent, Pressed
from peer_graph.loop import AnimationLoop, Viewport
from peer_graph.model import (
    EdgeSnapshot,
    GraphState,
    Node,
    NodeSnapshot,
    SnapshotError,
    ingest,
    load_snapshot_from_json,
    snapshot_from_connections,
)
from peer_graph.physics import Simulation
from peer_graph.render import render_frame, status_glyph

__version__ = "0.1.0"
__all__ = [
    "AnimationLoop",
    "Viewport",
    "VisualizerConfig",
    "widget_config",
    "admin_config",
    "get_preset",
    "NodeSnapshot",
    "EdgeSnapshot",
    "Node",
    "GraphState",
    "SnapshotError",
    "ingest",
    "load_snapshot_from_json",
    "snapshot_from_connections",
    "Simulation",
    "InteractionController",
    "PointerEvent",
    "Idle",
    "Pressed",
    "Dragging",
    "render_frame",
    "status_glyph",
]
