"""
model.py

Graph model and snapshot reconciliation.

A host hands us plain snapshots (who is in the graph, who is connected to
whom); `ingest` merges them into the physics state so that a data refresh
with the same people keeps everyone where they already are.
"""

import json
import logging
import math
import os
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

SELF_ID = "you"


class SnapshotError(ValueError):
    """A snapshot document cannot be turned into nodes and edges."""


# ---------- Snapshot input ----------


@dataclass(frozen=True)
class NodeSnapshot:
    id: str
    display_name: str = ""
    is_self: bool = False
    is_active: bool = False
    activity_magnitude: float = 0.0
    is_privileged: bool = False


@dataclass(frozen=True)
class EdgeSnapshot:
    source_id: str
    target_id: str


# ---------- Physics-bearing node ----------


class Node:
    def __init__(self, snap: NodeSnapshot, x: float, y: float, phase: float):
        self.id: str = snap.id
        self.label: str = snap.display_name or snap.id
        self.is_self: bool = snap.is_self
        self.is_active: bool = snap.is_active
        self.activity_magnitude: float = float(snap.activity_magnitude or 0.0)
        self.is_privileged: bool = snap.is_privileged

        # Physics state, only the simulation (and a drag) moves these.
        self.x: float = x
        self.y: float = y
        self.vx: float = 0.0
        self.vy: float = 0.0
        # Fixed per-node offset used to desynchronize cosmetic oscillation.
        self._phase: float = phase

    @property
    def phase(self) -> float:
        return self._phase

    @property
    def pos(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def velocity(self) -> Tuple[float, float]:
        return (self.vx, self.vy)

    def refresh(self, snap: NodeSnapshot):
        """Update descriptive fields only; position, velocity and phase stay."""
        self.label = snap.display_name or snap.id
        self.is_active = snap.is_active
        self.activity_magnitude = float(snap.activity_magnitude or 0.0)
        self.is_privileged = snap.is_privileged

    def __repr__(self) -> str:
        return f"Node({self.id!r}, pos=({self.x:.1f}, {self.y:.1f}))"


# ---------- Graph state ----------


class GraphState:
    """The single owner of simulation state for one visualizer instance.

    Nodes are kept in snapshot order (layout and hit-testing depend on it).
    Edges are kept as id pairs; they are resolved to nodes on every use so a
    removed node can never linger behind a cached reference.
    """

    def __init__(
        self,
        nodes: Optional[List[Node]] = None,
        edges: Optional[List[Tuple[str, str]]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.nodes: List[Node] = nodes or []
        self.edges: List[Tuple[str, str]] = edges or []
        self.rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self.nodes)

    def id_set(self) -> set:
        return {n.id for n in self.nodes}

    def node_by_id(self) -> Dict[str, Node]:
        lookup: Dict[str, Node] = {}
        for node in self.nodes:
            # first occurrence wins when a host sends duplicate ids
            lookup.setdefault(node.id, node)
        return lookup

    def get(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def resolve_edges(self) -> List[Tuple[Node, Node]]:
        """Edges whose endpoints both exist right now; dangling ones are skipped."""
        lookup = self.node_by_id()
        resolved = []
        for source_id, target_id in self.edges:
            source = lookup.get(source_id)
            target = lookup.get(target_id)
            if source is None or target is None:
                continue
            resolved.append((source, target))
        return resolved

    def connected_ids(self) -> set:
        ids = set()
        for source, target in self.resolve_edges():
            ids.add(source.id)
            ids.add(target.id)
        return ids

    def ingest(
        self,
        nodes_in: Sequence[NodeSnapshot],
        edges_in: Iterable[EdgeSnapshot],
        width: float,
        height: float,
        spread_fraction: float = 0.28,
    ) -> "GraphState":
        return ingest(self, nodes_in, edges_in, width, height, spread_fraction)


def initial_layout(
    nodes_in: Sequence[NodeSnapshot],
    width: float,
    height: float,
    spread_fraction: float = 0.28,
) -> List[Tuple[float, float]]:
    """Self at the center, everyone else evenly spaced on a circle.

    Angles are indexed by snapshot order among the non-self nodes, starting
    at the top of the circle.
    """
    cx = width / 2.0
    cy = height / 2.0
    spread = min(width, height) * spread_fraction
    others = [n for n in nodes_in if not n.is_self]
    count = max(len(others), 1)

    positions = []
    i = 0
    for snap in nodes_in:
        if snap.is_self:
            positions.append((cx, cy))
            continue
        angle = (i / count) * math.pi * 2.0 - math.pi / 2.0
        positions.append((cx + math.cos(angle) * spread, cy + math.sin(angle) * spread))
        i += 1
    return positions


def ingest(
    existing: Optional[GraphState],
    nodes_in: Sequence[NodeSnapshot],
    edges_in: Iterable[EdgeSnapshot],
    width: float,
    height: float,
    spread_fraction: float = 0.28,
) -> GraphState:
    """Merge a snapshot into `existing` and return the new state.

    Same id set: the existing Node objects are kept (position, velocity and
    phase untouched) and only label/status fields are refreshed.
    Anything else (first load, people added or removed): the whole layout is
    rebuilt and every node draws a fresh phase.
    """
    rng = existing.rng if existing is not None else random.Random()
    edges = [(e.source_id, e.target_id) for e in edges_in]
    new_ids = {n.id for n in nodes_in}

    if existing is not None and existing.nodes and new_ids == existing.id_set():
        lookup = existing.node_by_id()
        nodes = []
        for snap in nodes_in:
            node = lookup[snap.id]
            node.refresh(snap)
            nodes.append(node)
        logger.debug("Refreshed %d nodes in place", len(nodes))
        return GraphState(nodes, edges, rng)

    positions = initial_layout(nodes_in, width, height, spread_fraction)
    nodes = [
        Node(snap, x, y, rng.random() * 2.0 * math.pi)
        for snap, (x, y) in zip(nodes_in, positions)
    ]
    logger.debug(
        "Reinitialized layout: %d nodes, %d edges on %.0fx%.0f",
        len(nodes), len(edges), width, height,
    )
    return GraphState(nodes, edges, rng)


# ---------- Building snapshots ----------


def snapshot_from_connections(
    you: dict, connections: Sequence[dict]
) -> Tuple[List[NodeSnapshot], List[EdgeSnapshot]]:
    """The dashboard shape: one self node linked to each connection."""
    nodes = [
        NodeSnapshot(
            id=SELF_ID,
            display_name=you.get("name", "You"),
            is_self=True,
            is_active=bool(you.get("isFasting", you.get("is_active", False))),
            activity_magnitude=float(you.get("fastingHours", you.get("activity_magnitude")) or 0.0),
        )
    ]
    edges = []
    for c in connections:
        nodes.append(_node_from_raw(c))
        edges.append(EdgeSnapshot(SELF_ID, c["id"]))
    return nodes, edges


def _pick(raw: dict, *keys, default=None):
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _node_from_raw(raw: dict) -> NodeSnapshot:
    if "id" not in raw:
        raise SnapshotError(f"Node without 'id': {raw!r}")
    node_id = str(raw["id"])
    return NodeSnapshot(
        id=node_id,
        display_name=str(_pick(raw, "displayName", "display_name", "name", default=node_id)),
        is_self=bool(_pick(raw, "isSelf", "is_self", "isYou", default=False)),
        is_active=bool(_pick(raw, "isActive", "is_active", "isFasting", default=False)),
        activity_magnitude=float(
            _pick(raw, "activityMagnitude", "activity_magnitude", "fastingHours", default=0.0) or 0.0
        ),
        is_privileged=bool(_pick(raw, "isPrivileged", "is_privileged", "isPremium", default=False)),
    )


def parse_snapshot(data: dict) -> Tuple[List[NodeSnapshot], List[EdgeSnapshot]]:
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot document must be a JSON object.")

    if "you" in data:
        connections = data.get("connections", [])
        for c in connections:
            if "id" not in c:
                raise SnapshotError(f"Connection without 'id': {c!r}")
        nodes, edges = snapshot_from_connections(data["you"], connections)
    elif "nodes" in data and isinstance(data["nodes"], list):
        nodes = [_node_from_raw(raw) for raw in data["nodes"]]
        edges = []
        for raw in data.get("edges", []):
            source = _pick(raw, "sourceId", "source_id", "source")
            target = _pick(raw, "targetId", "target_id", "target")
            if source is None or target is None:
                raise SnapshotError(f"Edge needs a source and a target: {raw!r}")
            edges.append(EdgeSnapshot(str(source), str(target)))
    else:
        raise SnapshotError("Snapshot needs either 'nodes' or 'you' + 'connections'.")

    seen = set()
    for n in nodes:
        if n.id in seen:
            raise SnapshotError(f"Duplicate node id '{n.id}'.")
        seen.add(n.id)
    if sum(1 for n in nodes if n.is_self) > 1:
        raise SnapshotError("At most one node may be the self node.")
    return nodes, edges


def load_snapshot_from_json(path: str) -> Tuple[List[NodeSnapshot], List[EdgeSnapshot]]:
    """
    Load either:
      - a graph JSON: { "nodes": [...], "edges": [ { "sourceId", "targetId" } ] }
      - a dashboard JSON: { "you": {...}, "connections": [ {...}, ... ] }
    """
    if not os.path.exists(path):
        raise SnapshotError(f"Snapshot file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise SnapshotError(f"{path}: invalid JSON ({exc})") from exc
    return parse_snapshot(data)
