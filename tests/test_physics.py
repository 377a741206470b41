"""Tests for the force-directed simulation step."""

import math
import random

import pytest

from peer_graph.config import ForceConfig
from peer_graph.model import EdgeSnapshot, GraphState, NodeSnapshot, ingest
from peer_graph.physics import Simulation, drift, repulsion_force

from conftest import HEIGHT, WIDTH, FixedRandom


def _pair(distance, width=WIDTH, height=HEIGHT):
    nodes = [NodeSnapshot("p"), NodeSnapshot("q")]
    state = ingest(None, nodes, [], width, height)
    p, q = state.nodes
    p.x, p.y = 300.0, 300.0
    q.x, q.y = 300.0 + distance, 300.0
    return state


def test_repulsion_is_inverse_square():
    assert repulsion_force(10, 800) > repulsion_force(20, 800) > repulsion_force(40, 800)
    assert repulsion_force(10, 800) == pytest.approx(4 * repulsion_force(20, 800))


def test_closer_pairs_push_harder(still_forces):
    sim = Simulation(still_forces, WIDTH, HEIGHT)
    speeds = []
    for d in (15.0, 30.0, 60.0):
        state = _pair(d)
        sim.step(state, 0.0)
        speeds.append(abs(state.nodes[0].vx))
    assert speeds[0] > speeds[1] > speeds[2]


def test_coincident_nodes_stay_finite():
    sim = Simulation(ForceConfig(), WIDTH, HEIGHT)
    state = _pair(0.0)
    for i in range(10):
        sim.step(state, i * 0.016)
    for n in state.nodes:
        assert all(math.isfinite(v) for v in (n.x, n.y, n.vx, n.vy))


def test_positions_stay_inside_margins():
    rng = random.Random(11)
    width, height = 320, 240
    nodes = [NodeSnapshot(str(i)) for i in range(12)]
    edges = [EdgeSnapshot("0", str(i)) for i in range(1, 12)]
    state = ingest(GraphState(rng=rng), nodes, edges, width, height)
    for n in state.nodes:
        n.x = rng.uniform(0, width)
        n.y = rng.uniform(0, height)
        n.vx = rng.uniform(-50, 50)
        n.vy = rng.uniform(-50, 50)

    forces = ForceConfig(repulsion=20000.0)
    sim = Simulation(forces, width, height)
    for i in range(300):
        sim.step(state, i * 0.016)
        for n in state.nodes:
            assert forces.margin <= n.x <= width - forces.margin
            assert forces.margin <= n.y <= height - forces.margin


def test_non_finite_node_is_reset_without_spreading():
    nodes = [NodeSnapshot("bad"), NodeSnapshot("ok")]
    state = ingest(None, nodes, [EdgeSnapshot("bad", "ok")], WIDTH, HEIGHT)
    bad, ok = state.nodes
    bad.x = float("nan")
    bad.vy = float("inf")
    ok.x, ok.y = 700.0, 500.0

    Simulation(ForceConfig(), WIDTH, HEIGHT).step(state, 0.0)

    assert math.hypot(bad.x - WIDTH / 2, bad.y - HEIGHT / 2) < 2.0
    for n in (bad, ok):
        assert all(math.isfinite(v) for v in (n.x, n.y, n.vx, n.vy))


def test_overflow_during_integration_is_recovered():
    state = ingest(None, [NodeSnapshot("n")], [], WIDTH, HEIGHT)
    node = state.nodes[0]
    node.vx = 1e308
    node.x = 1e308
    Simulation(ForceConfig(damping=2.0), WIDTH, HEIGHT).step(state, 0.0)
    assert (node.x, node.y) == (WIDTH / 2, HEIGHT / 2)
    assert node.velocity == (0.0, 0.0)


def test_dragged_node_is_exempt(trio_state):
    a = trio_state.get("a")
    a.x, a.y = 123.0, 456.0
    a.vx, a.vy = 0.0, 0.0
    sim = Simulation(ForceConfig(), WIDTH, HEIGHT)
    for i in range(25):
        sim.step(trio_state, i * 0.016, dragged_id="a")
    assert a.pos == (123.0, 456.0)
    assert a.velocity == (0.0, 0.0)
    # everyone else still moved
    assert trio_state.get("b").velocity != (0.0, 0.0)


def test_dangling_edge_applies_no_force():
    nodes = [NodeSnapshot("you", is_self=True), NodeSnapshot("a")]
    with_ghost = ingest(GraphState(rng=random.Random(1)), nodes,
                        [EdgeSnapshot("you", "a"), EdgeSnapshot("a", "ghost")], WIDTH, HEIGHT)
    without = ingest(GraphState(rng=random.Random(1)), nodes, [EdgeSnapshot("you", "a")], WIDTH, HEIGHT)
    sim = Simulation(ForceConfig(), WIDTH, HEIGHT)
    for i in range(10):
        sim.step(with_ghost, i * 0.016)
        sim.step(without, i * 0.016)
    assert [n.pos for n in with_ghost.nodes] == [n.pos for n in without.nodes]


def test_step_is_deterministic(trio_snapshot):
    nodes, edges = trio_snapshot
    runs = []
    for _ in range(2):
        state = ingest(GraphState(rng=random.Random(99)), nodes, edges, WIDTH, HEIGHT)
        sim = Simulation(ForceConfig(), WIDTH, HEIGHT)
        for i in range(100):
            sim.step(state, (i + 1) * 0.016)
        runs.append([(n.x, n.y, n.vx, n.vy) for n in state.nodes])
    assert runs[0] == runs[1]


def test_drift_is_a_pure_function_of_time_and_phase():
    f = ForceConfig()
    assert drift(1.5, 0.7, f) == drift(1.5, 0.7, f)
    dx, dy = drift(0.0, 0.0, f)
    assert dx == pytest.approx(0.0)
    assert dy == pytest.approx(f.drift_strength)


def test_symmetric_trio_settles_symmetrically():
    """you <-> a and you <-> b end up the same length after 500 steps."""
    nodes = [
        NodeSnapshot("you", is_self=True),
        NodeSnapshot("a"),
        NodeSnapshot("b"),
    ]
    edges = [EdgeSnapshot("you", "a"), EdgeSnapshot("you", "b")]
    state = ingest(GraphState(rng=FixedRandom()), nodes, edges, WIDTH, HEIGHT)
    forces = ForceConfig()
    sim = Simulation(forces, WIDTH, HEIGHT)
    for i in range(500):
        sim.step(state, (i + 1) * 0.016)

    you, a, b = state.get("you"), state.get("a"), state.get("b")
    da = math.hypot(a.x - you.x, a.y - you.y)
    db = math.hypot(b.x - you.x, b.y - you.y)
    assert da == pytest.approx(db, rel=0.15)
    for n in state.nodes:
        assert forces.margin <= n.x <= WIDTH - forces.margin
        assert forces.margin <= n.y <= HEIGHT - forces.margin
