"""Tests for the draw-command renderer."""

import pytest

from peer_graph.config import admin_config, widget_config
from peer_graph.model import EdgeSnapshot, GraphState, NodeSnapshot, ingest
from peer_graph.render import (
    Circle,
    LinearGradientRect,
    Line,
    RadialGradientCircle,
    RadialGradientRect,
    Text,
    legend_commands,
    orb_label,
    render_frame,
    status_glyph,
)

from conftest import HEIGHT, WIDTH


def _frame(state, config=None, theme="dark", time=1.25, **kw):
    return render_frame(state, time, theme, config or widget_config(), WIDTH, HEIGHT, **kw)


@pytest.mark.parametrize("magnitude,symbol", [
    (0, None),
    (3, None),
    (3.99, None),
    (4, "⚡"),
    (5, "⚡"),
    (9, "\U0001f525"),
    (12, "\U0001f9e0"),
    (16, "✨"),
    (24, "\U0001f31f"),
    (30, "\U0001f31f"),
])
def test_status_glyph_buckets(magnitude, symbol):
    glyph = status_glyph(magnitude)
    assert (glyph.symbol if glyph else None) == symbol


def test_empty_graph_draws_background_only():
    cmds = _frame(GraphState())
    assert isinstance(cmds[0], RadialGradientRect)
    assert all(isinstance(c, (RadialGradientRect, Circle)) for c in cmds)
    # only the 30 ambient dots besides the gradient
    assert len(cmds) == 1 + widget_config().ambient_dots


def test_render_is_pure(trio_state):
    before = [(n.x, n.y, n.vx, n.vy) for n in trio_state.nodes]
    first = _frame(trio_state)
    second = _frame(trio_state)
    assert first == second
    assert [(n.x, n.y, n.vx, n.vy) for n in trio_state.nodes] == before


def test_dangling_edges_draw_nothing():
    state = ingest(None, [NodeSnapshot("you", is_self=True)], [EdgeSnapshot("you", "ghost")], WIDTH, HEIGHT)
    assert not any(isinstance(c, Line) for c in _frame(state))


def test_edges_two_passes_and_particles(trio_state):
    cmds = _frame(trio_state)
    lines = [c for c in cmds if isinstance(c, Line)]
    assert len(lines) == 4  # glow + crisp per edge
    assert [l.glow > 0 for l in lines] == [True, False, True, False]

    particles = [c for c in cmds if isinstance(c, Circle) and c.radius == 2.0]
    assert len(particles) == 2 * 2


def test_edge_color_follows_joint_status(trio_state):
    palette = widget_config().palette("dark")
    crisp = [c for c in _frame(trio_state) if isinstance(c, Line) and c.glow == 0]
    # you + a are both active, you + b are not
    assert crisp[0].color == palette.edge_active
    assert crisp[1].color == palette.edge_idle


def test_particles_fade_at_the_ends(trio_state):
    cmds = _frame(trio_state, time=0.0)
    particles = [c for c in cmds if isinstance(c, Circle) and c.radius == 2.0]
    # first particle of each edge starts at t=0 where sin(pi*t) is zero
    you = trio_state.get("you")
    at_source = [p for p in particles if p.center == (you.x, you.y)]
    assert at_source and all(p.color[3] == 0 for p in at_source)


def test_active_nodes_get_aura_and_glyph(trio_state):
    cmds = _frame(trio_state)
    auras = [c for c in cmds if isinstance(c, RadialGradientCircle) and c.focus is None]
    assert len(auras) == 2  # you and a
    texts = [c.text for c in cmds if isinstance(c, Text)]
    assert "⚡" in texts  # a: 5 hours
    assert "\U0001f525" in texts  # you: 9 hours


def test_labels_and_names(trio_state):
    texts = [c.text for c in _frame(trio_state) if isinstance(c, Text)]
    assert "You" in texts
    assert "Ava" in texts
    assert "B" in texts  # long names show their initial in the orb
    assert "Bartholom" + "e" in texts  # and are cut to ten characters below
    assert orb_label(trio_state.get("b")) == "B"


def test_chat_badge_only_on_peers(trio_state):
    cmds = _frame(trio_state)
    badges = [c for c in cmds if isinstance(c, Circle) and c.radius == 5.5]
    assert len(badges) == 2


def test_legend_is_independent_of_graph(trio_state):
    config = widget_config()
    legend = legend_commands(config.palette("dark"), config)
    assert _frame(trio_state)[-len(legend):] == legend
    other = ingest(None, [NodeSnapshot("x"), NodeSnapshot("y")], [], WIDTH, HEIGHT)
    assert _frame(other, time=9.0)[-len(legend):] == legend


def test_admin_preset_rendering(trio_snapshot):
    nodes, edges = trio_snapshot
    nodes = nodes + [NodeSnapshot("vip", "Vera", is_privileged=True)]
    state = ingest(None, nodes, edges, WIDTH, HEIGHT)
    config = admin_config()
    cmds = _frame(state, config=config, hovered_id="b")
    assert isinstance(cmds[0], LinearGradientRect)
    palette = config.palette("dark")
    assert any(isinstance(c, Circle) and c.color == palette.privileged_border and c.width == 2.5 for c in cmds)
    assert any(isinstance(c, Circle) and c.color == palette.hover_ring for c in cmds)
    assert not any(isinstance(c, Circle) and c.radius == 5.5 for c in cmds)
    # isolated idle node and connected idle node use different orbs
    orbs = {c.stops for c in cmds if isinstance(c, RadialGradientCircle) and c.focus is not None}
    assert palette.orb_idle in orbs and palette.orb_connected in orbs


def test_light_theme_and_unknown_theme(trio_state):
    light = _frame(trio_state, theme="light")
    assert light[0].stops == widget_config().palette("light").background
    with pytest.raises(ValueError):
        _frame(trio_state, theme="sepia")
