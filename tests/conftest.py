"""Pytest configuration and fixtures."""

import os

# pygame-backed tests run without a real display or audio device
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import random

import pygame
import pytest

from peer_graph.config import ForceConfig
from peer_graph.model import EdgeSnapshot, NodeSnapshot, ingest

WIDTH = 800
HEIGHT = 600


class FixedRandom(random.Random):
    """Every node draws the same phase, so drift moves the graph as one piece."""

    def random(self):
        return 0.25


@pytest.fixture
def trio_snapshot():
    nodes = [
        NodeSnapshot("you", "Sam", is_self=True, is_active=True, activity_magnitude=9),
        NodeSnapshot("a", "Ava", is_active=True, activity_magnitude=5),
        NodeSnapshot("b", "Bartholomew"),
    ]
    edges = [EdgeSnapshot("you", "a"), EdgeSnapshot("you", "b")]
    return nodes, edges


@pytest.fixture
def trio_state(trio_snapshot):
    from peer_graph.model import GraphState

    nodes, edges = trio_snapshot
    return ingest(GraphState(rng=random.Random(7)), nodes, edges, WIDTH, HEIGHT)


@pytest.fixture
def still_forces():
    """Only repulsion and springs; no gravity, drift or damping."""
    return ForceConfig(center_gravity=0.0, drift_strength=0.0, damping=1.0)


@pytest.fixture
def pygame_session():
    pygame.init()
    yield
    pygame.quit()
