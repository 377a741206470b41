#!/usr/bin/env python3
"""
viewer.py

Stand-alone window for the peer graph visualizer.

Usage
-----
    python -m peer_graph                       # bundled sample network
    python -m peer_graph data/network.json --preset admin --theme light

Controls
--------
    Click a person: activate (logged)   Drag: reposition (widget preset)
    T: toggle dark/light   SPACE: pause physics   ESC: quit
"""

import argparse
import logging
import os
import random
import sys
from typing import List, Optional

from peer_graph.config import PRESETS, THEMES, get_preset
from peer_graph.loop import AnimationLoop
from peer_graph.model import SnapshotError, load_snapshot_from_json

logger = logging.getLogger(__name__)


def find_sample_json() -> Optional[str]:
    """The sample network shipped as package data, if it was installed."""
    path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "sample_network.json")
    return path if os.path.exists(path) else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Force-directed peer graph viewer")
    parser.add_argument(
        "json_path",
        nargs="?",
        default=None,
        help="Snapshot JSON ({nodes, edges} or {you, connections}). Defaults to the bundled sample.",
    )
    parser.add_argument("--preset", choices=sorted(PRESETS), default="widget")
    parser.add_argument("--theme", choices=THEMES, default="dark")
    parser.add_argument("--width", type=int, default=900)
    parser.add_argument("--height", type=int, default=640)
    parser.add_argument("--pixel-ratio", type=float, default=1.0,
                        help="Device pixel ratio used to size the pixel buffer.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for per-node phases.")
    parser.add_argument("--no-drag", action="store_true", help="Disable drag-to-reposition.")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    path = args.json_path or find_sample_json()
    if not path:
        print("Could not find data/sample_network.json. Provide a snapshot path as argument.")
        return 1
    try:
        nodes, edges = load_snapshot_from_json(path)
    except SnapshotError as exc:
        print(f"Could not load snapshot: {exc}")
        return 1

    config = get_preset(args.preset)
    if args.no_drag:
        config = config.with_overrides(interaction={"drag_enabled": False})

    def on_node_activated(node_id: str):
        logger.info("Activated %s", node_id)

    loop = AnimationLoop(
        config,
        width=args.width,
        height=args.height,
        pixel_ratio=args.pixel_ratio,
        theme=args.theme,
        on_node_activated=on_node_activated,
    )
    if args.seed is not None:
        loop.state.rng = random.Random(args.seed)
    loop.ingest(nodes, edges)
    loop.start(caption=f"peer_graph: {os.path.basename(path)}")
    loop.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
