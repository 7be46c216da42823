#!/usr/bin/env python3
"""Render the stat tree of a config folder, highlighting affinity members."""

from __future__ import annotations

import argparse
from collections import defaultdict
from pathlib import Path
import sys
from typing import Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.lines import Line2D

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rollbot.config import GameConfig
from rollbot.models.tree import Affinity, Stat, load_tree

GROUP_NODE_COLOUR = "#f5deb3"
LEAF_NODE_COLOUR = "#d9d9d9"
AFFINITY_NODE_COLOUR = "#98df8a"

EDGE_STYLES = {
    "child": {"color": "#7f7f7f", "style": "solid", "width": 1.0, "label": "Sub-stat"},
    "affinity": {"color": "#9467bd", "style": "dashed", "width": 1.2, "label": "Affinity"},
}


def build_stat_graph(stats: Sequence[Stat], affinities: Sequence[Affinity]) -> nx.DiGraph:
    """Return a graph with one node per stat, keyed by its path of ids."""

    graph = nx.DiGraph()
    members: dict[str, list[str]] = defaultdict(list)
    for group in affinities:
        for member in group.children or (group,):
            members[member.id].append(group.display_name)

    def _add(stat: Stat, parent: str | None, depth: int) -> None:
        key = f"{parent}/{stat.id}" if parent else stat.id
        graph.add_node(
            key,
            label=stat.display_name,
            depth=depth,
            is_leaf=stat.is_leaf,
            affinities=tuple(members.get(stat.id, ())),
        )
        if parent:
            graph.add_edge(parent, key, kind="child")
        for child in stat.children:
            _add(child, key, depth + 1)  # type: ignore[arg-type]

    for stat in stats:
        _add(stat, None, 0)

    for group in affinities:
        affinity_key = f"affinity:{group.id}"
        graph.add_node(affinity_key, label=group.display_name, depth=-1, is_affinity=True)
        for node, data in list(graph.nodes(data=True)):
            if group.display_name in data.get("affinities", ()):
                graph.add_edge(affinity_key, node, kind="affinity")
    return graph


def _layered_layout(graph: nx.DiGraph) -> dict[str, tuple[float, float]]:
    # Leaves get consecutive x slots in depth-first order; groups sit above
    # the middle of their children.
    positions: dict[str, tuple[float, float]] = {}
    next_slot = 0.0

    def _place(node: str) -> float:
        nonlocal next_slot
        children = [
            child
            for child in graph.successors(node)
            if graph.edges[node, child].get("kind") == "child"
        ]
        if children:
            xs = [_place(child) for child in children]
            x = sum(xs) / len(xs)
        else:
            x = next_slot
            next_slot += 1.0
        positions[node] = (x, -float(graph.nodes[node]["depth"]))
        return x

    roots = [
        node
        for node, data in graph.nodes(data=True)
        if data.get("depth") == 0
    ]
    for root in roots:
        _place(root)

    affinity_nodes = [node for node, data in graph.nodes(data=True) if data.get("is_affinity")]
    spacing = max(next_slot, 1.0) / max(len(affinity_nodes), 1)
    for index, node in enumerate(affinity_nodes):
        positions[node] = (index * spacing, 1.5)
    return positions


def render_stat_tree(
    config_dir: Path, output_path: Path, dpi: int = 200, size: float = 24.0
) -> None:
    config = GameConfig.from_file(config_dir / "config.toml")
    stats = load_tree(config_dir / "stats.txt", Stat, max_children=config.max_stat_children)
    affinities = load_tree(config_dir / "affinities.txt", Affinity)
    graph = build_stat_graph(stats, affinities)
    pos = _layered_layout(graph)

    plt.figure(figsize=(size, size / 2), dpi=dpi)

    node_colours = []
    for node, data in graph.nodes(data=True):
        if data.get("is_affinity"):
            node_colours.append(AFFINITY_NODE_COLOUR)
        elif data.get("is_leaf"):
            node_colours.append(LEAF_NODE_COLOUR)
        else:
            node_colours.append(GROUP_NODE_COLOUR)

    nx.draw_networkx_nodes(
        graph,
        pos,
        node_color=node_colours,
        node_size=360,
        linewidths=0.5,
        edgecolors="#333333",
    )
    labels = {node: graph.nodes[node].get("label", node) for node in graph.nodes}
    nx.draw_networkx_labels(graph, pos, labels=labels, font_size=6)

    for kind, style in EDGE_STYLES.items():
        edges = [(u, v) for u, v, data in graph.edges(data=True) if data.get("kind") == kind]
        if not edges:
            continue
        nx.draw_networkx_edges(
            graph,
            pos,
            edgelist=edges,
            edge_color=style["color"],
            width=style["width"],
            arrows=kind == "affinity",
            arrowsize=7,
            style=style["style"],
            alpha=0.75,
        )

    legend_handles = [
        Line2D(
            [],
            [],
            color=style["color"],
            linestyle=style["style"],
            linewidth=style["width"],
            label=style["label"],
        )
        for style in EDGE_STYLES.values()
    ]
    legend_handles.append(
        Line2D([], [], marker="o", linestyle="", color=GROUP_NODE_COLOUR, label="Stat family")
    )
    legend_handles.append(
        Line2D([], [], marker="o", linestyle="", color=LEAF_NODE_COLOUR, label="Stat")
    )
    legend_handles.append(
        Line2D([], [], marker="o", linestyle="", color=AFFINITY_NODE_COLOUR, label="Affinity")
    )

    plt.legend(handles=legend_handles, loc="upper left", frameon=False, fontsize=8)
    plt.axis("off")
    plt.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path, bbox_inches="tight")
    plt.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Config folder holding config.toml, stats.txt and affinities.txt.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("img/stat-tree.png"),
        help="Where to write the rendered graph image.",
    )
    parser.add_argument(
        "--dpi",
        type=int,
        default=200,
        help="Rendering DPI for the generated figure.",
    )
    parser.add_argument(
        "--size",
        type=float,
        default=24.0,
        help="Figure width in inches; the height is half of it.",
    )

    args = parser.parse_args()
    render_stat_tree(args.config_dir, args.output, dpi=args.dpi, size=args.size)


if __name__ == "__main__":
    main()
