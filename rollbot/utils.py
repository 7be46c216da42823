"""Formatting helpers and the administrative CLI for config folders."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Sequence, TypeVar

from .errors import ConfigurationError
from .game import GameState
from .models.players import Player
from .models.tree import TreeNode
from .storage import PlayerStore

T = TypeVar("T")

DEFAULT_CONFIG_DIR = Path("config")


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split ``items`` into consecutive pages of at most ``size`` entries."""

    if size <= 0:
        raise ValueError("Page size must be positive")
    return [items[index : index + size] for index in range(0, len(items), size)]


def stat_summary(state: GameState, player: Player) -> list[tuple[str, str]]:
    """Return ``(stat, "**mastery** (xp)")`` pairs in stat-file order."""

    entries: list[tuple[str, str]] = []
    for stat in state.leaf_stats():
        name = stat.display_name
        if name not in player.stats:
            continue
        mastery = state.player_mastery(player, name)
        entries.append((name, f"**{mastery}** ({player.experience(name)} xp)"))
    return entries


def render_tree(forest: Iterable[TreeNode], *, indent: str = "    ") -> list[str]:
    lines: list[str] = []

    def _walk(node: TreeNode, depth: int) -> None:
        marker = "-" if node.is_leaf else "+"
        lines.append(f"{indent * depth}{marker} {node.display_name} [{node.id}]")
        for child in node.children:
            _walk(child, depth + 1)

    for root in forest:
        _walk(root, 0)
    return lines


def _config_dir(args: argparse.Namespace) -> Path:
    return Path(args.config_dir).expanduser() if args.config_dir else DEFAULT_CONFIG_DIR


def _load_state(args: argparse.Namespace) -> GameState | None:
    try:
        return GameState.load(_config_dir(args))
    except ConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return None


def _command_validate(args: argparse.Namespace) -> int:
    state = _load_state(args)
    if state is None:
        return 1
    print(f"Config folder: {state.config_dir}")
    print(f"  - stats: {len(state.leaf_stats())} leaf stat(s)")
    print(f"  - affinities: {len(state.affinities)} top-level affinity group(s)")
    print(f"  - players: {len(state.players)} record(s)")
    print("Configuration is consistent.")
    return 0


def _command_tree(args: argparse.Namespace) -> int:
    state = _load_state(args)
    if state is None:
        return 1
    forest = state.affinities if args.affinities else state.stats
    for line in render_tree(forest):
        print(line)
    return 0


def _command_summary(args: argparse.Namespace) -> int:
    state = _load_state(args)
    if state is None:
        return 1
    path = state.player_path(args.player)
    if path is None:
        print(f"No player record found for {args.player}.", file=sys.stderr)
        return 1
    player = PlayerStore(path.parent).load(path)
    print(f"{player.name} ({player.discord_name})")
    for name, value in stat_summary(state, player):
        print(f"  {name}: {value.replace('**', '')}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Administrative utilities for config folders.")
    parser.add_argument(
        "--config-dir", help="Path to the config directory (default: ./config)"
    )

    subparsers = parser.add_subparsers(dest="command")

    validate_parser = subparsers.add_parser(
        "validate",
        aliases=["lint"],
        help="Compile the trees and check every player record against them",
    )
    validate_parser.set_defaults(func=_command_validate)

    tree_parser = subparsers.add_parser("tree", help="Print the compiled stat tree")
    tree_parser.add_argument(
        "--affinities",
        action="store_true",
        help="Print the affinity tree instead of the stat tree",
    )
    tree_parser.set_defaults(func=_command_tree)

    summary_parser = subparsers.add_parser(
        "summary", help="Show the mastery of one player in every stat"
    )
    summary_parser.add_argument(
        "--player", required=True, help="Discord name of the player"
    )
    summary_parser.set_defaults(func=_command_summary)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "command", None):
        parser.print_help()
        return 0
    return args.func(args)


__all__ = ["build_parser", "chunked", "main", "render_tree", "stat_summary"]


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
