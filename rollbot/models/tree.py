"""Indentation-defined stat and affinity trees.

Both ``stats.txt`` and ``affinities.txt`` describe a hierarchy with one name
per line, nesting expressed through leading whitespace (a tab counts as four
columns, any other whitespace character as one).  Every nesting level is four
columns deeper than its parent::

    Physique
        Strength
        Endurance
    Weapons
        Long Sword

The compiled trees are immutable and shared by every roll session.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Iterable, Iterator, Sequence, Type, TypeVar

from ..errors import ConfigurationError, TreeConstructionError

INDENT_STEP = 4
TAB_WIDTH = 4
DEFAULT_MAX_STAT_CHILDREN = 20

_IDENTIFIER_REPLACEMENTS = {
    "é": "e",
    "è": "e",
    "ê": "e",
    "ë": "e",
    "à": "a",
    "â": "a",
    "ï": "i",
    "ô": "o",
    "œ": "e",
    " ": "_",
    "-": "_",
    "/": "_",
}


def normalize_identifier(text: str) -> str:
    """Return the machine identifier used to look up ``text``.

    ``"Épée Longue"`` becomes ``"epee_longue"``.  Characters without a
    replacement are kept as-is, so the function never fails.
    """

    return "".join(_IDENTIFIER_REPLACEMENTS.get(char, char) for char in text.lower())


N = TypeVar("N", bound="TreeNode")


@dataclass(frozen=True, slots=True)
class TreeNode:
    id: str
    display_name: str
    children: tuple["TreeNode", ...] = ()

    kind: ClassVar[str] = "node"

    @classmethod
    def from_line(
        cls: Type[N],
        raw_line: str,
        children: Sequence[N] = (),
        *,
        max_children: int | None = None,
        source: Path | str | None = None,
        line: int | None = None,
    ) -> N:
        """Build a node from a raw (possibly indented) line of a tree file."""

        name = raw_line.strip()
        if max_children is not None and len(children) > max_children:
            owner = repr(name) if line is not None else "the top level"
            raise TreeConstructionError(
                f"{owner} has {len(children)} {cls.kind}s, "
                f"no more than {max_children} are allowed in one category",
                source=source,
                line=line,
            )
        return cls(
            id=normalize_identifier(name),
            display_name=name,
            children=tuple(children),
        )

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def iter_nodes(self) -> Iterator["TreeNode"]:
        """Yield this node and all of its descendants in file order."""

        yield self
        for child in self.children:
            yield from child.iter_nodes()

    def leaves(self) -> list["TreeNode"]:
        return [node for node in self.iter_nodes() if node.is_leaf]

    def find(self, node_id: str) -> "TreeNode | None":
        return next((node for node in self.iter_nodes() if node.id == node_id), None)


@dataclass(frozen=True, slots=True)
class Stat(TreeNode):
    """A node of the stat tree. Leaves can be rolled against."""

    kind: ClassVar[str] = "stat"


@dataclass(frozen=True, slots=True)
class Affinity(TreeNode):
    """A named group of stats, or a single stat when it is a leaf."""

    kind: ClassVar[str] = "affinity"

    def covers(self, stat_name: str) -> bool:
        """Return ``True`` if ``stat_name`` is part of this affinity.

        A group only covers its direct children, not deeper descendants.
        """

        if self.is_leaf:
            return self.display_name == stat_name
        return any(child.display_name == stat_name for child in self.children)


@dataclass(slots=True)
class _ParsedLine:
    value: str
    indent_level: int
    number: int | None


def indent_level(line: str) -> int:
    """Count the leading whitespace of ``line`` in columns."""

    level = 0
    for char in line:
        if not char.isspace():
            break
        level += TAB_WIDTH if char == "\t" else 1
    return level


def _parse_lines(
    lines: Iterable[str], source: Path | str | None
) -> list[_ParsedLine]:
    # The synthetic root sits one level above the first real line.
    parsed = [_ParsedLine("root", 0, None)]
    for number, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        columns = indent_level(line)
        if columns % INDENT_STEP:
            raise TreeConstructionError(
                f"indentation of {columns} columns is not a multiple of {INDENT_STEP}",
                source=source,
                line=number,
            )
        level = columns + INDENT_STEP
        previous = parsed[-1]
        if level > previous.indent_level + INDENT_STEP:
            raise TreeConstructionError(
                f"{line.strip()!r} is nested more than one level below "
                f"{previous.value!r}",
                source=source,
                line=number,
            )
        parsed.append(_ParsedLine(line.strip(), level, number))
    return parsed


def _build_node(
    lines: Sequence[_ParsedLine],
    index: int,
    factory: Type[N],
    max_children: int | None,
    source: Path | str | None,
) -> N:
    current = lines[index]
    child_level = current.indent_level + INDENT_STEP
    children: list[N] = []
    for position in range(index + 1, len(lines)):
        level = lines[position].indent_level
        if level == child_level:
            children.append(_build_node(lines, position, factory, max_children, source))
        elif level < child_level:
            # Belongs to an ancestor; deeper lines were consumed by a child.
            break
    return factory.from_line(
        current.value,
        children,
        max_children=max_children,
        source=source,
        line=current.number,
    )


def compile_tree(
    lines: Iterable[str],
    factory: Type[N],
    *,
    max_children: int | None = None,
    source: Path | str | None = None,
) -> list[N]:
    """Compile indented ``lines`` into the forest of top-level nodes."""

    parsed = _parse_lines(lines, source)
    root = _build_node(parsed, 0, factory, max_children, source)
    return list(root.children)


def load_tree(
    path: Path, factory: Type[N], *, max_children: int | None = None
) -> list[N]:
    try:
        text = path.read_text(encoding="utf8")
    except OSError as exc:
        raise ConfigurationError(
            f"Could not read {factory.kind} file: {exc.strerror or exc}", source=path
        ) from exc
    return compile_tree(
        text.splitlines(), factory, max_children=max_children, source=path
    )


def iter_forest(forest: Iterable[N]) -> Iterator[N]:
    for node in forest:
        yield from node.iter_nodes()  # type: ignore[misc]


def flatten_leaves(forest: Iterable[N]) -> list[N]:
    return [node for node in iter_forest(forest) if node.is_leaf]


def find_by_display_name(forest: Iterable[N], name: str) -> N | None:
    return next((node for node in iter_forest(forest) if node.display_name == name), None)


__all__ = [
    "Affinity",
    "DEFAULT_MAX_STAT_CHILDREN",
    "Stat",
    "TreeNode",
    "compile_tree",
    "find_by_display_name",
    "flatten_leaves",
    "indent_level",
    "iter_forest",
    "load_tree",
    "normalize_identifier",
]
