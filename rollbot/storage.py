"""Player persistence backed by one TOML file per player.

Player records live in ``<config>/players/*.toml``.  The in-memory index only
maps a Discord name to the record's path; the record itself is read fresh
whenever a roll needs it and written back atomically after every experience
change.  Serialisation sorts keys at every level so that two saves of the
same record are byte-identical and diffs stay readable.
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping

import tomllib

from .errors import ConfigurationError, PersistenceError
from .models._validation import ModelValidationError
from .models.players import Player

log = logging.getLogger(__name__)

_BARE_KEY = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def _normalize_for_toml(value: Any) -> Any:
    if isinstance(value, Mapping):
        normalized: Dict[str, Any] = {}
        for key, item in value.items():
            if item is None:
                continue
            normalized[str(key)] = _normalize_for_toml(item)
        return normalized
    if isinstance(value, (set, frozenset)):
        return sorted(_normalize_for_toml(item) for item in value if item is not None)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_toml(item) for item in value if item is not None]
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return 0.0
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def _quote_string(value: str) -> str:
    replacements = {
        "\\": "\\\\",
        '"': '\\"',
        "\b": "\\b",
        "\t": "\\t",
        "\n": "\\n",
        "\f": "\\f",
        "\r": "\\r",
    }

    def _escape_char(char: str) -> str:
        if char in replacements:
            return replacements[char]
        if ord(char) < 0x20 or ord(char) == 0x7F:
            return f"\\u{ord(char):04x}"
        return char

    return '"' + "".join(_escape_char(char) for char in value) + '"'


def _format_key(key: str) -> str:
    # Stat names routinely contain spaces and accents.
    return key if _BARE_KEY.match(key) else _quote_string(key)


def _format_toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = repr(value)
        return text if any(char in text for char in ".en") else f"{text}.0"
    if isinstance(value, str):
        return _quote_string(value)
    if isinstance(value, list):
        return "[" + ", ".join(_format_toml_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        raise TypeError("Mappings must be serialised via table handlers")
    return _quote_string(str(value))


def _serialize_table(
    data: Mapping[str, Any],
    *,
    parent: tuple[str, ...] = (),
    output: list[str],
) -> None:
    simple_items: list[tuple[str, Any]] = []
    tables: list[tuple[str, Mapping[str, Any]]] = []

    for key, value in data.items():
        if isinstance(value, Mapping):
            tables.append((key, value))
        else:
            simple_items.append((key, value))

    simple_items.sort(key=lambda item: item[0])
    tables.sort(key=lambda item: item[0])

    for key, value in simple_items:
        output.append(f"{_format_key(key)} = {_format_toml_value(value)}")

    for key, value in tables:
        path = (*parent, key)
        if output and output[-1] != "":
            output.append("")
        output.append("[" + ".".join(_format_key(part) for part in path) + "]")
        _serialize_table(value, parent=path, output=output)


def _toml_dumps(data: Mapping[str, Any]) -> str:
    normalized = _normalize_for_toml(data)
    if not isinstance(normalized, Mapping):
        raise TypeError("Top level TOML document must be a mapping")
    output: list[str] = []
    _serialize_table(normalized, output=output)
    return "\n".join(output) + "\n"


def _write_toml(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    data = _toml_dumps(payload)
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf8", dir=path.parent, suffix=".tmp", delete=False
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass


# ---------------------------------------------------------------------------
# Player store
# ---------------------------------------------------------------------------


class PlayerStore:
    """Loads and saves player records from a directory of TOML files."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._locks: dict[str, asyncio.Lock] = {}

    def discover(self) -> dict[str, Path]:
        """Map every player's Discord name to the file that holds its record."""

        if not self.directory.is_dir():
            raise ConfigurationError(
                "A 'players' directory is required in the config folder",
                source=self.directory,
            )
        index: dict[str, Path] = {}
        for path in sorted(self.directory.glob("*.toml")):
            player = self.load(path)
            existing = index.get(player.discord_name)
            if existing is not None:
                raise ConfigurationError(
                    f"Discord name {player.discord_name!r} is already used by {existing}",
                    source=path,
                )
            index[player.discord_name] = path
        log.info("Indexed %d player record(s) from %s", len(index), self.directory)
        return index

    def load(self, path: Path) -> Player:
        try:
            with path.open("rb") as handle:
                payload = tomllib.load(handle)
        except OSError as exc:
            raise ConfigurationError(
                f"Could not read player record: {exc.strerror or exc}", source=path
            ) from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigurationError(
                f"Could not parse player record: {exc}", source=path
            ) from exc
        try:
            return Player.from_payload(payload, path=path)
        except ModelValidationError as exc:
            raise ConfigurationError(str(exc), source=path) from exc

    def save(self, player: Player) -> None:
        if player.path is None:
            raise PersistenceError(f"Player {player.name!r} has no backing file")
        try:
            _write_toml(player.path, player.to_payload())
        except OSError as exc:
            raise PersistenceError(
                f"Could not save player {player.name!r} to {player.path}: "
                f"{exc.strerror or exc}"
            ) from exc

    def increase_experience(self, player: Player, amount: int, stat_name: str) -> int:
        """Add ``amount`` to ``stat_name`` and persist the whole record.

        The in-memory record is restored if the write fails, so a
        :class:`PersistenceError` always means nothing was committed.
        """

        previous = player.experience(stat_name)
        updated = player.increase_experience(amount, stat_name)
        try:
            self.save(player)
        except PersistenceError:
            player.stats[stat_name] = previous
            raise
        log.info(
            "Player %s now has %d experience in %s (%+d)",
            player.name,
            updated,
            stat_name,
            amount,
        )
        return updated

    def lock(self, identity: str) -> asyncio.Lock:
        """Return the lock guarding read-modify-write cycles for ``identity``."""

        lock = self._locks.get(identity)
        if lock is None:
            lock = self._locks[identity] = asyncio.Lock()
        return lock


__all__ = ["PlayerStore"]
