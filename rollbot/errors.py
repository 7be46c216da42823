"""Exception types shared across the bot."""

from __future__ import annotations

from pathlib import Path


class ConfigurationError(RuntimeError):
    """Raised when the configuration directory is missing or inconsistent.

    These errors are fatal at startup: the bot refuses to connect while any
    of its trees, players or numeric settings disagree with each other.
    """

    def __init__(self, message: str, *, source: Path | str | None = None) -> None:
        self.source = str(source) if source is not None else None
        if self.source:
            message = f"{message} ({self.source})"
        super().__init__(message)


class TreeConstructionError(ConfigurationError):
    """Raised when an indented tree file cannot be compiled."""

    def __init__(
        self,
        message: str,
        *,
        source: Path | str | None = None,
        line: int | None = None,
    ) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message, source=source)


class PersistenceError(RuntimeError):
    """Raised when a player record could not be written back to disk."""


__all__ = ["ConfigurationError", "PersistenceError", "TreeConstructionError"]
