"""Drill-down through the stat tree, one choice at a time.

:class:`StatSelection` is a plain synchronous state machine.  The caller
renders :attr:`StatSelection.candidates`, waits for the user (with whatever
timeout its scheduler enforces) and feeds the answer back through
:meth:`StatSelection.resume` or :meth:`StatSelection.expire`.  Keeping the
waiting outside makes the walk testable without a Discord connection.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Sequence

from .models.tree import Stat

log = logging.getLogger(__name__)

# Upper case and spaces never survive normalize_identifier.
ABORT_CHOICE = "Abort selection"


class SelectionStatus(str, Enum):
    AWAITING_CHOICE = "awaiting_choice"
    RESOLVED = "resolved"
    ABORTED = "aborted"
    TIMED_OUT = "timed_out"
    INVALID = "invalid"

    @property
    def is_terminal(self) -> bool:
        return self is not SelectionStatus.AWAITING_CHOICE


class StatSelection:
    def __init__(self, roots: Sequence[Stat]) -> None:
        self.candidates: tuple[Stat, ...] = tuple(roots)
        self.path: list[Stat] = []
        self.status = SelectionStatus.AWAITING_CHOICE
        self.invalid_choice: str | None = None
        if not self.candidates:
            # Nothing to choose from: treat like a stale prompt.
            self.status = SelectionStatus.INVALID

    @property
    def selected(self) -> Stat | None:
        """The chosen leaf once the selection is resolved."""

        if self.status is SelectionStatus.RESOLVED:
            return self.path[-1]
        return None

    @property
    def path_names(self) -> tuple[str, ...]:
        return tuple(stat.display_name for stat in self.path)

    def resume(self, choice_id: str) -> SelectionStatus:
        """Apply one choice event and return the new status."""

        self._ensure_waiting()
        if choice_id == ABORT_CHOICE:
            log.info("Stat selection aborted by user")
            self.status = SelectionStatus.ABORTED
            return self.status

        stat = next((node for node in self.candidates if node.id == choice_id), None)
        if stat is None:
            log.warning("Choice %r does not match any offered stat", choice_id)
            self.invalid_choice = choice_id
            self.status = SelectionStatus.INVALID
            return self.status

        log.info("Selected stat %s", stat.display_name)
        self.path.append(stat)
        if stat.is_leaf:
            self.status = SelectionStatus.RESOLVED
        else:
            self.candidates = tuple(stat.children)  # type: ignore[arg-type]
        return self.status

    def expire(self) -> SelectionStatus:
        """Record that no choice arrived before the timeout."""

        self._ensure_waiting()
        log.info("Stat selection timed out")
        self.status = SelectionStatus.TIMED_OUT
        return self.status

    def _ensure_waiting(self) -> None:
        if self.status.is_terminal:
            raise RuntimeError(f"Stat selection already finished ({self.status.value})")


__all__ = ["ABORT_CHOICE", "SelectionStatus", "StatSelection"]
