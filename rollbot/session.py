"""One interactive roll, from the first prompt to the persisted result."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, Sequence

from .errors import ConfigurationError, PersistenceError
from .game import GameState, RollOutcome, sample_roll
from .models.tree import Stat
from .selection import SelectionStatus, StatSelection
from .storage import PlayerStore

log = logging.getLogger(__name__)

CHOOSE_STAT_PROMPT = "Choose your stat / stat family"
MISSING_PLAYER_PROMPT = (
    "No player stats found for player {identity}.\nDo you still want to proceed?"
)


class SessionStatus(str, Enum):
    RESOLVED = "resolved"
    ABORTED = "aborted"
    TIMED_OUT = "timed_out"
    INVALID_SELECTION = "invalid_selection"
    FAILED = "failed"


@dataclass(slots=True)
class SessionOutcome:
    status: SessionStatus
    reason: str
    result: RollOutcome | None = None

    @property
    def resolved(self) -> bool:
        return self.status is SessionStatus.RESOLVED


class RollTransport(Protocol):
    """What a session needs from the messaging layer.

    ``choose`` and ``confirm`` return ``None`` when the user did not answer
    in time.
    """

    async def choose(self, prompt: str, stats: Sequence[Stat]) -> str | None: ...

    async def confirm(self, prompt: str) -> bool | None: ...

    async def finish(self, outcome: SessionOutcome) -> None: ...


_SELECTION_OUTCOMES = {
    SelectionStatus.ABORTED: (SessionStatus.ABORTED, "Command aborted"),
    SelectionStatus.TIMED_OUT: (
        SessionStatus.TIMED_OUT,
        "No stat was chosen in time, command cancelled",
    ),
    SelectionStatus.INVALID: (
        SessionStatus.INVALID_SELECTION,
        "Invalid selection, this prompt is out of date",
    ),
}


class RollSession:
    def __init__(
        self,
        state: GameState,
        store: PlayerStore,
        transport: RollTransport,
        identity: str,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self.state = state
        self.store = store
        self.transport = transport
        self.identity = identity
        self.rng = rng

    async def run(self) -> SessionOutcome:
        outcome = await self._run()
        log.info("Roll session for %s finished: %s", self.identity, outcome.status.value)
        await self.transport.finish(outcome)
        return outcome

    async def _run(self) -> SessionOutcome:
        log.info("Retrieving player info for %s", self.identity)
        player_path = self.state.player_path(self.identity)
        if player_path is None:
            log.warning("Could not find info for player %s", self.identity)
            answer = await self.transport.confirm(
                MISSING_PLAYER_PROMPT.format(identity=self.identity)
            )
            if answer is None:
                return SessionOutcome(
                    SessionStatus.TIMED_OUT, "No answer received, command cancelled"
                )
            if not answer:
                return SessionOutcome(SessionStatus.ABORTED, "Command aborted")
            log.info("Proceeding without info")

        selection = StatSelection(self.state.stats)
        while not selection.status.is_terminal:
            choice = await self.transport.choose(CHOOSE_STAT_PROMPT, selection.candidates)
            if choice is None:
                selection.expire()
            else:
                selection.resume(choice)

        stat = selection.selected
        if stat is None:
            status, reason = _SELECTION_OUTCOMES[selection.status]
            return SessionOutcome(status, reason)

        law = self.state.config.roll_command_statistic_law
        roll = sample_roll(law, self.rng)
        log.info("Rolled a %d for stat %s (%s law)", roll, stat.display_name, law.describe())

        if player_path is None:
            result = RollOutcome(
                stat=stat.display_name,
                path=selection.path_names,
                roll=roll,
                law=law.describe(),
            )
            return SessionOutcome(
                SessionStatus.RESOLVED, "Stat experience will not be updated", result
            )

        async with self.store.lock(self.identity):
            try:
                player = self.store.load(player_path)
                result = self.state.resolve_check(
                    player, stat, roll, path=selection.path_names
                )
                self.store.increase_experience(
                    player, result.experience_gained, stat.display_name
                )
            except PersistenceError as exc:
                log.error("Something went wrong when updating the player experience: %s", exc)
                result.experience_gained = 0
                result.new_mastery = None
                return SessionOutcome(
                    SessionStatus.FAILED,
                    f"The roll could not be saved, experience was not updated: {exc}",
                    result,
                )
            except ConfigurationError as exc:
                log.error("Player record for %s is unusable: %s", self.identity, exc)
                return SessionOutcome(SessionStatus.FAILED, f"Player record is invalid: {exc}")
        return SessionOutcome(SessionStatus.RESOLVED, "Check resolved", result)


async def begin_roll(
    state: GameState,
    store: PlayerStore,
    transport: RollTransport,
    identity: str,
    *,
    rng: random.Random | None = None,
) -> SessionOutcome:
    return await RollSession(state, store, transport, identity, rng=rng).run()


__all__ = [
    "RollSession",
    "RollTransport",
    "SessionOutcome",
    "SessionStatus",
    "begin_roll",
]
