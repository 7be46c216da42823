"""Core check mechanics shared across commands and interactions."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Sequence

from .config import GameConfig, LawKind, StatisticLaw
from .errors import ConfigurationError
from .models.players import Player
from .models.tree import (
    Affinity,
    Stat,
    find_by_display_name,
    flatten_leaves,
    iter_forest,
    load_tree,
)
from .storage import PlayerStore

log = logging.getLogger(__name__)

ROLL_MIN = 1
ROLL_MAX = 100
MASTERY_MIN = 1
MASTERY_MAX = 99


class StatType(str, Enum):
    """Tags describing which bonuses apply to a stat for one player."""

    TALENT = "talent"
    MAJOR_AFFINITY = "major_affinity"
    MINOR_AFFINITY = "minor_affinity"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


# ---------------------------------------------------------------------------
# Mastery and rolls
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def learning_coefficient(
    config: GameConfig,
    *,
    is_talent: bool = False,
    is_major_affinity: bool = False,
    is_minor_affinity: bool = False,
) -> float:
    """Return the effective learning constant once bonuses are applied.

    Each bonus shrinks the denominator of the mastery curve, so bonuses
    stack multiplicatively and every one of them speeds learning up.
    """

    coefficient = config.learning_constant
    if is_talent:
        coefficient *= 1 - config.talent_increase_percentage
    if is_major_affinity:
        coefficient *= 1 - config.major_affinity_increase_percentage
    if is_minor_affinity:
        coefficient *= 1 - config.minor_affinity_increase_percentage
    return coefficient


def mastery(
    experience: int,
    *,
    config: GameConfig,
    is_talent: bool = False,
    is_major_affinity: bool = False,
    is_minor_affinity: bool = False,
) -> int:
    """Convert accumulated experience into a success threshold in [1, 99].

    Flat modifiers are deliberately left out so that a level-up is only
    reported when experience, not a situational bonus, raised the value.
    """

    coefficient = learning_coefficient(
        config,
        is_talent=is_talent,
        is_major_affinity=is_major_affinity,
        is_minor_affinity=is_minor_affinity,
    )
    value = round_half_up(100 - 99 * math.exp(-experience / coefficient))
    return max(MASTERY_MIN, min(MASTERY_MAX, value))


def sample_roll(law: StatisticLaw, rng: random.Random | None = None) -> int:
    """Draw a d100 result following ``law``.

    A fresh :class:`random.SystemRandom` is used when no generator is given,
    so consecutive rolls share no state.
    """

    rng = rng or random.SystemRandom()
    if law.kind is LawKind.NORMAL:
        value = rng.gauss(law.mean, law.std_dev)
        return int(min(max(value, ROLL_MIN), ROLL_MAX))
    return rng.randint(ROLL_MIN, ROLL_MAX)


def roll_die(faces: int, rng: random.Random | None = None) -> int:
    if faces < 2:
        raise ValueError("A die needs at least two faces")
    rng = rng or random.SystemRandom()
    return rng.randint(1, faces)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RollOutcome:
    """Everything needed to render the result of a stat check."""

    stat: str
    path: tuple[str, ...]
    roll: int
    law: str
    player_name: str | None = None
    stat_types: tuple[StatType, ...] = ()
    mastery: int | None = None
    modifier: int = 0
    experience_gained: int = 0
    new_mastery: int | None = None

    @property
    def threshold(self) -> int | None:
        if self.mastery is None:
            return None
        return self.mastery + self.modifier

    @property
    def successful(self) -> bool | None:
        threshold = self.threshold
        if threshold is None:
            return None
        return self.roll <= threshold

    @property
    def level_up(self) -> bool:
        if self.mastery is None or self.new_mastery is None:
            return False
        return self.new_mastery > self.mastery


# ---------------------------------------------------------------------------
# Game state
# ---------------------------------------------------------------------------


def check_consistency(
    stats: Sequence[Stat],
    affinities: Sequence[Affinity],
    players: Mapping[Path, Player],
) -> None:
    """Verify that the trees and every player record agree with each other."""

    log.info("Checking config files coherence...")
    leaves = flatten_leaves(stats)
    stat_ids = {node.id for node in iter_forest(stats)}
    leaf_names = {leaf.display_name for leaf in leaves}

    for affinity in flatten_leaves(affinities):
        if affinity.id not in stat_ids:
            raise ConfigurationError(
                f"Affinity stat {affinity.display_name!r} is not in the stat file"
            )

    for path, player in players.items():
        for stat_name in player.stats:
            if stat_name not in leaf_names:
                raise ConfigurationError(
                    f"Stat {stat_name!r} is not in the stat file", source=path
                )
        for leaf in leaves:
            if leaf.display_name not in player.stats:
                raise ConfigurationError(
                    f"Stat {leaf.display_name!r} is missing from the player file",
                    source=path,
                )
        for label, names in (
            ("Major", player.affinities.major),
            ("Minor", player.affinities.minor),
        ):
            for name in names:
                if find_by_display_name(affinities, name) is None:
                    raise ConfigurationError(
                        f"{label} affinity {name!r} is not in the affinity file",
                        source=path,
                    )
        for talent in player.talents:
            if talent not in leaf_names:
                raise ConfigurationError(
                    f"Talent {talent!r} is not in the stat file", source=path
                )


@dataclass(slots=True)
class GameState:
    """Process-wide configuration: trees, numeric settings and player index."""

    config: GameConfig
    stats: list[Stat] = field(default_factory=list)
    affinities: list[Affinity] = field(default_factory=list)
    players: dict[str, Path] = field(default_factory=dict)
    config_dir: Path | None = None

    @classmethod
    def load(cls, config_dir: Path) -> "GameState":
        config_dir = Path(config_dir)
        log.info("Loading config from %s", config_dir)
        config = GameConfig.from_file(config_dir / "config.toml")
        stats = load_tree(
            config_dir / "stats.txt", Stat, max_children=config.max_stat_children
        )
        affinities = load_tree(config_dir / "affinities.txt", Affinity)
        store = PlayerStore(config_dir / "players")
        players = store.discover()
        check_consistency(
            stats, affinities, {path: store.load(path) for path in players.values()}
        )
        log.info("Config files are correct")
        return cls(
            config=config,
            stats=stats,
            affinities=affinities,
            players=players,
            config_dir=config_dir,
        )

    def player_path(self, identity: str) -> Path | None:
        return self.players.get(identity)

    def leaf_stats(self) -> list[Stat]:
        return flatten_leaves(self.stats)

    def stat_types(self, player: Player, stat_name: str) -> tuple[StatType, ...]:
        types: list[StatType] = []
        if player.is_talent(stat_name):
            types.append(StatType.TALENT)
        if player.is_major_affinity(stat_name, self.affinities):
            types.append(StatType.MAJOR_AFFINITY)
        if player.is_minor_affinity(stat_name, self.affinities):
            types.append(StatType.MINOR_AFFINITY)
        return tuple(types)

    def player_mastery(self, player: Player, stat_name: str) -> int:
        types = self.stat_types(player, stat_name)
        return self._mastery_for(player.experience(stat_name), types)

    def _mastery_for(self, experience: int, types: Sequence[StatType]) -> int:
        return mastery(
            experience,
            config=self.config,
            is_talent=StatType.TALENT in types,
            is_major_affinity=StatType.MAJOR_AFFINITY in types,
            is_minor_affinity=StatType.MINOR_AFFINITY in types,
        )

    def resolve_check(
        self,
        player: Player,
        stat: Stat,
        roll: int,
        *,
        path: Sequence[str] = (),
    ) -> RollOutcome:
        """Compare ``roll`` with the player's threshold for ``stat``.

        The experience delta and the post-update mastery are filled in, but
        the record itself is left untouched; persisting is the caller's job.
        """

        stat_name = stat.display_name
        if stat_name not in player.stats:
            raise ConfigurationError(
                f"Stat {stat_name!r} is missing from the player file", source=player.path
            )
        types = self.stat_types(player, stat_name)
        experience = player.experience(stat_name)
        outcome = RollOutcome(
            stat=stat_name,
            path=tuple(path) or (stat_name,),
            roll=roll,
            law=self.config.roll_command_statistic_law.describe(),
            player_name=player.name,
            stat_types=types,
            mastery=self._mastery_for(experience, types),
            modifier=player.modifier(stat_name),
        )
        if outcome.successful:
            log.info("Player %s passed the check: %d/%d", player.name, roll, outcome.threshold)
            outcome.experience_gained = self.config.experience_earned_after_success
        else:
            log.info("Player %s failed the check: %d/%d", player.name, roll, outcome.threshold)
            outcome.experience_gained = self.config.experience_earned_after_failure
        outcome.new_mastery = self._mastery_for(experience + outcome.experience_gained, types)
        return outcome


__all__ = [
    "GameState",
    "RollOutcome",
    "StatType",
    "check_consistency",
    "learning_coefficient",
    "mastery",
    "roll_die",
    "round_half_up",
    "sample_roll",
]
