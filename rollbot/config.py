"""Bot configuration utilities."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigurationError
from .models._validation import (
    FieldSpec,
    ModelValidationError,
    ModelValidator,
    is_fraction,
    is_positive_number,
)
from .constants import MAX_STAT_CHOICES
from .models.tree import DEFAULT_MAX_STAT_CHILDREN

DEFAULT_LEARNING_CONSTANT = 334.6
DEFAULT_SELECTION_TIMEOUT = 60.0
DEFAULT_CONFIRM_TIMEOUT = 60.0
MIN_TIMEOUT = 1.0


def env(name: str, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


@dataclass(slots=True)
class BotConfig:
    token: str
    config_dir: Path = Path("config")
    selection_timeout: float = DEFAULT_SELECTION_TIMEOUT
    confirm_timeout: float = DEFAULT_CONFIRM_TIMEOUT

    @classmethod
    def from_env(cls) -> "BotConfig":
        token = env("DISCORD_TOKEN")
        config_dir = Path(os.getenv("ROLLBOT_CONFIG_DIR", "config")).expanduser()
        selection_timeout = float(
            os.getenv("ROLLBOT_SELECTION_TIMEOUT", str(DEFAULT_SELECTION_TIMEOUT))
        )
        confirm_timeout = float(
            os.getenv("ROLLBOT_CONFIRM_TIMEOUT", str(DEFAULT_CONFIRM_TIMEOUT))
        )
        return cls(
            token=token,
            config_dir=config_dir,
            selection_timeout=max(MIN_TIMEOUT, selection_timeout),
            confirm_timeout=max(MIN_TIMEOUT, confirm_timeout),
        )


class LawKind(str, Enum):
    UNIFORM = "uniform"
    NORMAL = "normal"


@dataclass(frozen=True, slots=True)
class StatisticLaw:
    """Probability law used to draw d100 rolls."""

    kind: LawKind = LawKind.UNIFORM
    mean: float = 50.0
    std_dev: float = 15.0

    @classmethod
    def uniform(cls) -> "StatisticLaw":
        return cls(LawKind.UNIFORM)

    @classmethod
    def normal(cls, mean: float, std_dev: float) -> "StatisticLaw":
        return cls(LawKind.NORMAL, float(mean), float(std_dev))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "StatisticLaw":
        if not payload:
            return cls.uniform()
        data = StatisticLawValidator.validate(payload)
        try:
            kind = LawKind(str(data["law"]).lower())
        except ValueError as exc:
            raise ModelValidationError(
                "roll_command_statistic_law",
                [f"unknown law {data['law']!r}, expected 'uniform' or 'normal'"],
            ) from exc
        if kind is LawKind.UNIFORM:
            return cls.uniform()
        missing = [name for name in ("mean", "std_dev") if name not in data]
        if missing:
            raise ModelValidationError(
                "roll_command_statistic_law",
                [f"the normal law requires '{name}'" for name in missing],
            )
        return cls.normal(data["mean"], data["std_dev"])

    def describe(self) -> str:
        if self.kind is LawKind.UNIFORM:
            return "uniform"
        return f"normal(mean={self.mean:g}, std_dev={self.std_dev:g})"


@dataclass(slots=True)
class GameConfig:
    """Numeric settings from ``config.toml``; read-only once loaded."""

    game_master_discord_name: str = ""
    experience_earned_after_success: int = 1
    experience_earned_after_failure: int = 1
    learning_constant: float = DEFAULT_LEARNING_CONSTANT
    talent_increase_percentage: float = 0.0
    major_affinity_increase_percentage: float = 0.0
    minor_affinity_increase_percentage: float = 0.0
    max_stat_children: int = DEFAULT_MAX_STAT_CHILDREN
    roll_command_statistic_law: StatisticLaw = field(default_factory=StatisticLaw.uniform)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GameConfig":
        data = GameConfigValidator.validate(payload)
        defaults = cls()
        return cls(
            game_master_discord_name=str(
                data.get("game_master_discord_name", defaults.game_master_discord_name)
            ),
            experience_earned_after_success=int(
                data.get(
                    "experience_earned_after_success",
                    defaults.experience_earned_after_success,
                )
            ),
            experience_earned_after_failure=int(
                data.get(
                    "experience_earned_after_failure",
                    defaults.experience_earned_after_failure,
                )
            ),
            learning_constant=float(
                data.get("learning_constant", defaults.learning_constant)
            ),
            talent_increase_percentage=float(
                data.get("talent_increase_percentage", 0.0)
            ),
            major_affinity_increase_percentage=float(
                data.get("major_affinity_increase_percentage", 0.0)
            ),
            minor_affinity_increase_percentage=float(
                data.get("minor_affinity_increase_percentage", 0.0)
            ),
            max_stat_children=int(
                data.get("max_stat_children", defaults.max_stat_children)
            ),
            roll_command_statistic_law=StatisticLaw.from_payload(
                data.get("roll_command_statistic_law")
            ),
        )

    @classmethod
    def from_file(cls, path: Path) -> "GameConfig":
        try:
            with path.open("rb") as handle:
                payload = tomllib.load(handle)
        except FileNotFoundError as exc:
            raise ConfigurationError("Missing game configuration", source=path) from exc
        except (tomllib.TOMLDecodeError, OSError) as exc:
            raise ConfigurationError(
                f"Could not parse game configuration: {exc}", source=path
            ) from exc
        try:
            return cls.from_payload(payload)
        except ModelValidationError as exc:
            raise ConfigurationError(str(exc), source=path) from exc


def _is_children_cap(value: Any) -> bool:
    # Every child becomes a button next to the abort button.
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 < value <= MAX_STAT_CHOICES
    )


class StatisticLawValidator(ModelValidator):
    model = "roll_command_statistic_law"
    fields = {
        "law": FieldSpec(str, "'uniform' or 'normal'"),
        "mean": FieldSpec(float, "a numeric mean", required=False),
        "std_dev": FieldSpec(
            is_positive_number, "a positive standard deviation", required=False
        ),
    }


class GameConfigValidator(ModelValidator):
    model = GameConfig
    fields = {
        "game_master_discord_name": FieldSpec(str, "a Discord name", required=False),
        "experience_earned_after_success": FieldSpec(
            int, "an integer experience delta", required=False
        ),
        "experience_earned_after_failure": FieldSpec(
            int, "an integer experience delta", required=False
        ),
        "learning_constant": FieldSpec(
            is_positive_number, "a positive learning constant", required=False
        ),
        "talent_increase_percentage": FieldSpec(
            is_fraction, "a fraction between 0 and 1", required=False
        ),
        "major_affinity_increase_percentage": FieldSpec(
            is_fraction, "a fraction between 0 and 1", required=False
        ),
        "minor_affinity_increase_percentage": FieldSpec(
            is_fraction, "a fraction between 0 and 1", required=False
        ),
        "max_stat_children": FieldSpec(
            _is_children_cap,
            f"an integer between 1 and {MAX_STAT_CHOICES}",
            required=False,
        ),
        "roll_command_statistic_law": FieldSpec(
            dict, "a statistic law table", required=False
        ),
    }


__all__ = ["BotConfig", "GameConfig", "LawKind", "StatisticLaw"]
