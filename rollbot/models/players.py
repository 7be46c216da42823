"""Player-centric domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from ..errors import ConfigurationError
from ._validation import (
    FieldSpec,
    MappingSpec,
    ModelValidator,
    SequenceSpec,
    is_non_empty_str,
)
from .tree import Affinity, find_by_display_name


@dataclass(slots=True)
class AffinityMembership:
    """Names of the affinities a player declared, by bonus size."""

    major: list[str] = field(default_factory=list)
    minor: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> "AffinityMembership":
        payload = AffinityMembershipValidator.validate(payload or {})
        return cls(
            major=[str(name) for name in payload.get("major", ())],
            minor=[str(name) for name in payload.get("minor", ())],
        )

    def names(self) -> list[str]:
        return [*self.major, *self.minor]


@dataclass(slots=True)
class Player:
    """A player record as stored in ``players/<name>.toml``.

    ``stats`` maps every leaf stat display name to the experience
    accumulated in it; ``modifiers`` holds flat situational bonuses that
    default to ``0``.  ``path`` is the backing file and is never serialised.
    """

    name: str
    discord_name: str
    stats: dict[str, int] = field(default_factory=dict)
    affinities: AffinityMembership = field(default_factory=AffinityMembership)
    talents: list[str] = field(default_factory=list)
    modifiers: dict[str, int] = field(default_factory=dict)
    path: Path | None = field(default=None, compare=False, repr=False)

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], *, path: Path | None = None
    ) -> "Player":
        data = PlayerValidator.validate(payload)
        return cls(
            name=data["name"].strip(),
            discord_name=data["discord_name"].strip(),
            stats={str(key): int(value) for key, value in data["stats"].items()},
            affinities=AffinityMembership.from_payload(data.get("affinities")),
            talents=[str(name) for name in data.get("talents", ())],
            modifiers={
                str(key): int(value) for key, value in data.get("modifiers", {}).items()
            },
            path=path,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "discord_name": self.discord_name,
            "stats": dict(self.stats),
            "affinities": {
                "major": list(self.affinities.major),
                "minor": list(self.affinities.minor),
            },
            "talents": list(self.talents),
            "modifiers": dict(self.modifiers),
        }

    def experience(self, stat_name: str) -> int:
        return self.stats[stat_name]

    def modifier(self, stat_name: str) -> int:
        return self.modifiers.get(stat_name, 0)

    def is_talent(self, stat_name: str) -> bool:
        return stat_name in self.talents

    def is_major_affinity(self, stat_name: str, affinities: Sequence[Affinity]) -> bool:
        return _any_affinity_covers(self.affinities.major, stat_name, affinities)

    def is_minor_affinity(self, stat_name: str, affinities: Sequence[Affinity]) -> bool:
        return _any_affinity_covers(self.affinities.minor, stat_name, affinities)

    def increase_experience(self, amount: int, stat_name: str) -> int:
        """Add ``amount`` (any sign) to ``stat_name`` and return the new total."""

        if stat_name not in self.stats:
            raise KeyError(f"{self.name} has no experience entry for {stat_name!r}")
        self.stats[stat_name] += amount
        return self.stats[stat_name]


def _any_affinity_covers(
    names: Iterable[str], stat_name: str, affinities: Sequence[Affinity]
) -> bool:
    for name in names:
        affinity = find_by_display_name(affinities, name)
        if affinity is None:
            raise ConfigurationError(f"Affinity {name!r} is not in the affinity file")
        if affinity.covers(stat_name):
            return True
    return False


class AffinityMembershipValidator(ModelValidator):
    model = "affinities"
    fields = {
        "major": FieldSpec(SequenceSpec(str), "a list of affinity names", required=False),
        "minor": FieldSpec(SequenceSpec(str), "a list of affinity names", required=False),
    }


class PlayerValidator(ModelValidator):
    model = Player
    fields = {
        "name": FieldSpec(is_non_empty_str, "a non-empty in-game name"),
        "discord_name": FieldSpec(is_non_empty_str, "a non-empty Discord name"),
        "stats": FieldSpec(
            MappingSpec(str, int), "a table of stat names to integer experience"
        ),
        "affinities": FieldSpec(dict, "an affinities table", required=False),
        "talents": FieldSpec(SequenceSpec(str), "a list of stat names", required=False),
        "modifiers": FieldSpec(
            MappingSpec(str, int),
            "a table of stat names to integer modifiers",
            required=False,
        ),
    }


__all__ = ["AffinityMembership", "Player", "PlayerValidator"]
