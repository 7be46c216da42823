from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import discord
import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from rollbot.constants import FAILURE_COLOUR, NEUTRAL_COLOUR, SUCCESS_COLOUR
from rollbot.game import RollOutcome, StatType
from rollbot.models.tree import Stat, compile_tree
from rollbot.selection import ABORT_CHOICE
from rollbot.views import StatChoiceView, build_roll_embed, describe_threshold


def _fields(embed: discord.Embed) -> dict[str, str]:
    return {field.name: field.value for field in embed.fields}


def test_failed_roll_embed() -> None:
    outcome = RollOutcome(
        stat="Perception",
        path=("Mind", "Perception"),
        roll=80,
        law="uniform",
        player_name="Aldric",
        stat_types=(StatType.TALENT,),
        mastery=40,
        modifier=-5,
        experience_gained=2,
        new_mastery=40,
    )

    embed = build_roll_embed(outcome)
    fields = _fields(embed)

    assert embed.colour == FAILURE_COLOUR
    assert embed.title == "**Aldric**"
    assert embed.description == "**Perception**: **80** / 35"
    assert fields["Stat"] == "Mind › Perception"
    assert fields["Type"] == "Talent"
    assert fields["Threshold"] == "40 -5 = 35"
    assert fields["Result"] == "**Failure**"
    assert fields["Experience"] == "+2 xp"
    assert embed.footer.text == "d100, uniform law"


def test_level_up_is_announced() -> None:
    outcome = RollOutcome(
        stat="Strength",
        path=("Strength",),
        roll=3,
        law="uniform",
        player_name="Aldric",
        mastery=5,
        experience_gained=1,
        new_mastery=6,
    )

    embed = build_roll_embed(outcome)

    assert embed.colour == SUCCESS_COLOUR
    assert describe_threshold(outcome) == "5"
    assert any("Level up" in field.name for field in embed.fields)
    assert "Stat" not in _fields(embed)


def test_anonymous_roll_embed() -> None:
    outcome = RollOutcome(stat="Luck", path=("Luck",), roll=12, law="uniform")

    embed = build_roll_embed(outcome)

    assert embed.colour == NEUTRAL_COLOUR
    assert embed.title == "**Roll**"
    assert embed.description == "**Luck**: **12**"
    assert "Result" not in _fields(embed)


def test_stat_choice_view_buttons() -> None:
    stats = compile_tree(["Physique", "    Strength", "Luck"], Stat)

    async def _build():
        return StatChoiceView(1234, stats, timeout=5)

    view = asyncio.run(_build())
    buttons = {item.custom_id: item for item in view.children}

    assert list(buttons) == ["physique", "luck", ABORT_CHOICE]
    assert buttons["physique"].style is discord.ButtonStyle.primary
    assert buttons["luck"].style is discord.ButtonStyle.success
    assert buttons[ABORT_CHOICE].style is discord.ButtonStyle.danger


def test_stat_choice_view_rejects_too_many_stats() -> None:
    stats = compile_tree([f"Stat {index}" for index in range(25)], Stat)

    async def _build():
        return StatChoiceView(None, stats)

    with pytest.raises(ValueError):
        asyncio.run(_build())


def test_stat_named_abort_keeps_distinct_button() -> None:
    stats = compile_tree(["Abort", "Strength"], Stat)

    async def _build():
        return StatChoiceView(None, stats)

    view = asyncio.run(_build())
    custom_ids = [item.custom_id for item in view.children]

    assert custom_ids == ["abort", "strength", ABORT_CHOICE]
    assert len(set(custom_ids)) == len(custom_ids)


def test_uncommitted_roll_hides_experience_and_level_up() -> None:
    outcome = RollOutcome(
        stat="Strength",
        path=("Physique", "Strength"),
        roll=90,
        law="uniform",
        player_name="Aldric",
        mastery=1,
        experience_gained=500,
        new_mastery=80,
    )

    embed = build_roll_embed(outcome, committed=False)
    fields = _fields(embed)

    assert fields["Result"] == "**Failure**"
    assert "Experience" not in fields
    assert not any("Level up" in name for name in fields)
