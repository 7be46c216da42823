from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from rollbot.cogs.player import PlayerCog
from rollbot.cogs.roll import RollsCog
from rollbot.errors import ConfigurationError
from rollbot.game import GameState
from rollbot.storage import PlayerStore


class FakeResponse:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    def is_done(self) -> bool:
        return bool(self.sent)

    async def send_message(self, content=None, **kwargs) -> None:
        self.sent.append({"content": content, **kwargs})


def _interaction(name: str = "alice") -> SimpleNamespace:
    return SimpleNamespace(user=SimpleNamespace(id=1, name=name), response=FakeResponse())


def _bot(config_dir: Path) -> SimpleNamespace:
    return SimpleNamespace(
        state=GameState.load(config_dir),
        store=PlayerStore(config_dir / "players"),
        config=None,
    )


def _corrupt_record(config_dir: Path) -> None:
    (config_dir / "players" / "alice.toml").write_text("name = [\n", encoding="utf8")


def test_load_player_returns_none_for_unknown_identity(config_dir: Path) -> None:
    cog = PlayerCog(_bot(config_dir))

    assert cog.load_player("stranger") is None
    assert cog.load_player("alice").name == "Alice"


def test_load_player_reports_unreadable_record(config_dir: Path) -> None:
    cog = PlayerCog(_bot(config_dir))
    _corrupt_record(config_dir)

    with pytest.raises(ConfigurationError) as excinfo:
        cog.load_player("alice")

    assert "alice.toml" in str(excinfo.value)


def test_summary_shows_why_record_is_unreadable(config_dir: Path) -> None:
    cog = PlayerCog(_bot(config_dir))
    _corrupt_record(config_dir)
    interaction = _interaction()

    asyncio.run(PlayerCog.summary.callback(cog, interaction))

    (message,) = interaction.response.sent
    assert message["content"].startswith("Your player record could not be read")
    assert "Could not parse player record" in message["content"]
    assert "No player stats found" not in message["content"]
    assert message["ephemeral"] is True


def test_summary_for_unknown_player(config_dir: Path) -> None:
    cog = PlayerCog(_bot(config_dir))
    interaction = _interaction("stranger")

    asyncio.run(PlayerCog.summary.callback(cog, interaction))

    (message,) = interaction.response.sent
    assert message["content"] == "No player stats found for player stranger."


def test_dice_falls_back_to_discord_name_for_unreadable_record(config_dir: Path) -> None:
    cog = RollsCog(_bot(config_dir))
    _corrupt_record(config_dir)
    interaction = _interaction()

    asyncio.run(RollsCog.dice.callback(cog, interaction, 6))

    (message,) = interaction.response.sent
    assert message["embed"].title == "**alice**"
