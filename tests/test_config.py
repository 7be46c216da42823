from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from rollbot.config import BotConfig, GameConfig, LawKind, StatisticLaw
from rollbot.errors import ConfigurationError
from rollbot.models._validation import ModelValidationError


def test_game_config_defaults_for_empty_payload() -> None:
    config = GameConfig.from_payload({})

    assert config.learning_constant == pytest.approx(334.6)
    assert config.max_stat_children == 20
    assert config.roll_command_statistic_law == StatisticLaw.uniform()


def test_game_config_reads_every_field() -> None:
    config = GameConfig.from_payload(
        {
            "game_master_discord_name": "gm",
            "experience_earned_after_success": 2,
            "experience_earned_after_failure": -1,
            "learning_constant": 200,
            "talent_increase_percentage": 0.2,
            "major_affinity_increase_percentage": 0.1,
            "minor_affinity_increase_percentage": 0.05,
            "max_stat_children": 24,
            "roll_command_statistic_law": {"law": "normal", "mean": 45, "std_dev": 10},
        }
    )

    assert config.game_master_discord_name == "gm"
    assert config.experience_earned_after_failure == -1
    assert config.learning_constant == 200.0
    assert config.max_stat_children == 24
    law = config.roll_command_statistic_law
    assert law.kind is LawKind.NORMAL
    assert (law.mean, law.std_dev) == (45.0, 10.0)
    assert law.describe() == "normal(mean=45, std_dev=10)"


@pytest.mark.parametrize(
    "payload",
    [
        {"talent_increase_percentage": 1.5},
        {"major_affinity_increase_percentage": -0.1},
        {"learning_constant": 0},
        {"experience_earned_after_success": "one"},
        {"experience_earned_after_failure": True},
        {"max_stat_children": 25},
        {"max_stat_children": 0},
    ],
)
def test_game_config_rejects_invalid_values(payload) -> None:
    with pytest.raises(ModelValidationError):
        GameConfig.from_payload(payload)


def test_statistic_law_requires_parameters_for_normal() -> None:
    with pytest.raises(ModelValidationError) as excinfo:
        StatisticLaw.from_payload({"law": "normal", "mean": 50})

    assert "std_dev" in str(excinfo.value)


def test_statistic_law_rejects_unknown_kind() -> None:
    with pytest.raises(ModelValidationError):
        StatisticLaw.from_payload({"law": "poisson"})


def test_game_config_from_file(config_dir: Path) -> None:
    config = GameConfig.from_file(config_dir / "config.toml")

    assert config.game_master_discord_name == "gm"
    assert config.experience_earned_after_failure == 3


def test_game_config_from_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        GameConfig.from_file(tmp_path / "config.toml")

    assert "config.toml" in str(excinfo.value)


def test_game_config_from_invalid_file(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("talent_increase_percentage = 20\n", encoding="utf8")

    with pytest.raises(ConfigurationError) as excinfo:
        GameConfig.from_file(path)

    assert "talent_increase_percentage" in str(excinfo.value)


def test_bot_config_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DISCORD_TOKEN", "secret")
    monkeypatch.setenv("ROLLBOT_CONFIG_DIR", str(tmp_path))
    monkeypatch.setenv("ROLLBOT_SELECTION_TIMEOUT", "0")
    monkeypatch.delenv("ROLLBOT_CONFIRM_TIMEOUT", raising=False)

    config = BotConfig.from_env()

    assert config.token == "secret"
    assert config.config_dir == tmp_path
    assert config.selection_timeout == 1.0
    assert config.confirm_timeout == 60.0


def test_bot_config_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)

    with pytest.raises(RuntimeError):
        BotConfig.from_env()
