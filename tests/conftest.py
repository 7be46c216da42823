from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

CONFIG_TOML = """\
game_master_discord_name = "gm"
experience_earned_after_success = 1
experience_earned_after_failure = 3
learning_constant = 334.6
talent_increase_percentage = 0.2
major_affinity_increase_percentage = 0.15
minor_affinity_increase_percentage = 0.05

[roll_command_statistic_law]
law = "uniform"
"""

STATS_TXT = """\
Physique
    Strength
    Endurance
Mind
    Perception
    Knowledge
        History
"""

AFFINITIES_TXT = """\
Brawler
    Strength
    Endurance
Sage
    History
"""

PLAYER_TOML = """\
discord_name = "alice"
name = "Alice"
talents = []

[affinities]
major = []
minor = []

[modifiers]

[stats]
Endurance = 0
History = 0
Perception = 0
Strength = 0
"""


def write_config_dir(base: Path, *, player: str = PLAYER_TOML) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    (base / "config.toml").write_text(CONFIG_TOML, encoding="utf8")
    (base / "stats.txt").write_text(STATS_TXT, encoding="utf8")
    (base / "affinities.txt").write_text(AFFINITIES_TXT, encoding="utf8")
    players = base / "players"
    players.mkdir(exist_ok=True)
    (players / "alice.toml").write_text(player, encoding="utf8")
    return base


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return write_config_dir(tmp_path / "config")
