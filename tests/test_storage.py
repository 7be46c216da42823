from __future__ import annotations

import sys
import tomllib
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from rollbot import storage
from rollbot.errors import ConfigurationError, PersistenceError
from rollbot.models.players import AffinityMembership, Player
from rollbot.storage import PlayerStore


def _player(path: Path) -> Player:
    return Player(
        name="Aldric",
        discord_name="aldric_player",
        stats={"Strength": 3, "Long Sword": 10, "Épée": 0},
        affinities=AffinityMembership(major=["Warrior"], minor=[]),
        talents=["Long Sword"],
        modifiers={"Perception": -5},
        path=path,
    )


def test_save_output_is_sorted_and_valid_toml(tmp_path: Path) -> None:
    path = tmp_path / "aldric.toml"
    store = PlayerStore(tmp_path)

    store.save(_player(path))
    text = path.read_text(encoding="utf8")

    assert text == (
        'discord_name = "aldric_player"\n'
        'name = "Aldric"\n'
        'talents = ["Long Sword"]\n'
        "\n"
        "[affinities]\n"
        'major = ["Warrior"]\n'
        "minor = []\n"
        "\n"
        "[modifiers]\n"
        "Perception = -5\n"
        "\n"
        "[stats]\n"
        '"Long Sword" = 10\n'
        "Strength = 3\n"
        '"Épée" = 0\n'
    )
    payload = tomllib.loads(text)
    assert payload["stats"]["Long Sword"] == 10
    assert payload["stats"]["Épée"] == 0


def test_save_is_deterministic(tmp_path: Path) -> None:
    path = tmp_path / "aldric.toml"
    store = PlayerStore(tmp_path)
    player = _player(path)

    store.save(player)
    first = path.read_bytes()
    store.save(store.load(path))

    assert path.read_bytes() == first


def test_load_round_trips_record(tmp_path: Path) -> None:
    path = tmp_path / "aldric.toml"
    store = PlayerStore(tmp_path)
    expected = _player(path)
    store.save(expected)

    loaded = store.load(path)

    assert loaded == expected
    assert loaded.path == path


def test_failed_write_keeps_previous_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "aldric.toml"
    store = PlayerStore(tmp_path)
    store.save(_player(path))
    before = path.read_bytes()

    def _fail(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(storage.os, "replace", _fail)
    player = store.load(path)
    player.stats["Strength"] = 99

    with pytest.raises(PersistenceError) as excinfo:
        store.save(player)

    assert "No space left on device" in str(excinfo.value)
    assert path.read_bytes() == before
    assert sorted(entry.name for entry in tmp_path.iterdir()) == ["aldric.toml"]


def test_increase_experience_persists(tmp_path: Path) -> None:
    path = tmp_path / "aldric.toml"
    store = PlayerStore(tmp_path)
    store.save(_player(path))
    player = store.load(path)

    assert store.increase_experience(player, 2, "Strength") == 5
    assert store.load(path).stats["Strength"] == 5


def test_increase_experience_accepts_negative_delta(tmp_path: Path) -> None:
    path = tmp_path / "aldric.toml"
    store = PlayerStore(tmp_path)
    store.save(_player(path))
    player = store.load(path)

    assert store.increase_experience(player, -4, "Strength") == -1
    assert store.load(path).stats["Strength"] == -1


def test_increase_experience_rolls_back_on_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "aldric.toml"
    store = PlayerStore(tmp_path)
    store.save(_player(path))
    player = store.load(path)

    def _fail(src, dst):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(storage.os, "replace", _fail)

    with pytest.raises(PersistenceError):
        store.increase_experience(player, 2, "Strength")

    assert player.stats["Strength"] == 3
    assert store.load(path).stats["Strength"] == 3


def test_increase_experience_unknown_stat(tmp_path: Path) -> None:
    store = PlayerStore(tmp_path)
    player = _player(tmp_path / "aldric.toml")

    with pytest.raises(KeyError):
        store.increase_experience(player, 1, "Charisma")


def test_save_without_backing_file() -> None:
    player = _player(Path("unused.toml"))
    player.path = None

    with pytest.raises(PersistenceError):
        PlayerStore(Path(".")).save(player)


def test_discover_indexes_by_discord_name(tmp_path: Path) -> None:
    store = PlayerStore(tmp_path)
    store.save(_player(tmp_path / "aldric.toml"))
    other = _player(tmp_path / "mira.toml")
    other.name = "Mira"
    other.discord_name = "mira_player"
    store.save(other)
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf8")

    assert store.discover() == {
        "aldric_player": tmp_path / "aldric.toml",
        "mira_player": tmp_path / "mira.toml",
    }


def test_discover_rejects_duplicate_discord_names(tmp_path: Path) -> None:
    store = PlayerStore(tmp_path)
    store.save(_player(tmp_path / "a.toml"))
    store.save(_player(tmp_path / "b.toml"))

    with pytest.raises(ConfigurationError) as excinfo:
        store.discover()

    assert "aldric_player" in str(excinfo.value)
    assert "b.toml" in str(excinfo.value)


def test_discover_requires_directory(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        PlayerStore(tmp_path / "players").discover()


def test_load_reports_invalid_records(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text('name = "Nobody"\n[stats]\nStrength = "a lot"\n', encoding="utf8")

    with pytest.raises(ConfigurationError) as excinfo:
        PlayerStore(tmp_path).load(path)

    message = str(excinfo.value)
    assert "discord_name" in message
    assert "stats" in message
    assert "broken.toml" in message


def test_load_reports_unparsable_records(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("name = \n", encoding="utf8")

    with pytest.raises(ConfigurationError):
        PlayerStore(tmp_path).load(path)


def test_lock_is_shared_per_identity(tmp_path: Path) -> None:
    store = PlayerStore(tmp_path)

    assert store.lock("alice") is store.lock("alice")
    assert store.lock("alice") is not store.lock("bob")
