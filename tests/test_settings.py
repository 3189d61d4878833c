import pytest

from app.core.settings import DEFAULT_READ_LIMIT, MAX_READ_LIMIT, clamp_read_limit, load_config


def test_defaults(monkeypatch):
    for name in (
        "LEADERBOARD_DB_PATH",
        "LEADERBOARD_MAX_SLOTS",
        "ENABLE_TOKEN_REAPER",
        "TOKEN_MAX_AGE_MINUTES",
        "TOKEN_SWEEP_INTERVAL_MINUTES",
        "LEADERBOARD_ADMIN_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config.db_path.endswith("leaderboard.db")
    assert config.max_slots == 10
    assert config.enable_token_reaper is True
    assert config.token_max_age_minutes == 1440
    assert config.token_max_age_ms == 1440 * 60 * 1000
    assert config.token_sweep_interval_minutes == 10
    assert config.admin_token == ""


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("LEADERBOARD_MAX_SLOTS", "many")
    monkeypatch.setenv("TOKEN_SWEEP_INTERVAL_MINUTES", "-5")

    config = load_config()

    assert config.max_slots == 10
    assert config.token_sweep_interval_minutes == 1


def test_max_slots_has_floor_of_one(monkeypatch):
    monkeypatch.setenv("LEADERBOARD_MAX_SLOTS", "0")
    assert load_config().max_slots == 1


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, DEFAULT_READ_LIMIT),
        ("", DEFAULT_READ_LIMIT),
        ("abc", DEFAULT_READ_LIMIT),
        ("0", DEFAULT_READ_LIMIT),
        ("1", 1),
        ("-10", 1),
        ("100", 100),
        ("101", MAX_READ_LIMIT),
        (7, 7),
        ("3.7", 3),
        ("5abc", 5),
        (" 8", 8),
        ("+4", 4),
        ("-2.5", 1),
        ("0005", 5),
        ("9" * 5000, MAX_READ_LIMIT),
    ],
)
def test_clamp_read_limit(raw, expected):
    assert clamp_read_limit(raw) == expected
