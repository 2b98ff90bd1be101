import json

import pytest

from leaderboard.config import LeaderboardConfig
from leaderboard.errors import ConfigurationError


def test_creates_default_config_file(tmp_path, clean_env):
    path = tmp_path / "config.json"

    config = LeaderboardConfig(str(path))

    assert path.exists()
    assert json.loads(path.read_text())["site_name"] == "Leaderboard"
    assert config.get("admin", "min_password_length") == 8
    assert config.get("ui", "missing") is None


def test_file_values_merge_over_defaults(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"site_name": "IEEE Leaderboard", "ui": {"show_timestamps": False}}))

    config = LeaderboardConfig(str(path))

    assert config.get("site_name") == "IEEE Leaderboard"
    assert config.get("ui", "show_timestamps") is False
    assert config.get("ui", "max_leaderboard_entries") == 0
    assert LeaderboardConfig.DEFAULT_CONFIG["ui"]["show_timestamps"] is True


def test_invalid_json_falls_back_to_defaults(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    config = LeaderboardConfig(str(path))

    assert config.get("site_name") == "Leaderboard"


def test_env_overrides(tmp_path, clean_env):
    clean_env.setenv("SITE_NAME", "Hackathon")
    clean_env.setenv("MAX_LEADERBOARD_ENTRIES", "10")
    clean_env.setenv("SHOW_TIMESTAMPS", "off")

    config = LeaderboardConfig(str(tmp_path / "config.json"))

    assert config.get("site_name") == "Hackathon"
    assert config.get("ui", "max_leaderboard_entries") == 10
    assert config.get("ui", "show_timestamps") is False


def test_invalid_values_are_reset(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"admin": {"min_password_length": 4, "session_max_age": "soon"}}))

    config = LeaderboardConfig(str(path))

    assert config.get("admin", "min_password_length") == 8
    assert config.get("admin", "session_max_age") == 12 * 60 * 60


def test_secrets_come_from_environment_only(tmp_path, clean_env):
    clean_env.setenv("ADMIN_SETUP_KEY", "from-env")
    clean_env.setenv("SESSION_SECRET", "signing-key")
    path = tmp_path / "config.json"

    config = LeaderboardConfig(str(path))

    assert config.get_setup_key() == "from-env"
    assert config.get_session_secret() == b"signing-key"
    assert "from-env" not in path.read_text()


def test_missing_setup_key_raises(tmp_path, clean_env):
    config = LeaderboardConfig(str(tmp_path / "config.json"))

    assert config.setup_key_configured is False
    with pytest.raises(ConfigurationError):
        config.get_setup_key()


def test_random_session_secret_when_unset(tmp_path, clean_env):
    first = LeaderboardConfig(str(tmp_path / "a.json"))
    second = LeaderboardConfig(str(tmp_path / "b.json"))

    assert first.get_session_secret()
    assert first.get_session_secret() != second.get_session_secret()
