"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from conftest import CONFIG_VALUES, ROOM_ID

from expense_bridge.config import BotConfig, ConfigError, load_config


def to_toml(values):
    lines = []
    for key, value in values.items():
        if isinstance(value, bool):
            lines.append(f"{key} = {'true' if value else 'false'}")
        elif isinstance(value, (int, float)):
            lines.append(f"{key} = {value}")
        else:
            lines.append(f'{key} = "{value}"')
    return "\n".join(lines) + "\n"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep the developer's environment and any .env file out of these tests."""
    for key in BotConfig.model_fields:
        monkeypatch.delenv(f"EXPENSE_BRIDGE_{key.upper()}", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def write_config(tmp_path):
    def _write(values=None, text=None):
        path = tmp_path / "config.toml"
        path.write_text(text if text is not None else to_toml(values), encoding="utf-8")
        return path
    return _write


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_complete_file(self, write_config):
        config = load_config(write_config(CONFIG_VALUES))

        assert config.matrix_homeserver_url == "https://matrix.example.org"
        assert config.matrix_username == "bot"
        assert config.matrix_password.get_secret_value() == "hunter2"
        assert config.matrix_room_id == ROOM_ID
        assert config.firefly_url == "https://firefly.example.org"
        assert config.firefly_api_key.get_secret_value() == "secret-token"
        assert config.firefly_source_account_id == 7

    def test_defaults(self, write_config):
        config = load_config(write_config(CONFIG_VALUES))

        assert config.firefly_destination_name == "General expense"
        assert config.firefly_timeout_seconds == 30.0
        assert config.amount_max_decimal_places == 2
        assert config.log_level == "INFO"
        assert config.log_json is True

    def test_accepts_str_path(self, write_config):
        config = load_config(str(write_config(CONFIG_VALUES)))
        assert config.firefly_source_account_id == 7

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_invalid_toml(self, write_config):
        path = write_config(text="matrix_username = \n[[[")
        with pytest.raises(ConfigError, match="Could not read"):
            load_config(path)

    def test_missing_required_field_is_named(self, write_config):
        values = dict(CONFIG_VALUES)
        del values["firefly_api_key"]

        with pytest.raises(ConfigError) as exc_info:
            load_config(write_config(values))

        assert "firefly_api_key" in str(exc_info.value)

    def test_unparsable_account_id(self, write_config):
        values = dict(CONFIG_VALUES, firefly_source_account_id="checking")
        with pytest.raises(ConfigError, match="firefly_source_account_id"):
            load_config(write_config(values))

    def test_invalid_room_id(self, write_config):
        values = dict(CONFIG_VALUES, matrix_room_id="#expenses:example.org")
        with pytest.raises(ConfigError, match="matrix_room_id"):
            load_config(write_config(values))

    def test_invalid_url(self, write_config):
        values = dict(CONFIG_VALUES, firefly_url="firefly.example.org")
        with pytest.raises(ConfigError, match="firefly_url"):
            load_config(write_config(values))

    def test_unknown_keys_are_ignored(self, write_config):
        values = dict(CONFIG_VALUES, something_else="x")
        assert load_config(write_config(values)).matrix_username == "bot"


class TestEnvironment:
    """Environment variables fill gaps left by the file."""

    def test_env_fills_missing_field(self, write_config, monkeypatch):
        values = dict(CONFIG_VALUES)
        del values["firefly_api_key"]
        monkeypatch.setenv("EXPENSE_BRIDGE_FIREFLY_API_KEY", "from-env")

        config = load_config(write_config(values))

        assert config.firefly_api_key.get_secret_value() == "from-env"

    def test_file_wins_over_env(self, write_config, monkeypatch):
        monkeypatch.setenv("EXPENSE_BRIDGE_FIREFLY_SOURCE_ACCOUNT_ID", "99")

        config = load_config(write_config(CONFIG_VALUES))

        assert config.firefly_source_account_id == 7


class TestBotConfig:
    """Tests for the BotConfig model itself."""

    def test_trailing_slash_is_stripped(self):
        config = BotConfig(**dict(CONFIG_VALUES, firefly_url="https://firefly.example.org/"))
        assert config.firefly_url == "https://firefly.example.org"

    def test_log_level_is_normalized(self):
        config = BotConfig(**dict(CONFIG_VALUES, log_level="debug"))
        assert config.log_level == "DEBUG"

    def test_bad_log_level(self):
        with pytest.raises(ValidationError):
            BotConfig(**dict(CONFIG_VALUES, log_level="LOUD"))

    def test_account_id_must_be_positive(self):
        with pytest.raises(ValidationError):
            BotConfig(**dict(CONFIG_VALUES, firefly_source_account_id=0))

    def test_is_frozen(self):
        config = BotConfig(**CONFIG_VALUES)
        with pytest.raises(ValidationError):
            config.firefly_source_account_id = 8

    def test_secrets_are_not_in_repr(self):
        config = BotConfig(**CONFIG_VALUES)
        text = repr(config)
        assert "hunter2" not in text
        assert "secret-token" not in text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
