"""
Tests for the command-line entry point.
"""

from unittest.mock import AsyncMock, patch

import pytest

from conftest import CONFIG_VALUES

from expense_bridge import main as entry
from expense_bridge.services.chat import ChatSessionError


@pytest.fixture
def config_file(tmp_path):
    lines = []
    for key, value in CONFIG_VALUES.items():
        lines.append(f"{key} = {value}" if isinstance(value, int) else f'{key} = "{value}"')
    path = tmp_path / "config.toml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch.object(entry, "configure_logging") as configure:
        yield configure


class TestMain:
    """Exit codes of main()."""

    def test_missing_config_exits_with_config_error(self, tmp_path, capsys):
        code = entry.main([str(tmp_path / "missing.toml")])

        assert code == entry.EXIT_CONFIG_ERROR
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_config_exits_with_config_error(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('matrix_username = "bot"\n', encoding="utf-8")

        assert entry.main([str(path)]) == entry.EXIT_CONFIG_ERROR

    def test_session_loss_exits_with_one(self, config_file):
        run_bot = AsyncMock(side_effect=ChatSessionError("Session lost"))
        with patch.object(entry, "run_bot", run_bot):
            assert entry.main([str(config_file)]) == entry.EXIT_SESSION_LOST
        run_bot.assert_awaited_once()

    def test_clean_end_of_stream_exits_with_zero(self, config_file):
        with patch.object(entry, "run_bot", AsyncMock()):
            assert entry.main([str(config_file)]) == entry.EXIT_OK

    def test_log_level_override(self, config_file, quiet_logging):
        with patch.object(entry, "run_bot", AsyncMock()):
            entry.main([str(config_file), "--log-level", "debug"])

        quiet_logging.assert_called_once_with("DEBUG", True)

    def test_log_level_from_config(self, config_file, quiet_logging):
        with patch.object(entry, "run_bot", AsyncMock()):
            entry.main([str(config_file)])

        quiet_logging.assert_called_once_with("INFO", True)


class TestArgParser:
    """Tests for the argument parser."""

    def test_requires_config_path(self):
        with pytest.raises(SystemExit):
            entry.build_arg_parser().parse_args([])

    def test_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            entry.build_arg_parser().parse_args(["config.toml", "--log-level", "LOUD"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
