"""
Configuration Management for Matrix Expense Bridge

Uses pydantic-settings for type-safe configuration from a TOML file,
with environment variables (EXPENSE_BRIDGE_*) filling any gaps.

All configuration is centralized here and validated once at startup.
A BotConfig is frozen: it is built before the event loop starts and is
shared read-only by the loop and the dispatcher.
"""

from pathlib import Path
from typing import Union

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Startup configuration is missing or malformed."""
    pass


class BotConfig(BaseSettings):
    """
    Process-wide bot configuration.

    The first seven fields are required; the rest have sensible defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_BRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Matrix
    matrix_homeserver_url: str = Field(
        ...,
        description="Base URL of the Matrix homeserver"
    )
    matrix_username: str = Field(
        ...,
        min_length=1,
        description="Bot account username (localpart or full user id)"
    )
    matrix_password: SecretStr = Field(
        ...,
        description="Bot account password"
    )
    matrix_room_id: str = Field(
        ...,
        description="Room the bot listens to, e.g. !abcdef:example.org"
    )

    # Firefly III
    firefly_url: str = Field(
        ...,
        description="Base URL of the Firefly III instance"
    )
    firefly_api_key: SecretStr = Field(
        ...,
        description="Firefly III personal access token"
    )
    firefly_source_account_id: int = Field(
        ...,
        ge=1,
        description="Asset account every expense is withdrawn from"
    )
    firefly_destination_name: str = Field(
        default="General expense",
        min_length=1,
        description="Expense account name used as the withdrawal destination"
    )
    firefly_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Request timeout for ledger calls"
    )

    # Command parsing
    amount_max_decimal_places: int = Field(
        default=2,
        ge=0,
        le=8,
        description="Maximum fractional digits accepted in an amount"
    )

    # Runtime
    bot_display_name: str = Field(
        default="expense bot",
        description="Device display name used at login"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON lines (otherwise human-readable)"
    )

    @field_validator("matrix_homeserver_url", "firefly_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("matrix_room_id")
    @classmethod
    def validate_room_id(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("!") or ":" not in v:
            raise ValueError("must be a room id of the form !opaque:server")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return level


def _describe_validation_error(path: Path, error: ValidationError) -> str:
    """Turn a pydantic ValidationError into an operator-friendly message."""
    lines = [f"Invalid configuration in {path}:"]
    for issue in error.errors():
        field = ".".join(str(part) for part in issue["loc"]) or "<root>"
        lines.append(f"  - {field}: {issue['msg']}")
    return "\n".join(lines)


def load_config(path: Union[str, Path]) -> BotConfig:
    """
    Load and validate the bot configuration.

    Args:
        path: Path to the TOML configuration file

    Returns:
        A frozen BotConfig

    Raises:
        ConfigError: If the file is missing, is not valid TOML, or
                     a required field is missing or unparsable
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        file_values = TomlConfigSettingsSource(BotConfig, toml_file=config_path)()
    except (OSError, ValueError) as e:
        # tomllib.TOMLDecodeError is a ValueError
        raise ConfigError(f"Could not read configuration file {config_path}: {e}") from e

    try:
        return BotConfig(**file_values)
    except ValidationError as e:
        raise ConfigError(_describe_validation_error(config_path, e)) from e
