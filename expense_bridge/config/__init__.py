"""Configuration package."""

from expense_bridge.config.settings import (
    BotConfig,
    ConfigError,
    load_config,
)

__all__ = [
    "BotConfig",
    "ConfigError",
    "load_config",
]
