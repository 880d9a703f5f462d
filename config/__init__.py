"""Client settings loaded from config/default.yaml and config/override.yaml."""

from config.controller import (
    DEFAULT_API_BASE_URL,
    DEFAULT_RECONNECT_DELAY_S,
    DEFAULT_STREAM_URL,
    ConfigController,
)

__all__ = [
    "ConfigController",
    "DEFAULT_API_BASE_URL",
    "DEFAULT_RECONNECT_DELAY_S",
    "DEFAULT_STREAM_URL",
]
