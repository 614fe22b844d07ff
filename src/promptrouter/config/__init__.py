"""Configuration loading (pydantic-settings + YAML)."""

from .settings import (
    InferenceConfig,
    LoggingConfig,
    RoutingConfig,
    Settings,
    StoreConfig,
    WebConfig,
    load_settings,
)

__all__ = [
    "InferenceConfig",
    "load_settings",
    "LoggingConfig",
    "RoutingConfig",
    "Settings",
    "StoreConfig",
    "WebConfig",
]
