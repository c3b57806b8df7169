"""Configuration module for the training pipeline."""

from ferrycast.config.config import (
    Settings,
    WsfSettings,
    TrainingSettings,
    DatabaseSettings,
    LoggingSettings,
    get_settings,
    settings,
)
from ferrycast.config.route_priors import (
    RoutePriorsConfig,
    ValidationThresholds,
    create_route_priors,
    format_route_key,
    parse_route_key,
)

__all__ = [
    "Settings",
    "WsfSettings",
    "TrainingSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "get_settings",
    "settings",
    "RoutePriorsConfig",
    "ValidationThresholds",
    "create_route_priors",
    "format_route_key",
    "parse_route_key",
]
