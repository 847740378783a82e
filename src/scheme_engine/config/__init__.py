"""Configuration models and loaders for the scheme engine."""

from .models import DEFAULT_BENEFIT_PRIORITY, EngineConfig, rank_benefits
from .settings import (
    configure_from_settings,
    get_config_from_env,
    load_config,
    load_config_with_fallback,
)

__all__ = [
    "DEFAULT_BENEFIT_PRIORITY",
    "EngineConfig",
    "rank_benefits",
    "configure_from_settings",
    "get_config_from_env",
    "load_config",
    "load_config_with_fallback",
]
