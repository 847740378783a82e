"""
Configuration loading for the scheme calculation engine.

This module provides utilities for loading, validating, and managing
configuration settings.
"""

import logging
import os
from pathlib import Path

from .models import EngineConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "SCHEME_ENGINE_"


def load_config(
    config_path: str | Path | None = None, config_name: str = "scheme_engine.json"
) -> EngineConfig:
    """
    Load configuration from file with intelligent path resolution.

    Args:
        config_path: Explicit path to config file or directory containing config
        config_name: Name of config file (default: "scheme_engine.json")

    Returns:
        EngineConfig: Loaded and validated configuration

    Raises:
        FileNotFoundError: If no configuration file is found
        ValueError: If configuration is invalid
    """
    if config_path is None:
        search_paths = [
            Path.cwd() / config_name,
            Path.cwd() / "config" / config_name,
        ]

        for path in search_paths:
            if path.exists():
                config_path = path
                break
        else:
            raise FileNotFoundError(
                f"Configuration file '{config_name}' not found in any of: "
                f"{[str(p) for p in search_paths]}"
            )

    config_path = Path(config_path)

    if config_path.is_dir():
        config_path = config_path / config_name

    return EngineConfig.from_file(config_path)


def get_config_from_env() -> EngineConfig | None:
    """
    Try to load configuration from environment variables.

    Returns:
        EngineConfig if environment variables are set, None otherwise
    """
    config_file_env = os.getenv(f"{ENV_PREFIX}CONFIG_FILE")
    if config_file_env:
        return load_config(config_file_env)

    env_vars = {
        f"{ENV_PREFIX}BENEFIT_PRIORITY": "benefit_priority",
        f"{ENV_PREFIX}VALIDATION_CACHE_SIZE": "validation_cache_size",
        f"{ENV_PREFIX}METRICS_ENABLED": "metrics_enabled",
        f"{ENV_PREFIX}LOG_LEVEL": "log_level",
    }

    env_values = {key: os.getenv(key) for key in env_vars}
    if not any(env_values.values()):
        return None

    config_data: dict = {}
    try:
        for env_name, field_name in env_vars.items():
            raw = env_values[env_name]
            if not raw:
                continue
            if field_name == "benefit_priority":
                config_data[field_name] = [
                    part.strip() for part in raw.split(",") if part.strip()
                ]
            elif field_name == "validation_cache_size":
                config_data[field_name] = int(raw)
            elif field_name == "metrics_enabled":
                config_data[field_name] = raw.strip().lower() in {"1", "true", "yes"}
            else:
                config_data[field_name] = raw

        return EngineConfig(**config_data)

    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid environment variable configuration: {e}")


def load_config_with_fallback(config_path: str | Path | None = None) -> EngineConfig:
    """
    Load configuration with fallback to environment variables and defaults.

    Priority order:
    1. Explicit config file path
    2. Environment variable SCHEME_ENGINE_CONFIG_FILE
    3. Individual SCHEME_ENGINE_* environment variables
    4. Default locations (scheme_engine.json, config/scheme_engine.json)
    5. Built-in defaults

    Args:
        config_path: Optional explicit path to config file

    Returns:
        EngineConfig: Loaded configuration
    """
    if config_path:
        try:
            return load_config(config_path)
        except FileNotFoundError:
            logger.warning(f"Config file {config_path} not found, trying fallbacks")

    try:
        env_config = get_config_from_env()
        if env_config:
            return env_config
    except (ValueError, FileNotFoundError) as e:
        logger.warning(f"Ignoring invalid environment configuration: {e}")

    try:
        return load_config()
    except FileNotFoundError:
        pass

    logger.info("No scheme engine configuration found, using defaults")
    return EngineConfig()


def configure_from_settings(config_path: str | Path | None = None) -> EngineConfig:
    """
    Load configuration and apply its log level.

    Call once at application start, before building a ``SchemeCalculator``.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        EngineConfig: Loaded configuration
    """
    config = load_config_with_fallback(config_path)
    config.configure_logging()
    logger.debug(f"Structured logging configured at {config.log_level}")
    return config
