"""Configuration file support for variant-pool."""

import logging
import tomllib
from pathlib import Path
from typing import Any

from .loader import PoolConfig

logger = logging.getLogger(__name__)

CONFIG_TABLE = "variant_pool"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

BOOLEAN_KEYS = ("add_chr", "require_index", "repair_header")

POOL_CONFIG_FIELDS = {"add_chr", "pool_id", "require_index", "repair_header"}


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


def validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Raises:
        ConfigValidationError: If any configuration value is invalid.
    """
    for key in BOOLEAN_KEYS:
        if key in config_dict and not isinstance(config_dict[key], bool):
            raise ConfigValidationError(
                f"{key} must be a boolean, got {type(config_dict[key]).__name__}"
            )

    if "pool_id" in config_dict:
        pool_id = config_dict["pool_id"]
        if not isinstance(pool_id, str) or not pool_id.strip():
            raise ConfigValidationError("pool_id must be a non-empty string")

    if "log_level" in config_dict:
        log_level = config_dict["log_level"]
        if not isinstance(log_level, str):
            raise ConfigValidationError(
                f"log_level must be a string, got {type(log_level).__name__}"
            )
        if log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got '{log_level}'"
            )


def _read_table(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        toml_data = tomllib.load(f)

    return dict(toml_data.get(CONFIG_TABLE, {}))


def load_config(config_path: Path, overrides: dict[str, Any] | None = None) -> PoolConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML configuration file.
        overrides: Optional dict of values to override loaded config.

    Returns:
        PoolConfig instance with loaded values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigValidationError: If any configuration value is invalid.
    """
    config_dict = _read_table(config_path)

    if overrides:
        config_dict.update({k: v for k, v in overrides.items() if v is not None})

    validate_config(config_dict)

    unknown = set(config_dict) - POOL_CONFIG_FIELDS - {"log_level"}
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(unknown)))

    filtered_config = {k: v for k, v in config_dict.items() if k in POOL_CONFIG_FIELDS}

    return PoolConfig(**filtered_config)


def load_log_level(config_path: Path) -> str:
    """Return the configured log level name, defaulting to INFO."""
    config_dict = _read_table(config_path)
    validate_config(config_dict)
    return str(config_dict.get("log_level", "INFO")).upper()
