"""Configuration and logging setup.

Settings come from three layers, later ones winning:

1. built-in defaults
2. an optional YAML file (``--config`` or ``BEFOREAFTER_CONFIG``)
3. ``BEFOREAFTER_*`` environment variables (a ``.env`` file is loaded first)

Example YAML:

    max_dimension: 1024
    jpeg_quality: 0.85
    grid_size: 64
    database: data/records.db
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from .core.normalizer import DEFAULT_JPEG_QUALITY, DEFAULT_MAX_DIMENSION, DEFAULT_MAX_FILE_SIZE
from .core.pipeline import DEFAULT_MAX_IMAGE_COUNT, DEFAULT_MAX_WORKERS, DEFAULT_MIN_IMAGE_COUNT
from .core.scorer import DEFAULT_GRID_SIZE

ENV_PREFIX = "BEFOREAFTER_"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class ConfigError(Exception):
    """Raised when a configuration file or value is invalid."""
    pass


@dataclass(frozen=True)
class Settings:
    """Tunable constants of the normalization and scoring pipeline."""

    max_dimension: int = DEFAULT_MAX_DIMENSION
    jpeg_quality: float = DEFAULT_JPEG_QUALITY
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    grid_size: int = DEFAULT_GRID_SIZE
    min_image_count: int = DEFAULT_MIN_IMAGE_COUNT
    max_image_count: int = DEFAULT_MAX_IMAGE_COUNT
    max_workers: int = DEFAULT_MAX_WORKERS
    database: str = "data/records.db"
    log_level: str = "INFO"

    def validate(self) -> "Settings":
        if self.max_dimension < 1:
            raise ConfigError(f"max_dimension must be positive, got {self.max_dimension}")
        if not 0.0 <= self.jpeg_quality <= 1.0:
            raise ConfigError(f"jpeg_quality must be between 0 and 1, got {self.jpeg_quality}")
        if self.max_file_size < 1:
            raise ConfigError(f"max_file_size must be positive, got {self.max_file_size}")
        if self.grid_size < 1:
            raise ConfigError(f"grid_size must be positive, got {self.grid_size}")
        if not 0 <= self.min_image_count <= self.max_image_count:
            raise ConfigError(
                f"image count range {self.min_image_count}..{self.max_image_count} is invalid"
            )
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be positive, got {self.max_workers}")
        return self


def _coerce(name: str, value: Any, target: type) -> Any:
    if target is int and (isinstance(value, bool) or
                          (isinstance(value, float) and not value.is_integer())):
        raise ConfigError(f"invalid value for {name}: {value!r} (expected a whole number)")
    try:
        return target(value)
    except (TypeError, ValueError):
        raise ConfigError(f"invalid value for {name}: {value!r}")


def load_config_file(config_path: str | Path) -> dict:
    """Load settings overrides from a YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"config file not found: {config_path}")

    with open(path) as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"could not parse {config_path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"config file must contain a mapping: {config_path}")
    return config


def load_settings(config_path: Optional[str | Path] = None) -> Settings:
    """Build Settings from defaults, an optional YAML file and the environment."""
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings()
    types = {f.name: type(getattr(settings, f.name)) for f in fields(Settings)}

    config_path = config_path or os.environ.get(f"{ENV_PREFIX}CONFIG")
    overrides: dict[str, Any] = {}
    if config_path:
        for key, value in load_config_file(config_path).items():
            if key not in types:
                raise ConfigError(f"unknown setting in {config_path}: {key}")
            overrides[key] = _coerce(key, value, types[key])

    for name, target in types.items():
        value = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = _coerce(name, value, target)

    return replace(settings, **overrides).validate()


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger for command-line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
