"""
Configuration loader: reads config.yml into the Settings model.

The config file is optional. It reads YAML, validates against the
Pydantic schema, and returns typed settings; a missing file yields the
defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from craterun.core.errors import ConfigError
from craterun.core.models import Settings
from craterun.core.services.paths import default_config_dir

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.yml"
CONFIG_ENV = "CRATERUN_CONFIG"


def find_config_file(
    environ: Mapping[str, str],
    explicit: Path | None = None,
) -> Path | None:
    """Locate the config file.

    Order: explicit ``--config`` path, ``CRATERUN_CONFIG``, then
    ``<config dir>/config.yml`` if it exists. An explicit path or env
    value is returned even when missing so the caller can report it.
    """
    if explicit is not None:
        return explicit
    from_env = environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env).expanduser()
    candidate = default_config_dir(environ) / CONFIG_FILE
    if candidate.is_file():
        return candidate
    return None


def load_settings(
    environ: Mapping[str, str],
    path: Path | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        environ: Environment snapshot.
        path: Explicit config path (``--config``). If None, searches.

    Returns:
        Validated Settings (defaults when no config file exists).

    Raises:
        ConfigError: If an explicitly named file is missing or any file
            is unreadable or invalid.
    """
    path = find_config_file(environ, path)
    if path is None:
        logger.debug("No config file, using defaults")
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(p) for p in first["loc"]) or "<root>"
        raise ConfigError(f"Invalid configuration in {path}: {location}: {first['msg']}") from e

    logger.info("Loaded config from %s", path)
    return settings
