"""Configuration discovery and loading.

Configuration is read from the repository root, in order of preference:

1. ``polyrelease.toml`` (whole file is the configuration)
2. ``[tool.polyrelease]`` in ``pyproject.toml``

When neither is present the defaults are used.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from polyrelease.config.models import PolyReleaseConfig
from polyrelease.exceptions import ConfigNotFoundError, ConfigValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "polyrelease.toml"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_KEY = "polyrelease"


def load_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_tool_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.polyrelease]`` table, or an empty dict."""
    return pyproject.get("tool", {}).get(TOOL_KEY, {})


def find_config_source(root: Path) -> Path | None:
    """Locate the file that holds configuration for ``root``, if any."""
    dedicated = root / CONFIG_FILENAME
    if dedicated.is_file():
        return dedicated

    pyproject = root / PYPROJECT_FILENAME
    if pyproject.is_file() and extract_tool_config(load_toml(pyproject)):
        return pyproject

    return None


def load_config(root: Path, config_file: Path | None = None) -> PolyReleaseConfig:
    """Load configuration for the repository at ``root``.

    Args:
        root: Repository root
        config_file: Explicit configuration file, overriding discovery

    Returns:
        Validated configuration

    Raises:
        ConfigNotFoundError: If config_file is given but missing
        ConfigValidationError: If the configuration is invalid
    """
    source = config_file if config_file is not None else find_config_source(root)
    if source is None:
        logger.debug("No configuration found under %s, using defaults", root)
        return PolyReleaseConfig()

    data = load_toml(source)
    if source.name == PYPROJECT_FILENAME:
        data = extract_tool_config(data)

    logger.debug("Loading configuration from %s", source)
    try:
        return PolyReleaseConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration in {source}:\n{e}") from e
