"""
Configuration loader — locates the installation and reads kaspa-aio.yml.

The settings file is optional.  When present it is parsed with
PyYAML and validated against ``InstallerSettings``; any problem is
reported as a ``ConfigError`` so the CLI can show one clean message.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from kaspa_aio.core.models.settings import InstallerSettings

logger = logging.getLogger(__name__)

SETTINGS_FILE = "kaspa-aio.yml"
STATE_DIR = ".kaspa-aio"
ROOT_ENV_VAR = "KASPA_AIO_ROOT"


class ConfigError(Exception):
    """Raised when installation settings are invalid or unreadable."""


def find_installation_root(start_dir: Path | None = None) -> Path | None:
    """Search upward for an installation marker.

    A directory is an installation root when it holds ``kaspa-aio.yml``
    or a ``.kaspa-aio/`` state directory.

    Returns:
        The root directory, or None if no marker was found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        if (current / SETTINGS_FILE).is_file() or (current / STATE_DIR).is_dir():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def resolve_installation_root(explicit: Path | str | None = None) -> Path:
    """Pick the installation root.

    Precedence: explicit argument > KASPA_AIO_ROOT > upward search > cwd.
    """
    if explicit:
        return Path(explicit).resolve()

    from_env = os.environ.get(ROOT_ENV_VAR)
    if from_env:
        return Path(from_env).resolve()

    found = find_installation_root()
    return found if found is not None else Path.cwd().resolve()


def load_settings(root: Path) -> InstallerSettings:
    """Load settings for an installation root.

    Returns:
        Validated settings; defaults when no settings file exists.

    Raises:
        ConfigError: If the file exists but is not valid YAML or
            does not match the settings schema.
    """
    path = root / SETTINGS_FILE
    if not path.is_file():
        logger.debug("No %s at %s — using defaults", SETTINGS_FILE, root)
        return InstallerSettings()

    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if data is None:
        return InstallerSettings()
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a YAML mapping, got {type(data).__name__}")

    try:
        settings = InstallerSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}:\n{e}") from e

    logger.debug("Loaded settings from %s", path)
    return settings
