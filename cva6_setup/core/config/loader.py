"""
Configuration loader — reads cva6-setup.yml and answers files.

Settings are optional: with no file on disk every default applies.
Answers files feed the scripted input provider and must be a flat
mapping of prompt key → answer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from cva6_setup.core.models.settings import SetupSettings

logger = logging.getLogger(__name__)

# Default settings filename
SETTINGS_FILE = "cva6-setup.yml"


class ConfigError(Exception):
    """Raised when a settings or answers file is invalid or unreadable."""


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for cva6-setup.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to cva6-setup.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_mapping(path: Path, what: str, loader: type = yaml.SafeLoader) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"{what} file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.load(raw, Loader=loader)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_settings(path: Path | None = None, *, search: bool = True) -> SetupSettings:
    """Load and validate settings.

    Args:
        path: Explicit path to a settings file.
        search: When no path is given, look for cva6-setup.yml upward
            from the cwd.  With nothing found, defaults apply.

    Raises:
        ConfigError: If the file is unreadable or invalid.
    """
    if path is None and search:
        path = find_settings_file()

    if path is None:
        logger.debug("No %s found, using defaults", SETTINGS_FILE)
        return SetupSettings()

    logger.debug("Loading settings from %s", path)
    data = _read_mapping(path, "Settings")

    # Allow everything to sit under a top-level "cva6_setup" key
    if "cva6_setup" in data and isinstance(data["cva6_setup"], dict):
        data = data["cva6_setup"]

    try:
        settings = SetupSettings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s (%d packages)", path, len(settings.packages))
    return settings


def load_answers(path: Path) -> dict[str, str]:
    """Load a scripted answers file.

    Values are read as the literal text written, so ``no``, ``off`` and
    ``8`` reach the answer parsers exactly as typed.  An empty value is
    ``""``.

    Raises:
        ConfigError: If the file is missing, unreadable, not a mapping,
            or holds a nested list or mapping as an answer.
    """
    data = _read_mapping(path, "Answers", yaml.BaseLoader)
    answers: dict[str, str] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise ConfigError(f"Answer for {key} in {path} must be a plain value")
        answers[key] = value
    logger.debug("Loaded %d scripted answers from %s", len(answers), path)
    return answers
