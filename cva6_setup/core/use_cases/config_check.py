"""
Config check use case — validate cva6-setup.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cva6_setup.core.config.loader import ConfigError, find_settings_file, load_settings
from cva6_setup.core.models.settings import SetupSettings


@dataclass
class ConfigCheckResult:
    """Result of settings validation."""

    valid: bool = False
    settings: SetupSettings | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "settings": self.settings.model_dump(mode="json") if self.settings else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate settings and report issues.

    A missing settings file is not an error: defaults apply, and a
    warning says so.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_settings_file()
        if config_path is None:
            result.warnings.append("No cva6-setup.yml found, using built-in defaults.")

    result.config_path = config_path

    try:
        settings = load_settings(config_path, search=False)
    except ConfigError as e:
        result.errors.append(str(e))
        return result
    result.settings = settings

    # Semantic checks
    if not settings.packages:
        result.warnings.append("No packages declared. The packages stage will be a no-op.")

    dupes = sorted({p for p in settings.packages if settings.packages.count(p) > 1})
    if dupes:
        result.warnings.append(f"Duplicate packages: {', '.join(dupes)}")

    for name in ("marker_subdir", "venv_dir", "requirements", "docs_requirements",
                 "docs_dir", "smoke_test_script"):
        if Path(getattr(settings, name)).is_absolute():
            result.errors.append(f"{name} must be relative to the repository")

    for name in ("fetch_script", "build_script", "patch_file", "gcc_source_subdir"):
        if Path(getattr(settings, name)).is_absolute():
            result.errors.append(f"{name} must be relative to {settings.marker_subdir}")

    result.valid = not result.errors
    return result
