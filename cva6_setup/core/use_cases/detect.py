"""
Detect use case — environment discovery and preflight, no side effects.

Reports what an install would start from: host compiler, processing
units, the default config name, the host Python, tool availability
and which declared packages are missing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cva6_setup.adapters.registry import AdapterRegistry, default_registry
from cva6_setup.core.config.loader import ConfigError, load_settings
from cva6_setup.core.models.action import Action
from cva6_setup.core.models.config import HostInfo, PackageSet
from cva6_setup.core.services.detection import default_config_name, discover_host
from cva6_setup.core.services.system_deps import check_system_deps


@dataclass
class DetectResult:
    """Result of environment discovery."""

    host: HostInfo | None = None
    default_config_name: str = ""
    python_version: str | None = None
    packages: PackageSet | None = None
    package_manager: str = ""
    tools: dict[str, bool] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.host is not None and self.packages is not None
        return {
            "gcc_version": self.host.gcc_version,
            "gcc_detected": self.host.gcc_detected,
            "processing_units": self.host.processing_units,
            "default_config_name": self.default_config_name,
            "python_version": self.python_version,
            "tools": self.tools,
            "packages": {
                "manager": self.package_manager,
                "required": len(self.packages.required),
                "installed": self.packages.installed,
                "missing": self.packages.missing,
            },
        }


def run_detect(
    config_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> DetectResult:
    """Probe the host without changing anything."""
    result = DetectResult()

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    if registry is None:
        registry = default_registry()

    result.host = discover_host(registry, settings)
    result.default_config_name = default_config_name(
        result.host.gcc_version, settings.config_suffix,
    )

    receipt = registry.execute_action(Action(
        id="detect:python-version",
        name="python version",
        adapter="python",
        stage="discover",
        params={"operation": "version"},
    ))
    if receipt.ok:
        result.python_version = receipt.metadata.get("version")

    result.tools = {
        name: info["available"] for name, info in registry.adapter_status().items()
    }
    result.package_manager = settings.package_manager
    result.packages = check_system_deps(
        registry, settings.packages, settings.package_manager,
    )
    return result
