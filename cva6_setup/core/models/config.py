"""
Provisioning models — the values collected once and threaded through
every stage.

Nothing here is persisted.  The only durable traces of a run are its
filesystem side effects (installed packages, built toolchain, virtual
environment, shell-profile block).
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

_CONFIG_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._+-]*$")


class HostInfo(BaseModel):
    """What environment discovery found on this machine."""

    gcc_version: str
    gcc_detected: bool = True     # False → gcc_version is the fallback
    processing_units: int = Field(ge=1)


class InstallPaths(BaseModel):
    """Where the CVA6 checkout lives and where the toolchain goes."""

    repo: Path
    install: Path

    @field_validator("repo", "install")
    @classmethod
    def _must_be_absolute(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"path must be absolute: {value}")
        return value


class BuildConfig(BaseModel):
    """Thread count and toolchain configuration name."""

    threads: int = Field(ge=1)
    config_name: str

    @field_validator("config_name")
    @classmethod
    def _valid_identifier(cls, value: str) -> str:
        if not _CONFIG_NAME_RE.match(value):
            raise ValueError(f"invalid config name: {value!r}")
        return value


class PackageSet(BaseModel):
    """Required OS packages reconciled against what is installed."""

    required: list[str] = Field(default_factory=list)
    installed: list[str] = Field(default_factory=list)

    @property
    def missing(self) -> list[str]:
        """Required packages not yet installed, in declaration order."""
        have = set(self.installed)
        return [p for p in self.required if p not in have]


class ProvisioningState(BaseModel):
    """Flags for the optional stages.

    Each flag starts unset and is decided exactly once, at the start of
    the stage it gates.
    """

    install_docs: bool | None = None
    run_tests: bool | None = None
    persist_env: bool | None = None

    def decide(self, flag: str, value: bool) -> None:
        if flag not in type(self).model_fields:
            raise KeyError(flag)
        if getattr(self, flag) is not None:
            raise ValueError(f"{flag} already decided")
        setattr(self, flag, value)


class InstallConfig(BaseModel):
    """Everything the mutating stages need, collected up front."""

    paths: InstallPaths
    build: BuildConfig
    simulators: str = ""

    def subprocess_env(self) -> dict[str, str]:
        """Variables exported to delegated commands."""
        env = {
            "RISCV": str(self.paths.install),
            "NUM_JOBS": str(self.build.threads),
            "CONFIG_NAME": self.build.config_name,
        }
        if self.simulators:
            env["DV_SIMULATORS"] = self.simulators
        return env
