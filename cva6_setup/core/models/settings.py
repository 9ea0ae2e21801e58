"""
Settings model — loaded from cva6-setup.yml.

Every field has a default matching a stock CVA6 checkout, so the file
is optional.  Repository-relative paths are resolved against the
repository path the user gives at run time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_PACKAGES = [
    "autoconf",
    "automake",
    "autotools-dev",
    "curl",
    "git",
    "libmpc-dev",
    "libmpfr-dev",
    "libgmp-dev",
    "gawk",
    "build-essential",
    "bison",
    "flex",
    "texinfo",
    "gperf",
    "libtool",
    "bc",
    "zlib1g-dev",
]

# shell basename → rc file
_PROFILE_MAP = {
    "bash": "~/.bashrc",
    "zsh": "~/.zshrc",
    "fish": "~/.config/fish/config.fish",
}
_DEFAULT_PROFILE = "~/.profile"


def login_shell() -> str:
    """Basename of the user's login shell (bash when unset)."""
    return os.path.basename(os.environ.get("SHELL", "/bin/bash"))


def default_profile_path() -> str:
    """Pick the rc file for the user's login shell."""
    return _PROFILE_MAP.get(login_shell(), _DEFAULT_PROFILE)


class SetupSettings(BaseModel):
    """Effective settings for a provisioning run."""

    # ── OS packages ──────────────────────────────────────────────
    packages: list[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    package_manager: Literal["apt", "dnf", "yum", "pacman"] = "apt"

    # ── Toolchain builder (relative to the repository) ───────────
    marker_subdir: str = "util/toolchain-builder"
    # (the rest are relative to marker_subdir)
    fetch_script: str = "get-toolchain.sh"
    build_script: str = "build-toolchain.sh"
    patch_file: str = "gcc-cva6-tune.patch"
    gcc_source_subdir: str = "src/gcc"

    # ── Runtime environment (relative to the repository) ─────────
    venv_dir: str = ".venv"
    requirements: str = "verif/sim/dv/requirements.txt"

    # ── Documentation ────────────────────────────────────────────
    docs_requirements: str = "docs/requirements.txt"
    docs_dir: str = "docs"
    docs_target: str = "html"

    # ── Smoke tests ──────────────────────────────────────────────
    smoke_test_script: str = "verif/regress/smoke-tests.sh"
    simulators: str = "veri-testharness,spike"

    # ── Config name ──────────────────────────────────────────────
    fallback_gcc_version: str = "13.3.0"
    config_suffix: str = "BareMetal"

    # ── Shell profile ────────────────────────────────────────────
    profile_path: str = Field(default_factory=default_profile_path)
    profile_marker: str = "cva6-setup"

    @field_validator("packages")
    @classmethod
    def _no_blank_packages(cls, value: list[str]) -> list[str]:
        cleaned = [p.strip() for p in value]
        if any(not p for p in cleaned):
            raise ValueError("package names must be non-empty")
        return cleaned

    @field_validator("profile_marker")
    @classmethod
    def _marker_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("profile_marker must be non-empty")
        return value.strip()

    # ── Resolved locations ───────────────────────────────────────

    def builder_dir(self, repo: Path) -> Path:
        return repo / self.marker_subdir

    def gcc_source_dir(self, repo: Path) -> Path:
        return self.builder_dir(repo) / self.gcc_source_subdir

    def patch_path(self, repo: Path) -> Path:
        return self.builder_dir(repo) / self.patch_file

    def venv_path(self, repo: Path) -> Path:
        return repo / self.venv_dir

    def resolved_profile(self) -> Path:
        return Path(os.path.expanduser(self.profile_path))
