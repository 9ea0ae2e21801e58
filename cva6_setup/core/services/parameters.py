"""
Parameter collection — paths, thread count and config name.

Fail-fast: an invalid answer raises immediately, there is no retry
loop.  The only recovery action is creating a missing install
directory.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from cva6_setup.core.errors import InvalidInputError, InvalidPathError
from cva6_setup.core.models.config import BuildConfig, HostInfo, InstallConfig, InstallPaths
from cva6_setup.core.models.settings import SetupSettings
from cva6_setup.core.services.detection import default_config_name
from cva6_setup.core.services.prompts import InputProvider

logger = logging.getLogger(__name__)

DEFAULT_REPO_PATH = "~/cva6"
DEFAULT_INSTALL_PATH = "~/riscv"

_POSITIVE_INT_RE = re.compile(r"^\d+$")


def expand_path(raw: str) -> Path:
    """Expand a leading ``~`` and resolve to an absolute canonical path."""
    text = raw.strip()
    if not text:
        raise InvalidInputError("Empty path")
    return Path(os.path.expanduser(text)).resolve()


def resolve_repo_path(raw: str, marker_subdir: str) -> Path:
    """Validate the CVA6 checkout.

    Raises:
        InvalidPathError: if the directory is missing or lacks the marker
            subdirectory.
    """
    repo = expand_path(raw)
    if not repo.is_dir():
        raise InvalidPathError(f"Repository path does not exist: {repo}")
    if not (repo / marker_subdir).is_dir():
        raise InvalidPathError(
            f"{repo} does not look like a CVA6 checkout (missing {marker_subdir}/)"
        )
    return repo


def resolve_install_path(raw: str) -> Path:
    """Resolve the toolchain install directory without touching the disk."""
    install = expand_path(raw)
    if install.exists() and not install.is_dir():
        raise InvalidPathError(f"Install path exists and is not a directory: {install}")
    return install


def ensure_install_dir(install: Path) -> Path:
    """Create the install directory if absent."""
    if not install.exists():
        try:
            install.mkdir(parents=True)
        except OSError as e:
            raise InvalidPathError(f"Cannot create install directory {install}: {e}") from e
        logger.info("Created install directory %s", install)
    return install


def parse_thread_count(raw: str) -> int:
    text = raw.strip()
    if not _POSITIVE_INT_RE.match(text) or int(text) < 1:
        raise InvalidInputError(f"Thread count must be a positive integer, got {raw!r}")
    return int(text)


def resolve_thread_count(provider: InputProvider, host: HostInfo) -> int:
    """All processing units on "y", an explicit count on "n"."""
    if provider.ask_yes_no("use_all_threads", "Use all available threads?"):
        return host.processing_units
    return parse_thread_count(provider.ask("threads", "Enter number of threads"))


def resolve_config_name(
    provider: InputProvider,
    host: HostInfo,
    settings: SetupSettings,
) -> str:
    """A custom name on request, otherwise gcc-<version>-<suffix>."""
    default = default_config_name(host.gcc_version, settings.config_suffix)
    if provider.ask_yes_no(
        "custom_config",
        f"Do you want to set a custom config name? Default => {default}",
    ):
        name = provider.ask("config_name", "Enter custom config name").strip()
        if not name:
            raise InvalidInputError("Config name must not be empty")
        return name
    return default


def collect_parameters(
    provider: InputProvider,
    host: HostInfo,
    settings: SetupSettings,
) -> InstallConfig:
    """Ask every up-front question and validate the answers."""
    repo = resolve_repo_path(
        provider.ask("repo_path", "Path to the CVA6 repository", default=DEFAULT_REPO_PATH),
        settings.marker_subdir,
    )
    install = resolve_install_path(
        provider.ask("install_path", "Toolchain install directory (RISCV)", default=DEFAULT_INSTALL_PATH),
    )
    threads = resolve_thread_count(provider, host)
    config_name = resolve_config_name(provider, host, settings)

    try:
        build = BuildConfig(threads=threads, config_name=config_name)
    except ValueError as e:
        raise InvalidInputError(f"Invalid config name {config_name!r}") from e

    # Only now, with every answer valid, touch the filesystem
    ensure_install_dir(install)

    config = InstallConfig(
        paths=InstallPaths(repo=repo, install=install),
        build=build,
        simulators=settings.simulators,
    )
    logger.info(
        "Using %d threads, config %s, install dir %s",
        threads, config_name, install,
    )
    return config
