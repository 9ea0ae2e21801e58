"""
Shell-profile registration — persist the toolchain environment.

The block is fenced by begin/end marker lines.  ``is_profile_registered``
is the predicate; ``register_profile`` appends only when it is false,
so rerunning never duplicates the block.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import time
from pathlib import Path

from cva6_setup.adapters.languages.python import venv_python
from cva6_setup.core.models.config import InstallConfig

logger = logging.getLogger(__name__)


def begin_marker(marker: str) -> str:
    return f"# >>> {marker} >>>"


def end_marker(marker: str) -> str:
    return f"# <<< {marker} <<<"


def shell_type_for(profile: Path) -> str:
    """fish for config.fish, POSIX sh for everything else."""
    return "fish" if profile.suffix == ".fish" else "sh"


def _fish_quote(value: str) -> str:
    """Single-quote for fish, where only \\ and ' are special inside."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _quote(shell_type: str, value: str) -> str:
    """Quote a literal value so the shell never expands it."""
    if shell_type == "fish":
        return _fish_quote(value)
    return shlex.quote(value)


def _shell_config_line(
    shell_type: str,
    *,
    path_entry: str | None = None,
    env_var: tuple[str, str] | None = None,
) -> str:
    """Generate a shell-specific PATH or env export line.

    ``path_entry`` is shell text and may reference variables
    (``$RISCV/bin``); ``env_var`` values are literals.
    """
    if shell_type == "fish":
        if path_entry:
            return f"set -gx PATH {path_entry} $PATH"
        if env_var:
            return f"set -gx {env_var[0]} {_quote(shell_type, env_var[1])}"
    else:
        if path_entry:
            return f'export PATH="{path_entry}:$PATH"'
        if env_var:
            return f"export {env_var[0]}={_quote(shell_type, env_var[1])}"
    return ""


def _activate_helper(shell_type: str, venv: Path) -> str:
    """A ``cva6_env`` command that re-enters the runtime environment."""
    activate = venv_python(venv).parent / "activate"
    if shell_type == "fish":
        return f"function cva6_env; source {_quote(shell_type, f'{activate}.fish')}; end"
    return f"cva6_env() {{ . {_quote(shell_type, str(activate))}; }}"


def render_block(
    config: InstallConfig,
    venv: Path | None,
    marker: str,
    shell_type: str = "sh",
) -> str:
    """The marker-fenced block of environment setup commands."""
    lines = [begin_marker(marker)]
    for name, value in config.subprocess_env().items():
        lines.append(_shell_config_line(shell_type, env_var=(name, value)))
    lines.append(_shell_config_line(shell_type, path_entry="$RISCV/bin"))
    if venv is not None:
        lines.append(_activate_helper(shell_type, venv))
    lines.append(end_marker(marker))
    return "\n".join(lines) + "\n"


def is_profile_registered(profile: Path, marker: str) -> bool:
    """Whether a block with this marker is already in the profile."""
    if not profile.is_file():
        return False
    wanted = begin_marker(marker)
    with profile.open(encoding="utf-8", errors="replace") as f:
        return any(line.rstrip("\n") == wanted for line in f)


def register_profile(profile: Path, block: str, marker: str) -> bool:
    """Append ``block`` to ``profile`` unless the marker is present.

    An existing profile is copied to ``<profile>.backup.<epoch>`` before
    the first write.  Missing parent directories are created.

    Returns:
        True if the block was written, False if it was already there.
    """
    if is_profile_registered(profile, marker):
        logger.info("%s already contains the %s block, skipping", profile, marker)
        return False

    existing = ""
    if profile.is_file():
        existing = profile.read_text(encoding="utf-8", errors="replace")
        backup = profile.with_name(f"{profile.name}.backup.{int(time.time())}")
        shutil.copy2(profile, backup)
        logger.debug("Backed up %s to %s", profile, backup)

    profile.parent.mkdir(parents=True, exist_ok=True)
    with profile.open("a", encoding="utf-8") as f:
        if existing and not existing.endswith("\n"):
            f.write("\n")
        if existing:
            f.write("\n")
        f.write(block)

    logger.info("Registered %s block in %s", marker, profile)
    return True
