"""
Provisioning pipeline — the fixed, linear sequence of stages.

Flow:
    discover → parameters → packages → repository → fetch → patch →
    build → runtime → docs? → smoke-tests? → profile?

Each stage is a plain function over a ``ProvisioningRun``.  Stages that
mutate guard themselves with a predicate first (package delta, patch
state, venv presence, profile marker) so the whole pipeline can be
rerun safely.  Any ``ProvisioningError`` aborts the run; there are no
retries and no rollback.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from cva6_setup.adapters.languages.python import venv_python
from cva6_setup.adapters.registry import AdapterRegistry
from cva6_setup.core.errors import (
    InvalidInputError,
    InvalidPathError,
    ProvisioningError,
    raise_for_receipt,
)
from cva6_setup.core.models.action import Action
from cva6_setup.core.models.config import HostInfo, InstallConfig, ProvisioningState
from cva6_setup.core.models.settings import SetupSettings
from cva6_setup.core.services import patching, runtime_env, shell_profile, system_deps
from cva6_setup.core.services.detection import discover_host
from cva6_setup.core.services.parameters import collect_parameters
from cva6_setup.core.services.prompts import InputProvider

logger = logging.getLogger(__name__)

SUBMODULE_ACTION = "repo:submodules"
FETCH_ACTION = "toolchain:fetch"
BUILD_ACTION = "toolchain:build"
DOCS_DEPS_ACTION = "docs:deps"
DOCS_BUILD_ACTION = "docs:build"
SMOKE_ACTION = "tests:smoke"


# ── Run state and results ───────────────────────────────────────


@dataclass
class ProvisioningRun:
    """Everything threaded through the stages of one run."""

    settings: SetupSettings
    registry: AdapterRegistry
    inputs: InputProvider
    host: HostInfo | None = None
    config: InstallConfig | None = None
    state: ProvisioningState = field(default_factory=ProvisioningState)

    def require_config(self) -> InstallConfig:
        if self.config is None:
            raise RuntimeError("parameters stage has not run")
        return self.config

    @property
    def repo(self) -> Path:
        return self.require_config().paths.repo

    @property
    def builder_dir(self) -> Path:
        return self.settings.builder_dir(self.repo)

    @property
    def venv(self) -> Path:
        return self.settings.venv_path(self.repo)

    def venv_env(self) -> dict[str, str]:
        """Exports plus the venv's bin directory first on PATH."""
        env = self.require_config().subprocess_env()
        bin_dir = venv_python(self.venv).parent
        env["PATH"] = f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}"
        env["VIRTUAL_ENV"] = str(self.venv)
        return env


@dataclass
class Outcome:
    """What a stage function reports back."""

    status: Literal["ok", "skipped"] = "ok"
    detail: str = ""


def ok(detail: str = "") -> Outcome:
    return Outcome("ok", detail)


def skipped(reason: str) -> Outcome:
    return Outcome("skipped", reason)


@dataclass
class StageResult:
    """Outcome of one stage, as recorded in the report."""

    name: str
    status: Literal["ok", "skipped"]
    detail: str = ""
    duration_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status,
            "detail": self.detail,
            "duration_ms": self.duration_ms,
        }


@dataclass
class ProvisioningReport:
    """Stage-by-stage record of a completed run."""

    stages: list[StageResult] = field(default_factory=list)

    @property
    def completed(self) -> int:
        return sum(1 for s in self.stages if s.status == "ok")

    @property
    def skipped(self) -> int:
        return sum(1 for s in self.stages if s.status == "skipped")

    def get(self, name: str) -> StageResult | None:
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def to_dict(self) -> dict:
        return {
            "completed": self.completed,
            "skipped": self.skipped,
            "stages": [s.to_dict() for s in self.stages],
        }


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[ProvisioningRun], Outcome]
    description: str = ""


# ── Helpers ─────────────────────────────────────────────────────


def _script(path: Path, what: str) -> Path:
    if not path.is_file():
        raise InvalidPathError(f"{what} not found: {path}")
    return path


def _run_command(
    run: ProvisioningRun,
    action_id: str,
    stage: str,
    command: list[str],
    cwd: Path,
    env: dict[str, str],
    what: str,
) -> None:
    receipt = run.registry.execute_action(Action(
        id=action_id,
        name=what,
        adapter="shell",
        stage=stage,
        params={"command": command, "cwd": str(cwd), "env": env, "stream": True},
    ))
    raise_for_receipt(receipt, what)


# ── Stages ──────────────────────────────────────────────────────


def discover_environment(run: ProvisioningRun) -> Outcome:
    run.host = discover_host(run.registry, run.settings)
    fallback = "" if run.host.gcc_detected else " (fallback)"
    return ok(f"gcc {run.host.gcc_version}{fallback}, {run.host.processing_units} processing units")


def collect_install_parameters(run: ProvisioningRun) -> Outcome:
    assert run.host is not None
    run.config = collect_parameters(run.inputs, run.host, run.settings)
    build = run.config.build
    return ok(f"{build.config_name}, {build.threads} threads → {run.config.paths.install}")


def install_packages(run: ProvisioningRun) -> Outcome:
    package_set = system_deps.check_system_deps(
        run.registry, run.settings.packages, run.settings.package_manager,
    )
    installed = system_deps.install_missing(
        run.registry, package_set, run.settings.package_manager,
    )
    if not installed:
        return skipped(f"all {len(package_set.required)} packages already installed")
    return ok(f"installed {', '.join(installed)}")


def sync_submodules(run: ProvisioningRun) -> Outcome:
    receipt = run.registry.execute_action(Action(
        id=SUBMODULE_ACTION,
        name="git submodule update",
        adapter="git",
        stage="repository",
        params={"operation": "submodule_sync", "cwd": str(run.repo), "stream": True},
    ))
    raise_for_receipt(receipt, "Submodule update")
    return ok("submodules up to date")


def fetch_toolchain(run: ProvisioningRun) -> Outcome:
    script = _script(run.builder_dir / run.settings.fetch_script, "Toolchain fetch script")
    _run_command(
        run, FETCH_ACTION, "fetch",
        ["bash", str(script)],
        run.builder_dir,
        run.require_config().subprocess_env(),
        "Fetching toolchain sources",
    )
    return ok("sources fetched")


def patch_sources(run: ProvisioningRun) -> Outcome:
    patch = run.settings.patch_path(run.repo)
    source_dir = run.settings.gcc_source_dir(run.repo)
    if patching.apply_patch(run.registry, source_dir, patch):
        return ok(f"applied {patch.name}")
    return skipped(f"{patch.name} already applied")


def build_toolchain(run: ProvisioningRun) -> Outcome:
    config = run.require_config()
    script = _script(run.builder_dir / run.settings.build_script, "Toolchain build script")
    _run_command(
        run, BUILD_ACTION, "build",
        ["bash", str(script), config.build.config_name, str(config.paths.install)],
        run.builder_dir,
        config.subprocess_env(),
        f"Building {config.build.config_name}",
    )
    return ok(f"{config.build.config_name} installed in {config.paths.install}")


def setup_runtime_environment(run: ProvisioningRun) -> Outcome:
    manifest = run.repo / run.settings.requirements
    created = runtime_env.setup_runtime(run.registry, run.venv, manifest)
    verb = "created" if created else "reused"
    return ok(f"{verb} {run.venv}, installed {manifest.name}")


def build_documentation(run: ProvisioningRun) -> Outcome:
    run.state.decide(
        "install_docs",
        run.inputs.ask_yes_no("install_docs", "Install documentation tooling and build the docs?"),
    )
    if not run.state.install_docs:
        return skipped("declined")

    manifest = runtime_env.require_manifest(run.repo / run.settings.docs_requirements)
    docs_dir = run.repo / run.settings.docs_dir
    if not docs_dir.is_dir():
        raise InvalidPathError(f"Documentation directory not found: {docs_dir}")

    runtime_env.ensure_venv(run.registry, run.venv, stage="docs")
    runtime_env.install_requirements(
        run.registry, run.venv, manifest, action_id=DOCS_DEPS_ACTION, stage="docs",
    )
    _run_command(
        run, DOCS_BUILD_ACTION, "docs",
        ["make", "-C", str(docs_dir), run.settings.docs_target],
        run.repo,
        run.venv_env(),
        "Building documentation",
    )
    return ok(f"built {run.settings.docs_target} in {docs_dir}")


def normalize_simulators(raw: str) -> str:
    names = [part.strip() for part in raw.split(",") if part.strip()]
    if not names:
        raise InvalidInputError("At least one simulator is required")
    return ",".join(names)


def run_smoke_tests(run: ProvisioningRun) -> Outcome:
    run.state.decide("run_tests", run.inputs.ask_yes_no("run_tests", "Run the smoke tests?"))
    if not run.state.run_tests:
        return skipped("declined")

    config = run.require_config()
    simulators = normalize_simulators(run.inputs.ask(
        "simulators", "Simulators to use (comma-separated)", default=config.simulators,
    ))
    run.config = config.model_copy(update={"simulators": simulators})

    script = _script(run.repo / run.settings.smoke_test_script, "Smoke test script")
    _run_command(
        run, SMOKE_ACTION, "smoke-tests",
        ["bash", str(script)],
        run.repo,
        run.venv_env(),
        "Smoke tests",
    )
    return ok(f"passed on {simulators}")


def register_environment(run: ProvisioningRun) -> Outcome:
    profile = run.settings.resolved_profile()
    run.state.decide(
        "persist_env",
        run.inputs.ask_yes_no("persist_env", f"Add the toolchain environment to {profile}?"),
    )
    if not run.state.persist_env:
        return skipped("declined")

    marker = run.settings.profile_marker
    block = shell_profile.render_block(
        run.require_config(),
        run.venv,
        marker,
        shell_profile.shell_type_for(profile),
    )
    try:
        written = shell_profile.register_profile(profile, block, marker)
    except OSError as e:
        raise InvalidPathError(f"Cannot update {profile}: {e}") from e
    if not written:
        return skipped(f"{profile} already registered")
    return ok(f"registered in {profile}")


STAGES: tuple[Stage, ...] = (
    Stage("discover", discover_environment, "Detect compiler version and CPU count"),
    Stage("parameters", collect_install_parameters, "Collect paths, threads and config name"),
    Stage("packages", install_packages, "Install missing OS packages"),
    Stage("repository", sync_submodules, "Sync git submodules"),
    Stage("fetch", fetch_toolchain, "Fetch toolchain sources"),
    Stage("patch", patch_sources, "Apply the CVA6 gcc tuning patch"),
    Stage("build", build_toolchain, "Build the bare-metal toolchain"),
    Stage("runtime", setup_runtime_environment, "Create the Python environment"),
    Stage("docs", build_documentation, "Build the documentation (optional)"),
    Stage("smoke-tests", run_smoke_tests, "Run the smoke tests (optional)"),
    Stage("profile", register_environment, "Persist the environment (optional)"),
)


# ── Runner ──────────────────────────────────────────────────────


def run_pipeline(
    run: ProvisioningRun,
    stages: tuple[Stage, ...] = STAGES,
    on_stage: Callable[[StageResult], None] | None = None,
) -> ProvisioningReport:
    """Run every stage in order, stopping at the first error.

    Args:
        run: Shared run state.
        stages: Stage sequence (defaults to the full pipeline).
        on_stage: Called after each completed stage, for live output.

    Raises:
        ProvisioningError: from the failing stage, with ``stage`` set.
    """
    report = ProvisioningReport()

    for stage in stages:
        logger.info("▶ %s — %s", stage.name, stage.description)
        start = time.monotonic()
        try:
            outcome = stage.run(run)
        except ProvisioningError as e:
            if e.stage is None:
                e.stage = stage.name
            logger.error("✗ %s: %s", stage.name, e.message)
            raise

        result = StageResult(
            name=stage.name,
            status=outcome.status,
            detail=outcome.detail,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        report.stages.append(result)
        marker = "✓" if result.status == "ok" else "⊘"
        logger.info("%s %s → %s %s", marker, stage.name, result.status, result.detail)
        if on_stage is not None:
            on_stage(result)

    return report
