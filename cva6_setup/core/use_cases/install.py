"""
Install use case — run the full provisioning pipeline.

Loads settings, picks the input provider (terminal or scripted
answers), wires the adapter registry and hands everything to the
pipeline.  Errors propagate to the caller; the CLI turns them into a
message and exit status 1.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from cva6_setup.adapters.registry import AdapterRegistry, default_registry
from cva6_setup.core.config.loader import load_answers, load_settings
from cva6_setup.core.engine.pipeline import (
    ProvisioningReport,
    ProvisioningRun,
    StageResult,
    run_pipeline,
)
from cva6_setup.core.models.config import InstallConfig
from cva6_setup.core.models.settings import SetupSettings
from cva6_setup.core.services.prompts import (
    InputProvider,
    ScriptedInputProvider,
    TerminalInputProvider,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of a completed provisioning run."""

    report: ProvisioningReport
    config: InstallConfig | None = None

    def to_dict(self) -> dict:
        result = self.report.to_dict()
        if self.config is not None:
            result["config"] = self.config.model_dump(mode="json")
        return result


def make_provider(answers_path: Path | None) -> InputProvider:
    if answers_path is None:
        return TerminalInputProvider()
    return ScriptedInputProvider(load_answers(answers_path))


def run_install(
    config_path: Path | None = None,
    answers_path: Path | None = None,
    mock_mode: bool = False,
    *,
    settings: SetupSettings | None = None,
    inputs: InputProvider | None = None,
    registry: AdapterRegistry | None = None,
    on_stage: Callable[[StageResult], None] | None = None,
) -> InstallResult:
    """Provision the toolchain end to end.

    Args:
        config_path: Explicit settings file (default: search upward).
        answers_path: Scripted answers file; None means prompt.
        mock_mode: Route every external command to a mock.
        settings: Pre-built settings (skips loading).
        inputs: Pre-built input provider (skips answers loading).
        registry: Pre-configured adapter registry.
        on_stage: Live progress callback.

    Raises:
        ConfigError: settings or answers file invalid.
        ProvisioningError: any stage failed.
    """
    if settings is None:
        settings = load_settings(config_path)
    if inputs is None:
        inputs = make_provider(answers_path)
    if registry is None:
        registry = default_registry(mock_mode=mock_mode)

    run = ProvisioningRun(settings=settings, registry=registry, inputs=inputs)
    report = run_pipeline(run, on_stage=on_stage)
    logger.info(
        "Provisioning finished: %d stages completed, %d skipped",
        report.completed, report.skipped,
    )
    return InstallResult(report=report, config=run.config)
