"""
CVA6 setup — CLI entrypoint.

Usage:
    cva6-setup --help
    cva6-setup install
    cva6-setup install --answers answers.yml
    cva6-setup detect
    cva6-setup config check
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from cva6_setup import __version__
from cva6_setup.core.config.loader import ConfigError
from cva6_setup.core.errors import ProvisioningError, SubprocessFailureError
from cva6_setup.core.observability.logging_config import setup_from_environment


@click.group()
@click.version_option(version=__version__, prog_name="cva6-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to cva6-setup.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """CVA6 setup — provision the RISC-V toolchain for a CVA6 checkout."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_from_environment(debug=debug, verbose=verbose, quiet=quiet)


def _fail(message: str, stage: str | None = None) -> None:
    prefix = f"[{stage}] " if stage else ""
    click.secho(f"❌ {prefix}{message}", fg="red", err=True)
    sys.exit(1)


@cli.command()
@click.option(
    "--answers",
    "-a",
    "answers_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="YAML file of scripted answers (non-interactive run).",
)
@click.option("--mock", is_flag=True, help="Use mock adapter (no external commands run).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print the final report as JSON.")
@click.pass_context
def install(ctx: click.Context, answers_path: str | None, mock: bool, as_json: bool) -> None:
    """Install prerequisites, build the toolchain and set up the environment.

    Examples:

        cva6-setup install

        cva6-setup install --answers answers.yml

        cva6-setup install --mock
    """
    from cva6_setup.core.engine.pipeline import StageResult
    from cva6_setup.core.use_cases.install import run_install

    quiet = ctx.obj.get("quiet", False) or as_json

    def show(result: StageResult) -> None:
        if quiet:
            return
        if result.status == "ok":
            click.secho(f"   ✓ {result.name}", fg="green", nl=False)
            click.echo(f"  {result.detail}" if result.detail else "")
        else:
            click.secho(f"   ⊘ {result.name} ", fg="yellow", nl=False)
            click.echo(f"(skipped: {result.detail})")

    if not quiet:
        mode_label = "[mock] " if mock else ""
        click.secho(f"\n⚡ {mode_label}CVA6 toolchain setup", fg="cyan", bold=True)
        click.echo()

    try:
        result = run_install(
            config_path=ctx.obj.get("config_path"),
            answers_path=Path(answers_path) if answers_path else None,
            mock_mode=mock,
            on_stage=show,
        )
    except ConfigError as e:
        _fail(str(e))
        return
    except SubprocessFailureError as e:
        if e.return_code is not None:
            _fail(f"{e.message} (exit {e.return_code})", e.stage)
        else:
            _fail(e.message, e.stage)
        return
    except ProvisioningError as e:
        _fail(e.message, e.stage)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    report = result.report
    click.echo()
    click.secho(
        f"   Result: {report.completed} completed, {report.skipped} skipped",
        fg="green",
        bold=True,
    )
    if result.config is not None and not quiet:
        click.echo(f"   RISCV={result.config.paths.install}")
        click.echo(f"   CONFIG_NAME={result.config.build.config_name}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """Show what the host provides, without changing anything."""
    from cva6_setup.core.use_cases.detect import run_detect

    result = run_detect(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        _fail(result.error)
        return

    host = result.host
    packages = result.packages
    assert host is not None and packages is not None

    click.secho("\n🔍 Host environment", fg="cyan", bold=True)
    gcc_label = host.gcc_version if host.gcc_detected else f"{host.gcc_version} (not detected, fallback)"
    click.echo(f"   gcc:               {gcc_label}")
    click.echo(f"   processing units:  {host.processing_units}")
    click.echo(f"   default config:    {result.default_config_name}")
    click.echo(f"   python:            {result.python_version or 'not found'}")
    click.echo()

    click.secho("   Tools:", fg="white", bold=True)
    for name, available in result.tools.items():
        if available:
            click.secho(f"     ✓ {name}", fg="green")
        else:
            click.secho(f"     ✗ {name}", fg="red")
    click.echo()

    click.secho(
        f"   Packages ({result.package_manager}): "
        f"{len(packages.installed)}/{len(packages.required)} installed",
        fg="white",
        bold=True,
    )
    for pkg in packages.missing:
        click.secho(f"     ✗ {pkg}", fg="yellow")
    click.echo()


@cli.group()
def config() -> None:
    """Settings file commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate cva6-setup.yml and show the effective settings."""
    from cva6_setup.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.settings is not None  # guaranteed when valid
        settings = result.settings
        click.secho("✅ Settings are valid", fg="green", bold=True)
        if result.config_path:
            click.echo(f"   File:     {result.config_path}")
        click.echo(f"   Packages: {len(settings.packages)} ({settings.package_manager})")
        click.echo(f"   Builder:  {settings.marker_subdir}")
        click.echo(f"   Profile:  {settings.profile_path}")
    else:
        click.secho("❌ Settings errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
