"""
Command-line interface for ensure-env.

Run without arguments in a project directory to check, and where
possible install, everything the project needs for development.
"""

import logging
import os
import sys
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import ConfigLoader, EnsureSettings
from .errors import EnsureError
from .logs import configure_logging, debug_requested
from .platform import PlatformProfile, resolve
from .preflight import CheckContext, ExitOutcome, PreflightRunner, RunStatus
from .preflight.registry import default_checks
from .process import CommandRunner

console = Console()
logger = logging.getLogger("ensure_env")

SUCCESS_BANNER = (
    "[green]SUCCESS![/green] Now activate your environment with:\n\n"
    "    [yellow]source {venv}/bin/activate[/yellow]"
)


def _prepare(project_dir: Optional[str], debug: bool) -> Tuple[EnsureSettings, PlatformProfile, CommandRunner]:
    """Load settings, set up logging and resolve the platform."""
    configure_logging(debug=debug or debug_requested(os.environ))
    loader = ConfigLoader(project_dir)
    settings = loader.load(overrides={"debug": True} if debug else None)
    configure_logging(debug=settings.debug)
    if loader.config_file:
        logger.debug("Loaded settings from %s", loader.config_file)

    runner = CommandRunner(cwd=settings.project_root, timeout=settings.probe_timeout)
    profile = resolve(runner)
    runner.profile = profile
    return settings, profile, runner


def _fail(error: EnsureError) -> None:
    logger.error(error.message)
    sys.exit(error.exit_code)


# ============================================================
# Main CLI Group
# ============================================================

@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="ensure")
@click.option(
    "--project-dir",
    "-C",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Project directory to check (default: current directory)",
)
@click.option("--debug", is_flag=True, help="Trace every external command (or set DEBUG=1)")
@click.pass_context
def cli(ctx, project_dir: Optional[str], debug: bool):
    """
    Idempotent development environment bootstrap.

    Checks git, Docker, SSH, pyenv, the pinned Python version, the project
    virtualenv, Poetry and the linters the project needs, installing what
    it can and stopping at the first blocking problem.
    """
    ctx.ensure_object(dict)
    ctx.obj["project_dir"] = project_dir
    ctx.obj["debug"] = debug

    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


# ============================================================
# RUN Command
# ============================================================

@cli.command()
@click.pass_context
def run(ctx):
    """Run every check in order (the default)."""
    try:
        settings, profile, runner = _prepare(ctx.obj.get("project_dir"), ctx.obj.get("debug", False))
    except EnsureError as e:
        _fail(e)

    context = CheckContext(settings=settings, profile=profile, runner=runner)
    outcome = PreflightRunner(context).run(default_checks(settings))
    _report(outcome, settings)
    sys.exit(outcome.exit_code)


def _report(outcome: ExitOutcome, settings: EnsureSettings) -> None:
    """Print the closing banner, or the failure summary."""
    if outcome.ok:
        warned = outcome.by_status(RunStatus.WARNED)
        body = SUCCESS_BANNER.format(venv=settings.venv_dir)
        if warned:
            body += "\n\n[yellow]Warnings:[/yellow] " + ", ".join(r.check for r in warned)
        console.print(Panel.fit(body, title="ensure"))
        return

    logger.error(outcome.summary())


# ============================================================
# CHECKS Command
# ============================================================

@cli.command("checks")
@click.pass_context
def list_checks(ctx):
    """List the checks in execution order with their exit codes."""
    try:
        settings = ConfigLoader(ctx.obj.get("project_dir")).load()
    except EnsureError as e:
        configure_logging()
        _fail(e)

    table = Table(title="Preflight Checks", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Check", style="cyan")
    table.add_column("Probe")
    table.add_column("If missing")
    table.add_column("Exit", justify="right")
    table.add_column("Only when")

    for index, check in enumerate(default_checks(settings), start=1):
        name = check.name
        if name in settings.skip:
            name += " [dim](skipped)[/dim]"
        table.add_row(
            str(index),
            name,
            check.probe.describe(),
            check.on_missing.value,
            str(int(check.exit_code)),
            check.trigger.describe() if check.trigger else "-",
        )

    console.print(table)


# ============================================================
# PLATFORM Command
# ============================================================

@cli.command("platform")
def show_platform():
    """Show the resolved platform profile."""
    configure_logging()
    try:
        profile = resolve()
    except EnsureError as e:
        _fail(e)

    table = Table(title=f"Platform: {profile.os_kind.value}")
    table.add_column("Tool", style="cyan")
    table.add_column("Binary", style="green")
    for tool, binary in sorted(profile.tool_aliases.items()):
        table.add_row(tool, binary)
    console.print(table)


def main():
    """Console script entry point."""
    cli(obj={})


# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    main()
