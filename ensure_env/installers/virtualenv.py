"""
Project Virtual Environment

Creates the project-local ``.venv`` and activates it for child processes.
Activation is a scope on the command runner's environment: the bin
directory is prepended to PATH while the scope is held, and the previous
environment comes back when it is released.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator

from ..errors import ActivationFailureError, InstallFailureError
from ..exit_codes import ExitCode
from ..preflight.models import CheckContext

logger = logging.getLogger(__name__)


def bin_dir(venv: Path) -> Path:
    """Executable directory of a virtualenv."""
    return venv / ("Scripts" if os.name == "nt" else "bin")


def venv_python(venv: Path) -> Path:
    """Interpreter inside a virtualenv."""
    return bin_dir(venv) / ("python.exe" if os.name == "nt" else "python")


def create_virtualenv(context: CheckContext) -> bool:
    """
    Ensure the project virtualenv exists.

    Creates it with the active ``python`` and upgrades its pip. An
    existing directory is left alone.

    Args:
        context: Check context

    Returns:
        True if the virtualenv was created, False if it already existed

    Raises:
        InstallFailureError: If creation or the pip upgrade fails
    """
    venv = context.settings.venv_path
    if venv.is_dir():
        return False

    logger.info("Creating virtual environment at %s", venv)
    runner = context.runner
    timeout = context.settings.network_timeout

    result = runner.run(["python", "-m", "venv", str(venv)], timeout=timeout)
    if not result.ok:
        raise InstallFailureError(f"Failed create {context.settings.venv_dir}: {result}", ExitCode.VENV_CREATE)

    result = runner.run([str(venv_python(venv)), "-m", "pip", "install", "--upgrade", "pip"], timeout=timeout)
    if not result.ok:
        raise InstallFailureError(f"Failed upgrade pip: {result}", ExitCode.PIP_UPGRADE)
    return True


def deactivate(env: Dict[str, str]) -> None:
    """
    Drop any inherited virtualenv from a child-process environment.

    Idempotent: once VIRTUAL_ENV is gone there is nothing left to undo.
    """
    active = env.pop("VIRTUAL_ENV", None)
    env.pop("VIRTUAL_ENV_PROMPT", None)
    if not active:
        return

    stale = str(bin_dir(Path(active)))
    entries = [p for p in env.get("PATH", "").split(os.pathsep) if p and p != stale]
    env["PATH"] = os.pathsep.join(entries)
    logger.debug("Deactivated inherited virtualenv %s", active)


@contextmanager
def activate(context: CheckContext) -> Iterator[Path]:
    """
    Activate the project virtualenv for the duration of the block.

    Args:
        context: Check context

    Yields:
        Path of the activated virtualenv

    Raises:
        ActivationFailureError: If the virtualenv has no interpreter
    """
    venv = context.settings.venv_path
    if not venv_python(venv).exists():
        raise ActivationFailureError(f"Failed to activate the virtual environment at {venv}")

    runner = context.runner
    with runner.scoped_env() as env:
        deactivate(env)
        env["VIRTUAL_ENV"] = str(venv)
        env.pop("PYTHONHOME", None)
        runner.prepend_path(bin_dir(venv))
        logger.info("Activated virtual environment %s", venv)
        yield venv
    logger.debug("Released virtual environment %s", venv)
