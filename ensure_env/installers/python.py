"""
Python Toolchain Installer

Makes the pinned Python version available through pyenv (installed
rootless into the user's home) and builds the project virtualenv on top
of it. When running as root pyenv is never installed; the active
interpreter must already match the pin.
"""

import logging
import re
from pathlib import Path
from typing import List, Tuple

from ..errors import InstallFailureError, MissingVersionPinFileError, VersionMismatchError
from ..exit_codes import ExitCode
from ..preflight.models import CheckContext, RunResult, RunStatus
from ..preflight.probes import ProbeReport, ProbeStatus
from .virtualenv import create_virtualenv, venv_python

logger = logging.getLogger(__name__)

# (repository, path under PYENV_ROOT)
PYENV_REPOS: List[Tuple[str, str]] = [
    ("pyenv/pyenv", ""),
    ("pyenv/pyenv-doctor", "plugins/pyenv-doctor"),
    ("pyenv/pyenv-installer", "plugins/pyenv-installer"),
    ("pyenv/pyenv-update", "plugins/pyenv-update"),
    ("pyenv/pyenv-virtualenv", "plugins/pyenv-virtualenv"),
    ("pyenv/pyenv-which-ext", "plugins/pyenv-which-ext"),
]

_VERSION_RE = re.compile(r"Python\s+(\S+)")


def read_version_pin(path: Path) -> str:
    """
    Read the required Python version from the pin file.

    Raises:
        MissingVersionPinFileError: If the file is absent, empty or not text
    """
    if not path.is_file():
        raise MissingVersionPinFileError(f"Please create a file named {path.name} before proceeding.")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise MissingVersionPinFileError(f"{path.name} is not a text file, it must name a Python version.")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        raise MissingVersionPinFileError(f"{path.name} is empty, it must name a Python version.")
    return lines[0]


def parse_python_version(output: str) -> str:
    """Extract the version from ``python --version`` output."""
    match = _VERSION_RE.search(output)
    return match.group(1) if match else output.strip()


def version_matches(reported: str, required: str) -> bool:
    """``3.9.7`` matches a pin of ``3.9.7``; a pin of ``3.9`` matches any 3.9.x."""
    return reported == required or reported.startswith(required + ".")


def python_environment_ready(context: CheckContext) -> ProbeReport:
    """
    Probe for a virtualenv whose interpreter reports the pinned version.

    Pin file problems surface as errors so the installer reports them.
    """
    settings = context.settings
    python = venv_python(settings.venv_path)
    if not python.exists():
        return ProbeReport(ProbeStatus.ABSENT, f"{settings.venv_dir} not found")

    required = read_version_pin(settings.version_file_path)
    result = context.runner.run([str(python), "--version"], timeout=settings.probe_timeout)
    if not result.ok:
        return ProbeReport(ProbeStatus.ERRORED, str(result))

    reported = parse_python_version(result.output)
    if not version_matches(reported, required):
        return ProbeReport(ProbeStatus.ABSENT, f"{settings.venv_dir} has Python {reported}, need {required}")
    return ProbeReport(ProbeStatus.PRESENT, f"Python {reported}")


# ============================================================
# PyEnv
# ============================================================

def checkout(context: CheckContext, repo: str, destination: Path) -> None:
    """Shallow-clone a repository unless the destination already exists."""
    if destination.is_dir():
        return
    url = f"{context.settings.github_url}/{repo}.git"
    result = context.runner.run(
        ["git", "clone", "--depth", "1", url, str(destination)],
        timeout=context.settings.network_timeout,
    )
    if not result.ok:
        raise InstallFailureError(f"Failed to git clone {url}", ExitCode.PYENV_INIT)


def install_pyenv(context: CheckContext) -> None:
    """Clone pyenv and its plugins into PYENV_ROOT."""
    logger.info("Installing PyEnv...")
    root = context.settings.pyenv_root
    for repo, subdir in PYENV_REPOS:
        checkout(context, repo, root / subdir if subdir else root)


def validate_pyenv(context: CheckContext) -> None:
    """
    Make sure ``pyenv`` is on the search path, initializing it if not.

    Raises:
        InstallFailureError: If pyenv still does not run after init
    """
    runner = context.runner
    if runner.which("pyenv") is not None:
        return

    logger.error("it seems you still have not added 'pyenv' to the load path.")
    root = context.settings.pyenv_root
    runner.env["PYENV_ROOT"] = str(root)
    runner.prepend_path(root / "bin", root / "shims")

    result = runner.run(["pyenv", "--version"], timeout=context.settings.probe_timeout)
    if not result.ok:
        raise InstallFailureError("PyEnv failed to initialize with init -", ExitCode.PYENV_INIT)
    logger.info("PyEnv initialized")


def install_required_python(context: CheckContext, required_version: str) -> None:
    """Install the pinned version; already-installed versions are skipped."""
    result = context.runner.run(
        ["pyenv", "install", required_version, "--skip-existing"],
        timeout=context.settings.network_timeout,
    )
    if not result.ok:
        raise InstallFailureError(
            f"Failed to install Python {required_version} with pyenv: {result}",
            ExitCode.PYTHON_INSTALL,
        )


def check_superuser_python(context: CheckContext, required_version: str) -> None:
    """
    Compare the active interpreter against the pin, without pyenv.

    Raises:
        VersionMismatchError: On any mismatch
    """
    logger.info("We're running as root, will skip installing PyEnv.")
    result = context.runner.run(["python", "--version"], timeout=context.settings.probe_timeout)
    reported = parse_python_version(result.output) if result.ok else ""

    if result.ok and version_matches(reported, required_version):
        logger.info("We're already running the required version of Python.")
        return

    logger.error("We'll not install PyEnv while running as root.")
    logger.error("Please ensure you have a matching Python version according to .python-version file.")
    raise VersionMismatchError(
        f"Required Python {required_version}, current Python version: {reported or 'unavailable'}"
    )


def check_virtualenv_python(context: CheckContext, required_version: str) -> None:
    """
    Make sure an existing virtualenv runs the pinned version.

    A virtualenv is never rebuilt over an existing directory, so a stale
    one has to be removed by hand.

    Raises:
        InstallFailureError: If the interpreter reports another version
    """
    settings = context.settings
    python = venv_python(settings.venv_path)
    result = context.runner.run([str(python), "--version"], timeout=settings.probe_timeout)
    reported = parse_python_version(result.output) if result.ok else ""
    if result.ok and version_matches(reported, required_version):
        return

    raise InstallFailureError(
        f"{settings.venv_dir} runs Python {reported or 'unavailable'} but {required_version} is pinned, "
        f"remove {settings.venv_path} and run again.",
        ExitCode.VENV_CREATE,
    )


# ============================================================
# Entry point
# ============================================================

def ensure_python_environment(context: CheckContext, required_version: str) -> RunResult:
    """
    Ensure the pinned interpreter and the project virtualenv exist.

    Args:
        context: Check context
        required_version: Version read from the pin file

    Returns:
        RunResult describing what was done

    Raises:
        VersionMismatchError: Running as root with a different interpreter
        InstallFailureError: Any clone, init, install or venv step failed, or an
            existing virtualenv runs another Python
    """
    settings = context.settings
    steps = []

    if settings.pyenv_root.is_dir():
        logger.info("PyEnv seems to be installed already at '%s'.", settings.pyenv_root)
        validate_pyenv(context)
        install_required_python(context, required_version)
    elif settings.is_superuser:
        check_superuser_python(context, required_version)
    else:
        install_pyenv(context)
        steps.append("pyenv")
        validate_pyenv(context)
        install_required_python(context, required_version)
    steps.append(f"Python {required_version}")

    if create_virtualenv(context):
        steps.append(settings.venv_dir)
    else:
        check_virtualenv_python(context, required_version)

    return RunResult(
        check="python-environment",
        status=RunStatus.INSTALLED,
        message=f"ensured {', '.join(steps)}",
    )


def python_environment_installer(context: CheckContext) -> RunResult:
    """Installer hook: read the pin and ensure the environment."""
    required = read_version_pin(context.settings.version_file_path)
    return ensure_python_environment(context, required)
