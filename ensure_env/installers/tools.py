"""
Tool Installers and Project Actions

Git submodules, Poetry, Ansible Galaxy requirements and the project's
invoke tasks. Each probe reports whether the work is already done so
a second run installs nothing.
"""

import logging
from pathlib import Path
from typing import Any, List, Set, Tuple

import yaml

from ..errors import ConfigError, InstallFailureError
from ..exit_codes import ExitCode
from ..preflight.models import CheckContext, RunResult, RunStatus
from ..preflight.probes import ProbeReport, ProbeStatus

logger = logging.getLogger(__name__)

ANSIBLE_REQUIREMENTS = "roles/requirements.yml"
POETRY_UP_TO_DATE = "No dependencies to install or update"


def _require_ok(context: CheckContext, argv: List[str], message: str, exit_code: int) -> None:
    """Run a network-bound command, raising on a non-zero exit."""
    result = context.runner.run(argv, timeout=context.settings.network_timeout)
    if not result.ok:
        detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else str(result)
        raise InstallFailureError(f"{message}: {detail}", exit_code)


# ============================================================
# Git submodules
# ============================================================

def submodules_ready(context: CheckContext) -> ProbeReport:
    """Uninitialized submodules are listed with a leading '-'."""
    result = context.runner.run(["git", "submodule", "status"], timeout=context.settings.probe_timeout)
    if not result.ok:
        return ProbeReport(ProbeStatus.ERRORED, str(result))

    pending = [line.split()[1] for line in result.stdout.splitlines()
               if line.startswith("-") and len(line.split()) > 1]
    if pending:
        return ProbeReport(ProbeStatus.ABSENT, f"uninitialized: {', '.join(pending)}")
    return ProbeReport(ProbeStatus.PRESENT, "all submodules initialized")


def update_submodules(context: CheckContext) -> RunResult:
    _require_ok(context, ["git", "submodule", "update", "--init"],
                "Failed to update git submodules", ExitCode.GIT_SUBMODULES)
    return RunResult("git-submodules", RunStatus.INSTALLED, "submodules initialized")


# ============================================================
# Poetry
# ============================================================

def poetry_self_update(context: CheckContext) -> None:
    """Keep Poetry current, except in CI builds or when not enabled."""
    settings = context.settings
    if not settings.poetry_self_update:
        return
    if settings.ci:
        logger.info("Running in CDP, will not upgrade poetry.")
        return
    _require_ok(context, ["poetry", "self", "update"],
                "Failed to self update poetry. Quitting...", ExitCode.POETRY_SELF_UPDATE)


def poetry_dependencies_ready(context: CheckContext) -> ProbeReport:
    """A dry-run install that has nothing to do means the venv is in sync."""
    result = context.runner.run(
        ["poetry", "install", "--no-root", "--dry-run"],
        timeout=context.settings.network_timeout,
    )
    if not result.ok:
        return ProbeReport(ProbeStatus.ERRORED, str(result))
    if POETRY_UP_TO_DATE in result.output:
        return ProbeReport(ProbeStatus.PRESENT, POETRY_UP_TO_DATE)
    return ProbeReport(ProbeStatus.ABSENT, "dependencies out of date")


def poetry_install(context: CheckContext) -> RunResult:
    # --no-root: do not install the project itself
    _require_ok(context, ["poetry", "install", "--no-root"],
                "Failed to poetry install all required dependencies", ExitCode.POETRY_INSTALL)
    return RunResult("poetry-dependencies", RunStatus.INSTALLED, "dependencies installed")


# ============================================================
# Ansible Galaxy
# ============================================================

def load_galaxy_requirements(path: Path) -> Tuple[Set[str], Set[str]]:
    """
    Parse a Galaxy requirements file.

    Accepts both the legacy format (a plain list of roles) and the
    mapping format with ``roles`` and ``collections`` keys.

    Returns:
        (role names, collection names)

    Raises:
        ConfigError: If the file is not valid YAML
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", ExitCode.ANSIBLE_REQUIREMENTS)

    if isinstance(data, list):
        roles, collections = data, []
    else:
        roles, collections = data.get("roles") or [], data.get("collections") or []
    return {_requirement_name(r) for r in roles}, {_requirement_name(c) for c in collections}


def _requirement_name(entry: Any) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        name = entry.get("name") or entry.get("src") or ""
        # Roles given as git URLs install under the repository name
        if "/" in name or name.endswith(".git"):
            name = name.rstrip("/").rsplit("/", 1)[-1]
            if name.endswith(".git"):
                name = name[:-4]
        return name
    return str(entry)


def _galaxy_listed(context: CheckContext, kind: str) -> Set[str]:
    """Names reported by ``ansible-galaxy <kind> list``."""
    result = context.runner.run(["ansible-galaxy", kind, "list"], timeout=context.settings.probe_timeout)
    names = set()
    for line in result.stdout.splitlines():
        line = line.strip()
        if kind == "role" and line.startswith("- "):
            names.add(line[2:].split(",")[0].strip())
        elif kind == "collection" and line and not line.startswith(("#", "Collection", "-")):
            names.add(line.split()[0])
    return names


def galaxy_requirements_ready(context: CheckContext) -> ProbeReport:
    """Every required role and collection must already be listed."""
    roles, collections = load_galaxy_requirements(context.root / ANSIBLE_REQUIREMENTS)
    missing = sorted(roles - _galaxy_listed(context, "role")) if roles else []
    if collections:
        missing += sorted(collections - _galaxy_listed(context, "collection"))
    if missing:
        return ProbeReport(ProbeStatus.ABSENT, f"missing: {', '.join(missing)}")
    return ProbeReport(ProbeStatus.PRESENT, "roles and collections up to date")


def galaxy_install(context: CheckContext) -> RunResult:
    logger.info("Ensure Ansible Galaxy roles (dependencies) are downloaded and up to date...")
    for kind in ("collection", "role"):
        _require_ok(
            context,
            ["ansible-galaxy", kind, "install", "--force", "-r", ANSIBLE_REQUIREMENTS],
            f"Failed to ansible-galaxy {kind} install",
            ExitCode.ANSIBLE_REQUIREMENTS,
        )
    return RunResult("ansible-requirements", RunStatus.INSTALLED, "Galaxy requirements installed")


# ============================================================
# PyInvoke tasks
# ============================================================

def run_project_tasks(context: CheckContext) -> None:
    """
    Run the project's setup tasks.

    ``invoke setup`` goes through ``poetry run``; the hooks and tests run
    straight from the activated virtualenv.
    """
    _require_ok(context, ["poetry", "run", "invoke", "setup"],
                "Failed to poetry run invoke setup", ExitCode.INVOKE_SETUP)
    _require_ok(context, ["invoke", "hooks"], "Failed to run hooks", ExitCode.INVOKE_HOOKS)
    if (context.root / "tests").is_dir():
        _require_ok(context, ["invoke", "tests"], "Failed to run tests", ExitCode.INVOKE_TESTS)
