"""
Check Registry

The ordered default checklist. Order matters: tool-presence checks
come before installers that rely on those tools, the Python toolchain
and virtualenv before Poetry, and Poetry before the project tasks.
"""

from typing import List

from ..config.models import EnsureSettings
from ..exit_codes import ExitCode
from ..installers.python import python_environment_installer, python_environment_ready
from ..installers.tools import (
    galaxy_install,
    galaxy_requirements_ready,
    poetry_dependencies_ready,
    poetry_install,
    poetry_self_update,
    run_project_tasks,
    submodules_ready,
    update_submodules,
)
from ..installers.virtualenv import activate
from .models import Check, OnMissing
from .probes import CommandProbe, FunctionProbe, PathProbe
from .triggers import GlobTrigger, ManifestTrigger, PathTrigger

FATAL = OnMissing.FATAL_ABORT

NODE_TRIGGER = PathTrigger(
    ("mkdocs.yml", "docs/robots.txt"),
    absent_message="This project doesn't seem to need NodeJS.",
)


def _ssh_check(tool: str, exit_code: int, hint: str) -> Check:
    return Check(
        name=tool,
        probe=CommandProbe(tool, args=None),
        on_missing=FATAL,
        exit_code=exit_code,
        description=f"it seems {tool} is not installed, {hint}",
    )


def default_checks(settings: EnsureSettings) -> List[Check]:
    """
    Build the default checklist.

    Args:
        settings: Run settings; ``strict_docker`` promotes the Docker
            checks from warnings to fatal

    Returns:
        Checks in execution order
    """
    docker_policy = OnMissing.FATAL_ABORT if settings.strict_docker else OnMissing.WARN_ONLY
    openssh = "please install a tool like openssh-client."

    return [
        Check(
            name="git",
            probe=CommandProbe("git"),
            on_missing=FATAL,
            exit_code=ExitCode.GIT,
            description="Git is not installed, can't continue. git command not found in path",
        ),
        Check(
            name="git-submodules",
            probe=FunctionProbe(submodules_ready, "git submodule status"),
            on_missing=OnMissing.INSTALL,
            exit_code=ExitCode.GIT_SUBMODULES,
            installer=update_submodules,
            trigger=PathTrigger((".gitmodules",), absent_message="This project doesn't use git submodules."),
        ),
        Check(
            name="docker",
            probe=CommandProbe("docker"),
            on_missing=docker_policy,
            exit_code=ExitCode.DOCKER,
            description="it seems docker is not installed, please install it first.",
        ),
        Check(
            name="docker-daemon",
            probe=CommandProbe("docker", ("ps", "--last=1")),
            on_missing=docker_policy,
            exit_code=ExitCode.DOCKER_DAEMON,
            description="it seems docker is installed but it requires sudo, fix that first.",
        ),
        _ssh_check("ssh", ExitCode.SSH, openssh),
        _ssh_check("ssh-keygen", ExitCode.SSH_KEYGEN, openssh),
        _ssh_check("ssh-copy-id", ExitCode.SSH_COPY_ID, openssh),
        _ssh_check("sftp", ExitCode.SFTP, "please install it."),
        Check(
            name="grep",
            probe=CommandProbe("grep"),
            on_missing=FATAL,
            exit_code=ExitCode.GREP,
            description="it seems grep is not installed, please install it.",
        ),
        Check(
            name="mawk",
            probe=CommandProbe("mawk", ("-W", "version")),
            on_missing=FATAL,
            exit_code=ExitCode.MAWK,
            description="it seems mawk is not installed, please install it, e.g. brew install mawk",
        ),
        Check(
            name="python-version-pin",
            probe=PathProbe(settings.version_file, non_empty=True),
            on_missing=FATAL,
            exit_code=ExitCode.PYTHON_VERSION_PIN,
            description=f"Please create a file named {settings.version_file} before proceeding.",
        ),
        Check(
            name="python-environment",
            probe=FunctionProbe(python_environment_ready, f"{settings.venv_dir} runs the pinned Python"),
            on_missing=OnMissing.INSTALL,
            exit_code=ExitCode.PYTHON_INSTALL,
            installer=python_environment_installer,
            scope=activate,
        ),
        Check(
            name="poetry",
            probe=CommandProbe("poetry"),
            on_missing=FATAL,
            exit_code=ExitCode.POETRY,
            description="Please install poetry yourself, outside this project's environment",
            action=poetry_self_update,
            hints=("e.g. curl -sSL https://install.python-poetry.org | python3 -",),
        ),
        Check(
            name="poetry-dependencies",
            probe=FunctionProbe(poetry_dependencies_ready, "poetry install --no-root --dry-run"),
            on_missing=OnMissing.INSTALL,
            exit_code=ExitCode.POETRY_INSTALL,
            installer=poetry_install,
            trigger=PathTrigger(("pyproject.toml",), absent_message="No pyproject.toml found to poetry install."),
        ),
        Check(
            name="gh",
            probe=CommandProbe("gh"),
            on_missing=FATAL,
            exit_code=ExitCode.GITHUB_CLI,
            description="Please install GitHub/CLI/CLI (official)",
            hints=(
                "https://github.com/cli/cli/blob/trunk/docs/install_linux.md#debian-ubuntu-linux-apt",
                "or simply: brew install gh",
            ),
        ),
        Check(
            name="shellcheck",
            probe=CommandProbe("shellcheck"),
            on_missing=FATAL,
            exit_code=ExitCode.SHELLCHECK,
            description="Shell/Bash found on this project but shellcheck is not installed.",
            trigger=GlobTrigger("*.sh", absent_message="This project doesn't seem to be using Bash/Shell files."),
            hints=(
                "https://github.com/koalaman/shellcheck",
                "MacOS: brew install shellcheck",
                "Linux: sudo apt install shellcheck",
                "AnyOS: pip install shellcheck-py",
            ),
        ),
        Check(
            name="hadolint",
            probe=CommandProbe("hadolint"),
            on_missing=FATAL,
            exit_code=ExitCode.HADOLINT,
            description="Dockerfile(s) found on this project but hadolint is not installed.",
            trigger=GlobTrigger("Dockerfile*", absent_message="This project doesn't seem to be using Dockerfile(s)."),
            hints=("MacOS: brew install hadolint", "https://github.com/hadolint/hadolint#install"),
        ),
        Check(
            name="kube-linter",
            probe=CommandProbe("kube-linter", ("version",)),
            on_missing=FATAL,
            exit_code=ExitCode.KUBE_LINTER,
            description="Kubernetes manifest(s) found on this project but kube-linter is not installed.",
            trigger=ManifestTrigger(absent_message="This project doesn't seem to be using Kubernetes manifests."),
            hints=(
                "MacOS: brew install kube-linter",
                "Linux: go install golang.stackrox.io/kube-linter/cmd/kube-linter@latest",
                "https://github.com/stackrox/kube-linter#installing-kubelinter",
            ),
        ),
        Check(
            name="ansible-galaxy",
            probe=CommandProbe("ansible-galaxy"),
            on_missing=FATAL,
            exit_code=ExitCode.ANSIBLE_GALAXY,
            description="ansible.cfg file found in this project but ansible-galaxy is not installed.",
            trigger=PathTrigger(("ansible.cfg",), absent_message="This project doesn't seem to be using Ansible."),
        ),
        Check(
            name="ansible-requirements",
            probe=FunctionProbe(galaxy_requirements_ready, "ansible-galaxy role/collection list"),
            on_missing=OnMissing.INSTALL,
            exit_code=ExitCode.ANSIBLE_REQUIREMENTS,
            installer=galaxy_install,
            trigger=PathTrigger(
                ("ansible.cfg", "roles/requirements.yml"),
                require_all=True,
                absent_message="No roles/requirements.yml found to ansible-galaxy install.",
            ),
        ),
        Check(
            name="vagrant",
            probe=CommandProbe("vagrant", args=None),
            on_missing=FATAL,
            exit_code=ExitCode.VAGRANT,
            description="Vagrantfile(s) found on this project but vagrant is not installed.",
            trigger=GlobTrigger("Vagrantfile*", absent_message="This project doesn't seem to be using Vagrantfile(s)."),
            hints=("https://www.vagrantup.com/docs/installation",),
        ),
        Check(
            name="invoke-tasks",
            probe=CommandProbe("invoke"),
            on_missing=FATAL,
            exit_code=ExitCode.INVOKE,
            description="tasks.py found on this project but invoke is not installed in the virtualenv.",
            action=run_project_tasks,
            trigger=PathTrigger(("tasks.py", "invoke.yaml"), absent_message="This project doesn't seem to be using pyinvoke."),
            satisfied_message="project tasks completed",
        ),
        Check(
            name="node",
            probe=CommandProbe("node"),
            on_missing=FATAL,
            exit_code=ExitCode.NODE,
            description="Please install NodeJS or put it in the PATH.",
            trigger=NODE_TRIGGER,
            hints=("MacOS: brew install node", "Linux: apt -qyy install nodejs"),
        ),
        Check(
            name="npm",
            probe=CommandProbe("npm"),
            on_missing=FATAL,
            exit_code=ExitCode.NPM,
            description="Please install NPM or put it in the PATH.",
            trigger=NODE_TRIGGER,
            hints=("MacOS: brew install npm", "Linux: apt -qyy install npm"),
        ),
    ]

