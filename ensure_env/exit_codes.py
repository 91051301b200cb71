"""
Exit Codes

Stable mapping from check identity to process exit status, so callers
can tell failure causes apart without parsing log output.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit statuses."""
    SUCCESS = 0

    # Python toolchain
    PYTHON_VERSION_MISMATCH = 10
    PYTHON_VERSION_PIN = 11
    PYENV_INIT = 12
    PYTHON_INSTALL = 13
    VENV_CREATE = 14
    PIP_UPGRADE = 15
    VENV_ACTIVATE = 16

    # Poetry
    POETRY = 20
    POETRY_SELF_UPDATE = 21
    POETRY_INSTALL = 22

    # Base tooling
    GIT = 25
    GIT_SUBMODULES = 26
    DOCKER = 27
    DOCKER_DAEMON = 28
    SSH = 29
    SSH_KEYGEN = 30
    SSH_COPY_ID = 31
    SFTP = 32
    GREP = 33
    MAWK = 34

    # Linters
    SHELLCHECK = 35
    HADOLINT = 40
    GITHUB_CLI = 41
    KUBE_LINTER = 42

    # Orchestration helpers
    ANSIBLE_GALAXY = 45
    ANSIBLE_REQUIREMENTS = 46
    VAGRANT = 50

    # Project tasks
    INVOKE = 51
    INVOKE_SETUP = 52
    INVOKE_HOOKS = 53
    INVOKE_TESTS = 56

    # JS tooling for docs
    NODE = 54
    NPM = 55

    # Process level
    GENERIC = 150
    UNSUPPORTED_PLATFORM = 151
    MISSING_COREUTILS = 152
    INVALID_CONFIG = 153
