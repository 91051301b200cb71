from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import pytest

from ensure_env.config.models import EnsureSettings
from ensure_env.logs import LOGGER_NAME
from ensure_env.platform import ALIASED_TOOLS, OSKind, PlatformProfile
from ensure_env.preflight.models import CheckContext
from ensure_env.process import NOT_FOUND, CommandResult, CommandRunner

# Every tool the default checklist probes
ALL_TOOLS = (
    "git", "docker", "ssh", "ssh-keygen", "ssh-copy-id", "sftp", "grep", "mawk",
    "poetry", "gh", "shellcheck", "hadolint", "kube-linter", "ansible-galaxy",
    "vagrant", "invoke", "node", "npm", "python",
)

Response = Tuple[int, str, str, Optional[Callable[[List[str]], None]]]


class FakeCommandRunner(CommandRunner):
    """
    Scripted command backend.

    Tools listed in ``tools`` are on the search path and exit 0 unless a
    response is registered for a prefix of the argv. Absolute paths
    always run. Everything else is "command not found".
    """

    def __init__(self, tools: Iterable[str] = (), cwd: Optional[Path] = None, env: Optional[Dict[str, str]] = None):
        super().__init__(cwd=cwd, env=env if env is not None else {"PATH": "/usr/local/bin:/usr/bin"})
        self.tools = set(tools)
        self.responses: Dict[Tuple[str, ...], Response] = {}
        self.calls: List[List[str]] = []

    def respond(self, *argv: str, returncode: int = 0, stdout: str = "", stderr: str = "",
                effect: Optional[Callable[[List[str]], None]] = None) -> None:
        self.responses[tuple(str(a) for a in argv)] = (returncode, stdout, stderr, effect)

    def which(self, tool: str) -> Optional[str]:
        if self.profile is not None:
            tool = self.profile.alias(tool)
        return f"/usr/bin/{tool}" if tool in self.tools else None

    def _execute(self, args: List[str], timeout: Optional[float]) -> CommandResult:
        self.calls.append(list(args))
        for length in range(len(args), 0, -1):
            key = tuple(args[:length])
            if key in self.responses:
                returncode, stdout, stderr, effect = self.responses[key]
                if effect is not None:
                    effect(args)
                return CommandResult(list(args), returncode, stdout, stderr)

        if args[0] in self.tools or os.path.isabs(args[0]):
            return CommandResult(list(args), 0)
        return CommandResult(list(args), NOT_FOUND, stderr=f"{args[0]}: command not found")

    def ran(self, *prefix: str) -> bool:
        """Whether any recorded call starts with ``prefix``."""
        return any(call[:len(prefix)] == list(prefix) for call in self.calls)


@pytest.fixture
def linux_profile() -> PlatformProfile:
    return PlatformProfile(OSKind.LINUX, {tool: tool for tool in ALIASED_TOOLS})


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., EnsureSettings]:
    def factory(**overrides) -> EnsureSettings:
        data = {
            "project_root": tmp_path / "project",
            "pyenv_root": tmp_path / "home" / ".pyenv",
            "user": "dev",
        }
        data.update(overrides)
        Path(data["project_root"]).mkdir(parents=True, exist_ok=True)
        return EnsureSettings(**data)
    return factory


@pytest.fixture
def make_context(make_settings, linux_profile) -> Callable[..., CheckContext]:
    def factory(runner: Optional[FakeCommandRunner] = None, **overrides) -> CheckContext:
        settings = make_settings(**overrides)
        runner = runner or FakeCommandRunner(cwd=settings.project_root)
        runner.profile = linux_profile
        return CheckContext(settings=settings, profile=linux_profile, runner=runner)
    return factory


def make_venv(root: Path, venv_dir: str = ".venv") -> Path:
    """Lay out a virtualenv skeleton with an interpreter file."""
    python = root / venv_dir / "bin" / "python"
    python.parent.mkdir(parents=True, exist_ok=True)
    python.write_text("")
    return python


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams that die with the test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
