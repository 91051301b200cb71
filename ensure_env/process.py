"""
External Command Execution

The single interface every check uses to reach other tools: run a command,
capture its exit code and output. Tests swap in a fake backend by
overriding ``_execute`` and ``which``.
"""

import logging
import os
import shlex
import shutil
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterator, List, Mapping, Optional, Sequence, Union

if TYPE_CHECKING:
    from .platform import PlatformProfile

logger = logging.getLogger(__name__)

# Shell conventions for "command not found" and "timed out"
NOT_FOUND = 127
TIMED_OUT = 124

Argv = Sequence[Union[str, Path]]


@dataclass
class CommandResult:
    """Outcome of one external command."""
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Stdout and stderr joined, for tools that report on either."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def __str__(self) -> str:
        return f"{shlex.join(self.argv)} (exit {self.returncode})"


class CommandRunner:
    """
    Runs external commands with a private copy of the environment.

    The runner owns its environment mapping: search-path changes made
    while checks run (pyenv init, virtualenv activation) only affect
    child processes, never the caller's own environment.
    """

    def __init__(
        self,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        profile: Optional["PlatformProfile"] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the runner.

        Args:
            cwd: Working directory for commands
            env: Environment for child processes, copied from os.environ by default
            profile: Platform profile used to resolve OS-specific tool names
            timeout: Default timeout in seconds
        """
        self.cwd = Path(cwd) if cwd else Path.cwd()
        self.env: Dict[str, str] = dict(os.environ if env is None else env)
        self.profile = profile
        self.timeout = timeout

    # ------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------

    def run(self, argv: Argv, timeout: Optional[float] = None) -> CommandResult:
        """
        Run a command and capture its result.

        A missing executable yields exit 127 and a timeout exit 124, the
        same codes a shell would report.

        Args:
            argv: Command and arguments; argv[0] may be a logical tool name
            timeout: Seconds before the command is killed

        Returns:
            CommandResult
        """
        args = [str(a) for a in argv]
        if self.profile is not None:
            args[0] = self.profile.alias(args[0])

        logger.debug("+ %s", shlex.join(args))
        result = self._execute(args, timeout if timeout is not None else self.timeout)
        logger.debug("  exit %d", result.returncode)
        return result

    def _execute(self, args: List[str], timeout: Optional[float]) -> CommandResult:
        """Spawn the process. Overridden by fake backends."""
        try:
            completed = subprocess.run(
                args,
                cwd=self.cwd,
                env=self.env,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            return CommandResult(args, NOT_FOUND, stderr=f"{args[0]}: command not found")
        except PermissionError as e:
            return CommandResult(args, 126, stderr=str(e))
        except subprocess.TimeoutExpired:
            logger.warning("Timed out after %ss: %s", timeout, shlex.join(args))
            return CommandResult(args, TIMED_OUT, stderr=f"timed out after {timeout}s")

        return CommandResult(args, completed.returncode, completed.stdout or "", completed.stderr or "")

    def which(self, tool: str) -> Optional[str]:
        """Locate a tool on the runner's search path."""
        if self.profile is not None:
            tool = self.profile.alias(tool)
        return shutil.which(tool, path=self.env.get("PATH", os.defpath))

    # ------------------------------------------------------------
    # Search path
    # ------------------------------------------------------------

    @property
    def search_path(self) -> List[str]:
        """Current PATH entries for child processes."""
        path = self.env.get("PATH", "")
        return [p for p in path.split(os.pathsep) if p]

    def prepend_path(self, *directories: Union[str, Path]) -> None:
        """Put directories at the front of PATH, dropping earlier copies."""
        front = [str(d) for d in directories]
        rest = [p for p in self.search_path if p not in front]
        self.env["PATH"] = os.pathsep.join(front + rest)

    @contextmanager
    def scoped_env(self) -> Iterator[Dict[str, str]]:
        """Snapshot the environment and restore it when the block exits."""
        saved = dict(self.env)
        try:
            yield self.env
        finally:
            self.env.clear()
            self.env.update(saved)
