"""
Pre-flight Check Models

Shared data types for the preflight checklist.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, ContextManager, List, Optional, Tuple

from ..config.models import EnsureSettings
from ..platform import PlatformProfile
from ..process import CommandRunner

if TYPE_CHECKING:
    from .probes import Probe
    from .triggers import Trigger


class OnMissing(str, Enum):
    """What to do when a check's probe does not report the tool present."""
    INSTALL = "install"
    WARN_ONLY = "warn"
    FATAL_ABORT = "fatal"


class RunStatus(str, Enum):
    """Outcome of a single check."""
    OK = "ok"
    INSTALLED = "installed"
    WARNED = "warned"
    SKIPPED = "skipped"
    FATAL = "fatal"


@dataclass
class CheckContext:
    """Everything a probe, trigger, installer or action may consult."""
    settings: EnsureSettings
    profile: PlatformProfile
    runner: CommandRunner

    @property
    def root(self) -> Path:
        return self.settings.project_root


Installer = Callable[[CheckContext], Optional["RunResult"]]
Action = Callable[[CheckContext], None]
Scope = Callable[[CheckContext], ContextManager]


@dataclass(frozen=True)
class Check:
    """A single idempotent verification or installation step."""
    name: str
    probe: "Probe"
    on_missing: OnMissing
    exit_code: int
    description: str = ""
    installer: Optional[Installer] = None
    action: Optional[Action] = None
    trigger: Optional["Trigger"] = None
    scope: Optional[Scope] = None
    hints: Tuple[str, ...] = ()
    satisfied_message: str = ""

    def __post_init__(self):
        if self.on_missing == OnMissing.INSTALL and self.installer is None:
            raise ValueError(f"Check '{self.name}' installs on missing but has no installer")


@dataclass
class RunResult:
    """Result of running a single check."""
    check: str
    status: RunStatus
    message: str
    exit_code: Optional[int] = None

    @property
    def is_fatal(self) -> bool:
        return self.status == RunStatus.FATAL

    def __str__(self) -> str:
        return f"[{self.status.value.upper()}] {self.check}: {self.message}"


@dataclass
class ExitOutcome:
    """Complete result of a preflight run."""
    exit_code: int
    results: List[RunResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def fatal(self) -> Optional[RunResult]:
        """The result that aborted the run, if any."""
        for result in self.results:
            if result.is_fatal:
                return result
        return None

    def by_status(self, status: RunStatus) -> List[RunResult]:
        return [r for r in self.results if r.status == status]

    def summary(self) -> str:
        """Get summary string."""
        counts = ", ".join(
            f"{len(self.by_status(s))} {s.value}"
            for s in RunStatus
            if self.by_status(s)
        )
        status = "PASSED" if self.ok else f"FAILED (exit {self.exit_code})"
        return f"{status}: {len(self.results)} checks ({counts or 'none run'})"
