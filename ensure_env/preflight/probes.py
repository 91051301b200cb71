"""
Capability Probes

Data-driven presence tests: invoke something, classify the answer as
present, absent or errored.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ..process import NOT_FOUND, CommandResult
from .models import CheckContext


class ProbeStatus(str, Enum):
    """Classification of a probe."""
    PRESENT = "present"
    ABSENT = "absent"
    ERRORED = "errored"


@dataclass
class ProbeReport:
    """What a probe found, with a line of detail for the logs."""
    status: ProbeStatus
    detail: str = ""

    @property
    def present(self) -> bool:
        return self.status == ProbeStatus.PRESENT


class Probe(ABC):
    """Base class for capability probes."""

    @abstractmethod
    def probe(self, context: CheckContext) -> ProbeReport:
        """Run the probe against the current environment."""

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable form for listings."""


@dataclass(frozen=True)
class CommandProbe(Probe):
    """
    Probe a tool by running it.

    With ``args`` set to None only the search path is consulted, like
    ``which tool``. Otherwise the tool is run with ``args`` and must exit
    zero; ``expect`` can further inspect the result.
    """
    tool: str
    args: Optional[Tuple[str, ...]] = ("--version",)
    expect: Optional[Callable[[CommandResult], bool]] = None

    def probe(self, context: CheckContext) -> ProbeReport:
        location = context.runner.which(self.tool)
        if location is None:
            return ProbeReport(ProbeStatus.ABSENT, f"{self.tool} not found in PATH")
        if self.args is None:
            return ProbeReport(ProbeStatus.PRESENT, location)

        result = context.runner.run([self.tool, *self.args], timeout=context.settings.probe_timeout)
        if result.returncode == NOT_FOUND:
            return ProbeReport(ProbeStatus.ABSENT, f"{self.tool} not found in PATH")
        if not result.ok:
            return ProbeReport(ProbeStatus.ERRORED, _first_line(result) or str(result))
        if self.expect is not None and not self.expect(result):
            return ProbeReport(ProbeStatus.ERRORED, f"unexpected output from {result}")
        return ProbeReport(ProbeStatus.PRESENT, _first_line(result))

    def describe(self) -> str:
        if self.args is None:
            return f"which {self.tool}"
        return " ".join((self.tool, *self.args))


@dataclass(frozen=True)
class PathProbe(Probe):
    """Probe for a file or directory relative to the project root."""
    path: str
    directory: bool = False
    non_empty: bool = False

    def probe(self, context: CheckContext) -> ProbeReport:
        target = context.root / self.path
        exists = target.is_dir() if self.directory else target.is_file()
        if not exists:
            return ProbeReport(ProbeStatus.ABSENT, f"{self.path} not found")
        if self.non_empty and not self.directory:
            try:
                text = target.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                return ProbeReport(ProbeStatus.ABSENT, f"{self.path} is not a text file")
            if not text.strip():
                return ProbeReport(ProbeStatus.ABSENT, f"{self.path} is empty")
        return ProbeReport(ProbeStatus.PRESENT, str(target))

    def describe(self) -> str:
        return f"{self.path} exists"


@dataclass(frozen=True)
class FunctionProbe(Probe):
    """Probe backed by a function, for states no single command reports."""
    function: Callable[[CheckContext], ProbeReport]
    description: str

    def probe(self, context: CheckContext) -> ProbeReport:
        return self.function(context)

    def describe(self) -> str:
        return self.description


def _first_line(result: CommandResult) -> str:
    for line in result.output.splitlines():
        if line.strip():
            return line.strip()
    return ""
