"""
Optional-Tool Gate

Triggers decide whether an optional check applies to the project at all.
A project without Dockerfiles does not need hadolint; that is a skip,
not a failure.
"""

import fnmatch
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple

from .models import Check, CheckContext, RunResult, RunStatus

# Directories never scanned for trigger files
IGNORED_DIRS = {".git", ".venv", "node_modules", "__pycache__", ".tox", ".mypy_cache"}


class Trigger(ABC):
    """Base class for gate conditions."""

    absent_message: str = "not applicable"

    @abstractmethod
    def matches(self, context: CheckContext) -> bool:
        """Whether the project contains the triggering artifact."""

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable form for listings."""


@dataclass(frozen=True)
class PathTrigger(Trigger):
    """Fixed paths relative to the project root."""
    paths: Tuple[str, ...]
    require_all: bool = False
    absent_message: str = "not applicable"

    def matches(self, context: CheckContext) -> bool:
        found = [(context.root / p).exists() for p in self.paths]
        return all(found) if self.require_all else any(found)

    def describe(self) -> str:
        joiner = " and " if self.require_all else " or "
        return joiner.join(self.paths)


@dataclass(frozen=True)
class GlobTrigger(Trigger):
    """Any file whose name matches a pattern, within the scan depth."""
    pattern: str
    absent_message: str = "not applicable"

    def matches(self, context: CheckContext) -> bool:
        for _ in iter_matching_files(context.root, self.pattern, context.settings.scan_depth):
            return True
        return False

    def describe(self) -> str:
        return self.pattern


@dataclass(frozen=True)
class ManifestTrigger(Trigger):
    """
    YAML files that look like Kubernetes manifests.

    A file containing both ``apiVersion:`` and ``kind:`` is very likely one.
    """
    pattern: str = "*.yaml"
    markers: Tuple[str, ...] = ("apiVersion:", "kind:")
    absent_message: str = "not applicable"

    def matches(self, context: CheckContext) -> bool:
        for path in iter_matching_files(context.root, self.pattern, context.settings.scan_depth):
            try:
                text = path.read_text(errors="ignore")
            except OSError:
                continue
            if all(marker in text for marker in self.markers):
                return True
        return False

    def describe(self) -> str:
        return f"{self.pattern} with {' and '.join(self.markers)}"


def iter_matching_files(root: Path, pattern: str, max_depth: int) -> Iterator[Path]:
    """
    Walk ``root`` yielding files whose name matches ``pattern``.

    Depth counts like ``find -maxdepth``: files directly in root are at
    depth 1.
    """
    root = Path(root)
    for dirpath, dirnames, filenames in os.walk(root):
        depth = len(Path(dirpath).relative_to(root).parts) + 1
        if depth >= max_depth:
            dirnames[:] = []
        else:
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        for name in sorted(filenames):
            if fnmatch.fnmatch(name, pattern):
                yield Path(dirpath) / name


def run_if_present(trigger: Optional[Trigger], check: Check, context: CheckContext) -> Optional[RunResult]:
    """
    Gate a check on its trigger.

    Args:
        trigger: Gate condition, None for unconditional checks
        check: The check being gated
        context: Check context

    Returns:
        A SKIPPED result when the trigger is absent, None when the check
        should run normally
    """
    if trigger is None or trigger.matches(context):
        return None
    return RunResult(check=check.name, status=RunStatus.SKIPPED, message=trigger.absent_message)
