"""
Pre-flight Check Module

Ordered, idempotent environment checks and the runner that executes them.
"""

from .models import Check, CheckContext, ExitOutcome, OnMissing, RunResult, RunStatus
from .probes import CommandProbe, FunctionProbe, PathProbe, ProbeReport, ProbeStatus
from .triggers import GlobTrigger, ManifestTrigger, PathTrigger, run_if_present
from .runner import PreflightRunner

__all__ = [
    "PreflightRunner",
    "Check",
    "CheckContext",
    "ExitOutcome",
    "OnMissing",
    "RunResult",
    "RunStatus",
    "CommandProbe",
    "FunctionProbe",
    "PathProbe",
    "ProbeReport",
    "ProbeStatus",
    "GlobTrigger",
    "ManifestTrigger",
    "PathTrigger",
    "run_if_present",
]
