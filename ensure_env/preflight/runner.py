"""
Pre-flight Runner

Executes checks strictly in registration order and stops at the first
fatal outcome.
"""

import logging
from contextlib import ExitStack
from typing import Iterable, List, Optional

from ..errors import EnsureError, MissingRequiredToolError
from ..installers.virtualenv import deactivate
from .models import Check, CheckContext, ExitOutcome, OnMissing, RunResult, RunStatus
from .probes import ProbeStatus
from .triggers import run_if_present

logger = logging.getLogger(__name__)


class PreflightRunner:
    """
    Orchestrates the preflight checklist.

    For each check: skip it if its trigger is absent, probe it, then
    install, warn or abort depending on its policy. Scopes entered by
    satisfied checks (virtualenv activation) stay active for the checks
    that follow and are released when the run ends.
    """

    def __init__(self, context: CheckContext):
        """
        Initialize the runner.

        Args:
            context: Settings, platform profile and command runner shared by all checks
        """
        self.context = context

    def run(self, checks: Iterable[Check]) -> ExitOutcome:
        """
        Run all checks.

        Args:
            checks: Ordered checks

        Returns:
            ExitOutcome with the exit code and every result produced
        """
        results: List[RunResult] = []
        deactivate(self.context.runner.env)

        with ExitStack() as scopes:
            for check in checks:
                result = self.run_check(check, scopes)
                results.append(result)
                if result.is_fatal:
                    return ExitOutcome(exit_code=result.exit_code, results=results)

        return ExitOutcome(exit_code=0, results=results)

    def run_check(self, check: Check, scopes: Optional[ExitStack] = None) -> RunResult:
        """
        Run a single check.

        Args:
            check: The check
            scopes: Stack that receives the check's scope, if it has one

        Returns:
            RunResult
        """
        if check.name in self.context.settings.skip:
            logger.info("%s: disabled by configuration, skipping.", check.name)
            return RunResult(check.name, RunStatus.SKIPPED, "disabled by configuration")

        skipped = run_if_present(check.trigger, check, self.context)
        if skipped is not None:
            logger.info("%s: %s", check.name, skipped.message)
            return skipped

        try:
            result = self._evaluate(check)
            if check.action is not None:
                check.action(self.context)
            if check.scope is not None and scopes is not None:
                scopes.enter_context(check.scope(self.context))
        except MissingRequiredToolError as e:
            result = self._fatal(check, e.message, e.exit_code)
            for hint in check.hints:
                logger.error("  %s", hint)
            return result
        except EnsureError as e:
            return self._fatal(check, e.message, e.exit_code if not e.is_generic else check.exit_code)

        return result

    def _evaluate(self, check: Check) -> RunResult:
        """
        Probe the check and apply its missing policy.

        Raises:
            MissingRequiredToolError: The check is fatal and its probe failed
        """
        report = check.probe.probe(self.context)

        if report.present:
            message = check.satisfied_message or "already satisfied"
            logger.info("%s: %s.", check.name, message)
            return RunResult(check.name, RunStatus.OK, message)

        if report.status == ProbeStatus.ERRORED:
            logger.debug("%s probe errored: %s", check.name, report.detail)

        if check.on_missing == OnMissing.INSTALL:
            logger.info("%s: %s, installing...", check.name, report.detail or "missing")
            installed = check.installer(self.context)
            message = installed.message if installed is not None else "installed"
            logger.info("%s: %s.", check.name, message)
            return RunResult(check.name, RunStatus.INSTALLED, message)

        message = check.description or f"{check.name} is not available"
        if check.on_missing == OnMissing.WARN_ONLY:
            logger.warning("%s (%s)", message, report.detail)
            for hint in check.hints:
                logger.warning("  %s", hint)
            return RunResult(check.name, RunStatus.WARNED, message)

        raise MissingRequiredToolError(
            f"{message} ({report.detail})" if report.detail else message,
            check.exit_code,
        )

    def _fatal(self, check: Check, message: str, exit_code: Optional[int] = None) -> RunResult:
        code = exit_code if exit_code is not None else check.exit_code
        logger.error(message)
        return RunResult(check.name, RunStatus.FATAL, message, exit_code=code)
