import io
from contextlib import contextmanager
from typing import List

from ensure_env.errors import InstallFailureError
from ensure_env.logs import configure_logging
from ensure_env.preflight import (
    Check,
    CommandProbe,
    OnMissing,
    PathTrigger,
    PreflightRunner,
    RunResult,
    RunStatus,
)

from conftest import FakeCommandRunner


def _tool_check(tool: str, on_missing: OnMissing, exit_code: int, **kwargs) -> Check:
    return Check(name=tool, probe=CommandProbe(tool), on_missing=on_missing, exit_code=exit_code, **kwargs)


def test_present_tools_are_already_satisfied(make_context) -> None:
    context = make_context(FakeCommandRunner(tools={"git", "grep"}))
    checks = [
        _tool_check("git", OnMissing.FATAL_ABORT, 25),
        _tool_check("grep", OnMissing.FATAL_ABORT, 33),
    ]

    outcome = PreflightRunner(context).run(checks)

    assert outcome.exit_code == 0
    assert [r.status for r in outcome.results] == [RunStatus.OK, RunStatus.OK]
    assert outcome.results[0].message == "already satisfied"


def test_fatal_check_stops_the_run_with_its_exit_code(make_context) -> None:
    runner = FakeCommandRunner(tools={"git", "mawk"})
    context = make_context(runner)
    checks = [
        _tool_check("git", OnMissing.FATAL_ABORT, 25),
        _tool_check("grep", OnMissing.FATAL_ABORT, 33),
        _tool_check("mawk", OnMissing.FATAL_ABORT, 34),
    ]

    outcome = PreflightRunner(context).run(checks)

    assert outcome.exit_code == 33
    assert [r.check for r in outcome.results] == ["git", "grep"]
    assert outcome.fatal.check == "grep"
    assert not runner.ran("mawk")


def test_each_fatal_check_reports_its_own_code(make_context) -> None:
    codes = {"gh": 41, "hadolint": 40, "vagrant": 50, "node": 54}
    for tool, code in codes.items():
        context = make_context(FakeCommandRunner(tools=set(codes) - {tool}))
        checks = [_tool_check(t, OnMissing.FATAL_ABORT, c) for t, c in codes.items()]

        outcome = PreflightRunner(context).run(checks)

        assert outcome.exit_code == code
        assert outcome.results[-1].check == tool


def test_errored_probe_counts_as_missing(make_context) -> None:
    runner = FakeCommandRunner(tools={"docker"})
    runner.respond("docker", "ps", returncode=1, stderr="permission denied")
    context = make_context(runner)
    check = Check(
        name="docker-daemon",
        probe=CommandProbe("docker", ("ps", "--last=1")),
        on_missing=OnMissing.FATAL_ABORT,
        exit_code=28,
    )

    outcome = PreflightRunner(context).run([check])

    assert outcome.exit_code == 28
    assert "permission denied" in outcome.fatal.message


def test_warn_only_continues(make_context) -> None:
    context = make_context(FakeCommandRunner(tools={"git"}))
    checks = [
        _tool_check("docker", OnMissing.WARN_ONLY, 27, description="docker is not installed"),
        _tool_check("git", OnMissing.FATAL_ABORT, 25),
    ]

    outcome = PreflightRunner(context).run(checks)

    assert outcome.exit_code == 0
    assert outcome.results[0].status == RunStatus.WARNED
    assert outcome.results[0].message == "docker is not installed"
    assert outcome.results[1].status == RunStatus.OK


def test_installer_runs_only_when_missing(make_context) -> None:
    runner = FakeCommandRunner()
    context = make_context(runner)
    installs: List[str] = []

    def install(ctx):
        installs.append("tool")
        runner.tools.add("tool")
        return RunResult("tool", RunStatus.INSTALLED, "tool installed")

    check = _tool_check("tool", OnMissing.INSTALL, 60, installer=install)

    first = PreflightRunner(context).run([check])
    second = PreflightRunner(context).run([check])

    assert first.results[0].status == RunStatus.INSTALLED
    assert first.results[0].message == "tool installed"
    assert second.results[0].status == RunStatus.OK
    assert installs == ["tool"]
    assert first.exit_code == second.exit_code == 0


def test_install_failure_is_fatal_with_check_code(make_context) -> None:
    context = make_context(FakeCommandRunner())

    def install(ctx):
        raise InstallFailureError("clone failed")

    outcome = PreflightRunner(context).run([_tool_check("tool", OnMissing.INSTALL, 61, installer=install)])

    assert outcome.exit_code == 61
    assert outcome.fatal.message == "clone failed"


def test_install_failure_keeps_specific_code(make_context) -> None:
    context = make_context(FakeCommandRunner())

    def install(ctx):
        raise InstallFailureError("pip upgrade failed", 15)

    outcome = PreflightRunner(context).run([_tool_check("tool", OnMissing.INSTALL, 61, installer=install)])

    assert outcome.exit_code == 15


def test_optional_check_skipped_without_trigger(make_context) -> None:
    runner = FakeCommandRunner()
    context = make_context(runner)
    check = _tool_check(
        "vagrant",
        OnMissing.FATAL_ABORT,
        50,
        trigger=PathTrigger(("Vagrantfile",), absent_message="no Vagrantfile"),
    )

    outcome = PreflightRunner(context).run([check])

    assert outcome.exit_code == 0
    assert outcome.results[0].status == RunStatus.SKIPPED
    assert outcome.results[0].message == "no Vagrantfile"
    assert runner.calls == []


def test_optional_check_runs_with_trigger(make_context) -> None:
    context = make_context(FakeCommandRunner())
    (context.root / "Vagrantfile").write_text("Vagrant.configure('2')\n")
    check = _tool_check("vagrant", OnMissing.FATAL_ABORT, 50, trigger=PathTrigger(("Vagrantfile",)))

    outcome = PreflightRunner(context).run([check])

    assert outcome.exit_code == 50


def test_configured_skip(make_context) -> None:
    context = make_context(FakeCommandRunner(), skip=["gh"])

    outcome = PreflightRunner(context).run([_tool_check("gh", OnMissing.FATAL_ABORT, 41)])

    assert outcome.exit_code == 0
    assert outcome.results[0].message == "disabled by configuration"


def test_action_runs_every_time_and_can_fail(make_context) -> None:
    context = make_context(FakeCommandRunner(tools={"invoke"}))
    calls: List[int] = []

    def action(ctx):
        calls.append(1)
        if len(calls) == 2:
            raise InstallFailureError("hooks failed", 53)

    check = _tool_check("invoke", OnMissing.FATAL_ABORT, 51, action=action)

    assert PreflightRunner(context).run([check]).exit_code == 0
    assert PreflightRunner(context).run([check]).exit_code == 53


def test_scopes_are_held_until_the_run_ends(make_context) -> None:
    runner = FakeCommandRunner(tools={"first", "second"})
    context = make_context(runner)
    events: List[str] = []

    @contextmanager
    def scope(ctx):
        events.append("enter")
        yield
        events.append("exit")

    def record(ctx):
        events.append("second")

    checks = [
        _tool_check("first", OnMissing.FATAL_ABORT, 70, scope=scope),
        _tool_check("second", OnMissing.FATAL_ABORT, 71, action=record),
        _tool_check("third", OnMissing.FATAL_ABORT, 72),
    ]

    outcome = PreflightRunner(context).run(checks)

    assert outcome.exit_code == 72
    assert events == ["enter", "second", "exit"]


def test_summary_mentions_failure(make_context) -> None:
    context = make_context(FakeCommandRunner())

    outcome = PreflightRunner(context).run([_tool_check("git", OnMissing.FATAL_ABORT, 25)])

    assert outcome.summary().startswith("FAILED (exit 25)")


def test_missing_tool_logs_error_then_hints(make_context) -> None:
    stream = io.StringIO()
    configure_logging(stream=stream)
    context = make_context(FakeCommandRunner())
    check = _tool_check("gh", OnMissing.FATAL_ABORT, 41, description="Please install GitHub CLI",
                        hints=("brew install gh",))

    result = PreflightRunner(context).run_check(check)

    assert result.status == RunStatus.FATAL
    assert result.exit_code == 41
    assert result.message == "Please install GitHub CLI (gh not found in PATH)"
    lines = stream.getvalue().splitlines()
    assert lines[0].startswith("ERROR ") and lines[0].endswith("Please install GitHub CLI (gh not found in PATH)")
    assert lines[1].endswith("  brew install gh")
