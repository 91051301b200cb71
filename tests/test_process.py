import os

from ensure_env.process import NOT_FOUND, CommandResult, CommandRunner


def test_missing_executable_reports_127(tmp_path) -> None:
    runner = CommandRunner(cwd=tmp_path, env={"PATH": str(tmp_path)})

    result = runner.run(["definitely-not-a-real-tool-xyz", "--version"])

    assert result.returncode == NOT_FOUND
    assert not result.ok
    assert runner.which("definitely-not-a-real-tool-xyz") is None


def test_which_uses_runner_path(tmp_path) -> None:
    tool = tmp_path / "mytool"
    tool.write_text("#!/bin/sh\nexit 0\n")
    tool.chmod(0o755)

    assert CommandRunner(env={"PATH": str(tmp_path)}).which("mytool") == str(tool)
    assert CommandRunner(env={"PATH": "/nonexistent"}).which("mytool") is None


def test_env_is_a_private_copy() -> None:
    source = {"PATH": "/usr/bin", "HOME": "/home/dev"}
    runner = CommandRunner(env=source)

    runner.env["EXTRA"] = "1"

    assert "EXTRA" not in source


def test_prepend_path_moves_existing_entries_to_front() -> None:
    runner = CommandRunner(env={"PATH": os.pathsep.join(["/usr/bin", "/opt/pyenv/bin", "/bin"])})

    runner.prepend_path("/opt/pyenv/bin", "/opt/pyenv/shims")

    assert runner.search_path == ["/opt/pyenv/bin", "/opt/pyenv/shims", "/usr/bin", "/bin"]


def test_scoped_env_restores() -> None:
    runner = CommandRunner(env={"PATH": "/usr/bin"})

    with runner.scoped_env() as env:
        env["VIRTUAL_ENV"] = "/work/.venv"
        runner.prepend_path("/work/.venv/bin")

    assert runner.env == {"PATH": "/usr/bin"}


def test_command_result_output() -> None:
    result = CommandResult(["mawk", "-W", "version"], 0, stdout="", stderr="mawk 1.3.4")

    assert result.ok
    assert result.output == "mawk 1.3.4"
    assert str(result) == "mawk -W version (exit 0)"
