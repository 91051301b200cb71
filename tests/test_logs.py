import io
import logging
import re

from ensure_env.logs import configure_logging, debug_requested

LINE = re.compile(r"^(DEBUG|INFO|WARN|ERROR) \d{2}:\d{2}:\d{2}:\d{9} (.*)$")


def _lines(stream: io.StringIO):
    return [LINE.match(line) for line in stream.getvalue().splitlines()]


def test_log_line_format() -> None:
    stream = io.StringIO()
    configure_logging(stream=stream)
    logger = logging.getLogger("ensure_env.preflight.runner")

    logger.info("git: already satisfied.")
    logger.warning("docker is not installed")
    logger.error("Please install poetry yourself")

    matches = _lines(stream)
    assert all(matches)
    assert [(m.group(1), m.group(2)) for m in matches] == [
        ("INFO", "git: already satisfied."),
        ("WARN", "docker is not installed"),
        ("ERROR", "Please install poetry yourself"),
    ]


def test_debug_lines_only_when_enabled() -> None:
    stream = io.StringIO()
    logger = logging.getLogger("ensure_env.process")

    configure_logging(debug=False, stream=stream)
    logger.debug("+ git --version")
    assert stream.getvalue() == ""

    configure_logging(debug=True, stream=stream)
    logger.debug("+ git --version")
    assert _lines(stream)[0].group(1) == "DEBUG"


def test_reconfiguring_replaces_handler() -> None:
    configure_logging()
    configure_logging()
    logger = logging.getLogger("ensure_env")
    assert len([h for h in logger.handlers if getattr(h, "_ensure_env", False)]) == 1


def test_debug_requested() -> None:
    assert debug_requested({"DEBUG": "1"})
    assert debug_requested({"PYENV_DEBUG": "true"})
    assert not debug_requested({"DEBUG": ""})
    assert not debug_requested({})
