"""Installers for the tools the preflight checks can set up themselves."""

from .python import ensure_python_environment, read_version_pin
from .virtualenv import activate, create_virtualenv, deactivate

__all__ = [
    "ensure_python_environment",
    "read_version_pin",
    "activate",
    "create_virtualenv",
    "deactivate",
]
