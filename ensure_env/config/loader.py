"""
Configuration loader.

Merges defaults, an optional ``.ensure.yaml`` in the project root and
environment variables (highest precedence) into EnsureSettings.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from ..logs import debug_requested
from .models import EnsureSettings

CONFIG_FILENAMES = (".ensure.yaml", ".ensure.yml")

TRUTHY = {"1", "true", "yes", "on"}


class ConfigLoader:
    """
    Loads EnsureSettings for a project directory.

    The config file is optional; when present it may set any field
    except the ones derived from the process environment.
    """

    def __init__(self, project_root: Optional[Union[str, Path]] = None):
        """
        Initialize the config loader.

        Args:
            project_root: Directory being checked, defaults to cwd
        """
        self.project_root = Path(project_root or Path.cwd()).resolve()
        self.config_file: Optional[Path] = None

    def load(
        self,
        environ: Optional[Mapping[str, str]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> EnsureSettings:
        """
        Build the settings.

        Args:
            environ: Process environment, os.environ by default
            overrides: Values given on the command line

        Returns:
            Validated, immutable settings

        Raises:
            ConfigError: If the file or a value is invalid
        """
        environ = os.environ if environ is None else environ

        data: Dict[str, Any] = {}
        data.update(self._read_file())
        data.update(self._from_environment(environ))
        data.update(overrides or {})
        data["project_root"] = self.project_root

        try:
            return EnsureSettings(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")

    def find_config_file(self) -> Optional[Path]:
        """Return the first config file present in the project root."""
        for filename in CONFIG_FILENAMES:
            path = self.project_root / filename
            if path.is_file():
                return path
        return None

    def _read_file(self) -> Dict[str, Any]:
        """Read and parse the YAML config file, if any."""
        path = self.find_config_file()
        if path is None:
            return {}
        self.config_file = path

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        except IOError as e:
            raise ConfigError(f"Cannot read {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

        for key in ("project_root", "user", "ci"):
            if key in data:
                raise ConfigError(f"'{key}' cannot be set in {path.name}")
        return data

    def _from_environment(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        """Collect the settings the process environment controls."""
        data: Dict[str, Any] = {
            "user": environ.get("USER") or None,
            "ci": bool(environ.get("CDP_BUILD_VERSION")),
        }
        if debug_requested(environ):
            data["debug"] = True

        home = environ.get("HOME")
        if environ.get("PYENV_ROOT"):
            data["pyenv_root"] = Path(environ["PYENV_ROOT"]).expanduser()
        elif home:
            data["pyenv_root"] = Path(home) / ".pyenv"

        flag = environ.get("ENSURE_POETRY_SELF_UPDATE")
        if flag is not None:
            data["poetry_self_update"] = flag.strip().lower() in TRUTHY
        return data
