"""
Pydantic models for configuration validation.

Settings are resolved once at startup and never change afterwards;
every check reads them through its CheckContext.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GITHUB_URL = "https://github.com"


class EnsureSettings(BaseModel):
    """Run-wide settings for the preflight checks."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    project_root: Path = Field(default_factory=Path.cwd, description="Directory being checked")
    pyenv_root: Path = Field(
        default_factory=lambda: Path.home() / ".pyenv",
        description="PyEnv install root (PYENV_ROOT)",
    )
    debug: bool = Field(default=False, description="Trace every external command")
    user: Optional[str] = Field(None, description="Current user name (USER)")
    ci: bool = Field(default=False, description="Running in a CI build (CDP_BUILD_VERSION)")

    venv_dir: str = Field(default=".venv", description="Project-local virtualenv directory")
    version_file: str = Field(default=".python-version", description="Python version pin file")
    scan_depth: int = Field(default=3, ge=1, description="Directory depth scanned for trigger files")

    probe_timeout: float = Field(default=30.0, gt=0, description="Seconds allowed for a probe command")
    network_timeout: float = Field(default=900.0, gt=0, description="Seconds allowed for clones and installs")

    strict_docker: bool = Field(default=False, description="Treat Docker problems as fatal")
    poetry_self_update: bool = Field(default=False, description="Run 'poetry self update' outside CI")
    github_url: str = Field(default=DEFAULT_GITHUB_URL, description="Base URL pyenv repos are cloned from")
    skip: List[str] = Field(default_factory=list, description="Check names to skip")

    @field_validator("github_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so repo paths can be appended."""
        return v.rstrip("/")

    @property
    def is_superuser(self) -> bool:
        """Root, or no resolvable user at all."""
        return not self.user or self.user == "root"

    @property
    def venv_path(self) -> Path:
        """Absolute path of the project virtualenv."""
        return self.project_root / self.venv_dir

    @property
    def version_file_path(self) -> Path:
        """Absolute path of the version pin file."""
        return self.project_root / self.version_file
