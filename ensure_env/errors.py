"""Errors raised while checking or installing environment tooling."""

from typing import Optional

from .exit_codes import ExitCode


class EnsureError(Exception):
    """Base error for this package. Carries the exit status to report."""

    default_exit_code: int = ExitCode.GENERIC

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.exit_code = int(exit_code if exit_code is not None else self.default_exit_code)

    @property
    def is_generic(self) -> bool:
        """Whether this error falls back to the generic fatal status."""
        return self.exit_code == ExitCode.GENERIC


class UnsupportedPlatformError(EnsureError):
    """Raised when the OS is neither Linux nor Darwin."""
    default_exit_code = ExitCode.UNSUPPORTED_PLATFORM


class MissingDependencyError(EnsureError):
    """Raised when a hard precondition of the platform is missing."""
    default_exit_code = ExitCode.MISSING_COREUTILS

    def __init__(self, dependency: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required dependency: {dependency}")
        self.dependency = dependency


class MissingRequiredToolError(EnsureError):
    """Raised when a required command is not available."""


class MissingVersionPinFileError(EnsureError):
    """Raised when the project has no usable version pin file."""
    default_exit_code = ExitCode.PYTHON_VERSION_PIN


class VersionMismatchError(EnsureError):
    """Raised when the active interpreter does not match the pinned version."""
    default_exit_code = ExitCode.PYTHON_VERSION_MISMATCH


class InstallFailureError(EnsureError):
    """Raised when an installer or project task exits non-zero."""


class ActivationFailureError(EnsureError):
    """Raised when the project virtualenv cannot be activated."""
    default_exit_code = ExitCode.VENV_ACTIVATE


class ConfigError(EnsureError):
    """Configuration loading or validation error."""
    default_exit_code = ExitCode.INVALID_CONFIG
