"""
Platform Adapter

Resolves OS-specific command names once at startup. macOS ships BSD
variants of the coreutils, so the GNU ones are used through their
``g``-prefixed Homebrew names.
"""

import logging
import platform as _platform
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Optional

from .errors import MissingDependencyError, UnsupportedPlatformError

if TYPE_CHECKING:
    from .process import CommandRunner

logger = logging.getLogger(__name__)

ALIASED_TOOLS = ("tee", "cut", "sed", "tail", "date", "timeout")


class OSKind(str, Enum):
    """Supported operating systems."""
    LINUX = "linux"
    DARWIN = "darwin"


@dataclass(frozen=True)
class PlatformProfile:
    """OS kind plus the concrete binary name for each logical tool."""
    os_kind: OSKind
    tool_aliases: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "tool_aliases", MappingProxyType(dict(self.tool_aliases)))

    def alias(self, tool: str) -> str:
        """Concrete binary for a logical tool name; unknown names pass through."""
        return self.tool_aliases.get(tool, tool)


def resolve(runner: Optional["CommandRunner"] = None, system: Optional[str] = None) -> PlatformProfile:
    """
    Build the platform profile.

    Args:
        runner: Used for the coreutils probe on Darwin
        system: OS identifier, platform.system() by default

    Returns:
        PlatformProfile

    Raises:
        UnsupportedPlatformError: If the OS is neither Linux nor Darwin
        MissingDependencyError: If GNU date is missing on Darwin
    """
    system = system if system is not None else _platform.system()

    if system.startswith("Darwin"):
        aliases = {tool: f"g{tool}" for tool in ALIASED_TOOLS}
        if runner is None:
            from .process import CommandRunner
            runner = CommandRunner()
        probe = runner.run([aliases["date"], "--version"])
        if not probe.ok:
            raise MissingDependencyError(
                "coreutils",
                "GNU date is not installed, run: brew install coreutils",
            )
        profile = PlatformProfile(OSKind.DARWIN, aliases)
    elif system == "Linux":
        profile = PlatformProfile(OSKind.LINUX, {tool: tool for tool in ALIASED_TOOLS})
    else:
        raise UnsupportedPlatformError(f"Unsupported operating system: {system or 'unknown'}")

    logger.debug("Platform resolved: %s", profile.os_kind.value)
    return profile
