"""Configuration handling for the preflight checks."""

from .models import EnsureSettings
from .loader import ConfigLoader

__all__ = [
    "EnsureSettings",
    "ConfigLoader",
]
