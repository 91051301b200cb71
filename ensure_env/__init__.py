"""
ensure-env

Idempotent preflight checks for a Python development machine.
"""

__version__ = "1.0.0"
