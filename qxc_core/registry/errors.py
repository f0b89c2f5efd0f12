"""Custom errors raised by the qxc command registry."""

from __future__ import annotations

from qxc_core.errors import QxcError


class CommandRegistryError(QxcError):
    """Base class for command registry errors."""


class CommandCollisionError(CommandRegistryError):
    """Raised when a different command is already registered under a name."""


class CommandNotFoundError(CommandRegistryError):
    """Raised when a command cannot be resolved."""
