"""Convenience exports for the command registry."""

from .entry import CommandEntry, CommandHandler, CommandSpec
from .errors import (
    CommandCollisionError,
    CommandNotFoundError,
    CommandRegistryError,
)
from .registry import CommandRegistry

__all__ = [
    "CommandEntry",
    "CommandHandler",
    "CommandSpec",
    "CommandRegistry",
    "CommandRegistryError",
    "CommandCollisionError",
    "CommandNotFoundError",
]
