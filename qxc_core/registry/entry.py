"""Registry entry descriptors for qxc commands."""

from __future__ import annotations

from argparse import ArgumentParser
from dataclasses import dataclass
from typing import Any, Callable, Type

CommandHandler = Callable[[Any], Any]


@dataclass(frozen=True)
class CommandSpec:
    """Declarative description a command class publishes about itself."""

    name: str
    configure: Callable[[ArgumentParser], None]
    description: str = ""
    handler: CommandHandler | None = None

    @property
    def summary(self) -> str:
        lines = self.description.strip().splitlines()
        return lines[0] if lines else ""


@dataclass(frozen=True)
class CommandEntry:
    """Immutable descriptor for a registered command."""

    name: str
    target: Type[Any]
    spec: CommandSpec
    origin: str = "builtin"

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name cannot be empty.")
        if ":" in self.name or self.name.startswith("-"):
            raise ValueError(f"invalid command name {self.name!r}.")
        if not isinstance(self.target, type):
            raise TypeError("target must be a class type.")
        if self.spec.handler is None:
            raise ValueError(f"command {self.name!r} has no handler.")

    @property
    def handler(self) -> CommandHandler:
        return self.spec.handler  # type: ignore[return-value]
