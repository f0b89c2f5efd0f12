"""In-memory registry for qxc commands."""

from __future__ import annotations

from .entry import CommandEntry
from .errors import CommandCollisionError, CommandNotFoundError


class CommandRegistry:
    """Tracks commands by name, preserving registration order."""

    def __init__(self) -> None:
        self._by_name: dict[str, CommandEntry] = {}

    def register(self, entry: CommandEntry) -> bool:
        """Register ``entry``; return ``False`` when the same class is already there.

        Registering a class under a second name (an alias) is allowed; only a
        *different* class under an existing name is a collision.
        """

        existing = self._by_name.get(entry.name)
        if existing is not None:
            if existing.target is entry.target:
                return False
            raise CommandCollisionError(
                f"{entry.name} is already registered by {existing.target.__name__}."
            )
        self._by_name[entry.name] = entry
        return True

    def resolve(self, name: str) -> CommandEntry:
        entry = self._by_name.get(name)
        if entry is None:
            raise CommandNotFoundError(f"{name} is not registered.")
        return entry

    def names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    def entries(self) -> tuple[CommandEntry, ...]:
        """Return all registered entries in registration order."""

        return tuple(self._by_name.values())

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)
