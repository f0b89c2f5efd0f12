"""Error types raised while bootstrapping and dispatching qxc commands."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class QxcError(Exception):
    """Base type for every failure surfaced to the command line."""


class UsageError(QxcError):
    """Raised when the command line is missing or carries invalid input."""


class ValidationError(UsageError):
    """Raised when ``--set-env`` (or ``--set``) entries are not ``key=value`` pairs."""

    def __init__(self, entries: Sequence[str], *, option: str = "--set-env") -> None:
        self.entries = tuple(entries)
        self.option = option
        listing = ", ".join(repr(entry) for entry in self.entries)
        super().__init__(f"{option} must be a key=value pair (invalid: {listing})")


class ConfigError(QxcError):
    """Raised when the configuration descriptor cannot satisfy the request."""


class SchemaDriftError(QxcError):
    """Raised when the lockfile schema is older than the engine and --force is absent."""

    def __init__(self, lockfile_path: Path) -> None:
        self.lockfile_path = Path(lockfile_path)
        name = self.lockfile_path.name
        super().__init__(
            f"The schema of '{self.lockfile_path}' has changed. "
            f"Re-run with --force (e.g. 'qxc clean && qxc compile --force') to delete and regenerate it.\n"
            f"You might have to re-apply manual modifications to '{name}'."
        )


class MigrationFailedError(QxcError):
    """Raised when backing up or reinstalling during a lockfile migration fails."""


class UnresolvedLibraryError(QxcError):
    """Raised when library manifests are still missing after installation."""

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = tuple(paths)
        super().__init__(
            "unable to resolve libraries (no Manifest.json): " + ", ".join(self.paths)
        )


class CommandError(QxcError):
    """Raised when a command's ``process()`` fails."""
