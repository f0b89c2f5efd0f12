"""Plugin-specific error types."""

from __future__ import annotations

from pathlib import Path

from qxc_core.errors import QxcError


class PluginError(QxcError):
    """Base type for plugin-related failures."""


class PluginLoadError(PluginError):
    """Raised when a plugin module cannot be executed or inspected."""

    def __init__(
        self,
        path: Path | str,
        diagnostic: str,
        *,
        lineno: int | None = None,
    ) -> None:
        self.path = Path(path)
        self.diagnostic = diagnostic
        self.lineno = lineno
        location = f" at line {lineno}" if lineno is not None else ""
        super().__init__(f"Error while reading {self.path}{location}\n{diagnostic}".rstrip())
