"""Interface of the package installer the bootstrap engine delegates to."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

from .lockfile import LockfileRecord


@dataclass(frozen=True)
class InstallerOptions:
    """Construction options handed to an installer factory."""

    project_root: Path
    lockfile_path: Path
    verbose: bool = False
    quiet: bool | None = None
    save: bool = False


@runtime_checkable
class Installer(Protocol):
    """Operations the engine needs from the package-installation subsystem."""

    def install(self, uri: str, tag: str) -> None:
        """Install ``uri`` at repository tag ``tag``."""

    def install_from_local_path(self, path: str, uri: str) -> None:
        """Register the library found at ``path`` under ``uri``."""

    def is_installed(self, uri: str, tag: str | None) -> bool:
        """Whether ``uri`` at ``tag`` is already installed."""

    def install_all(self) -> None:
        """Install every library the project requires that is not present."""

    def delete_lockfile(self) -> None:
        """Remove the lockfile this installer maintains."""

    def get_lockfile_data(self) -> LockfileRecord:
        """Return the lockfile content reflecting the installer's current state."""

    def get_lockfile_path(self) -> Path:
        """Return the path of the lockfile this installer maintains."""


InstallerFactory = Callable[[InstallerOptions], Installer]
