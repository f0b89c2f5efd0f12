"""Check library manifests and batch-install whatever is missing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from .errors import UnresolvedLibraryError

if TYPE_CHECKING:
    from .api import LibraryExtension
    from .installer import Installer
    from .plugin import PluginModule

logger = logging.getLogger(__name__)

MANIFEST_FILE = "Manifest.json"
NO_LIBRARY_COMMANDS = frozenset({"clean"})


@dataclass
class LibraryEntry:
    """One configured library directory."""

    root_path: Path
    manifest_present: bool
    plugin_module: "PluginModule | None" = None
    extension: "LibraryExtension | None" = None


@dataclass(frozen=True)
class LibraryResolution:
    resolved: tuple[LibraryEntry, ...] = ()
    missing: tuple[str, ...] = ()
    installed: bool = False
    skipped: bool = False


def needs_libraries(command: str | None) -> bool:
    return command not in NO_LIBRARY_COMMANDS


def has_manifest(path: Path | str, base_dir: Path | None = None) -> bool:
    root = Path(path)
    if base_dir is not None and not root.is_absolute():
        root = base_dir / root
    return (root / MANIFEST_FILE).is_file()


@dataclass
class LibraryResolver:
    """Split library roots into resolved and missing, installing missing ones once."""

    installer_provider: Callable[[], "Installer"]
    base_dir: Path = field(default_factory=Path.cwd)

    def resolve(self, paths: Sequence[str], command: str | None) -> LibraryResolution:
        resolved, missing = self._check(paths)
        if not missing:
            return LibraryResolution(resolved=resolved)
        if not needs_libraries(command):
            logger.debug("command %s does not need libraries; skipping installation", command)
            return LibraryResolution(resolved=resolved, missing=missing, skipped=True)

        logger.info("One or more libraries not found - trying to install them from library repository...")
        installer = self.installer_provider()
        installer.install_all()

        resolved, missing = self._check(paths)
        if missing:
            raise UnresolvedLibraryError(missing)
        return LibraryResolution(resolved=resolved, installed=True)

    def _check(self, paths: Iterable[str]) -> tuple[tuple[LibraryEntry, ...], tuple[str, ...]]:
        resolved: list[LibraryEntry] = []
        missing: list[str] = []
        for raw in paths:
            root = self._root(raw)
            if (root / MANIFEST_FILE).is_file():
                resolved.append(LibraryEntry(root_path=root, manifest_present=True))
            else:
                missing.append(str(raw))
        return tuple(resolved), tuple(missing)

    def _root(self, raw: str) -> Path:
        path = Path(raw)
        return path if path.is_absolute() else self.base_dir / path
