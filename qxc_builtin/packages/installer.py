"""Lockfile-backed installer for libraries published as tagged repository archives."""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from qxc_core.installer import InstallerOptions
from qxc_core.libraries import MANIFEST_FILE
from qxc_core.lockfile import (
    LOCKFILE_SCHEMA_VERSION,
    LockedLibrary,
    LockfileRecord,
    load_lockfile,
    write_lockfile,
)

from .client import ArchiveClient
from .errors import PackageInstallError
from .layout import LibraryUri, library_root, package_dir, parse_library_uri

if TYPE_CHECKING:
    from qxc_core.settings import SettingsResolver

logger = logging.getLogger(__name__)

__all__ = ["PackageInstaller", "default_installer_factory"]


class PackageInstaller:
    """Installs libraries into ``<project>/qx_packages`` and records them in the lockfile."""

    def __init__(
        self,
        options: InstallerOptions,
        *,
        packages_dir: Path | None = None,
        client: ArchiveClient | None = None,
        cache_dir: Path | None = None,
    ) -> None:
        self.options = options
        self.project_root = Path(options.project_root)
        self.packages_dir = packages_dir or self.project_root / "qx_packages"
        self.client = client or ArchiveClient("https://github.com")
        self.cache_dir = cache_dir
        self._record = self._read_record()

    def _read_record(self) -> LockfileRecord:
        try:
            record = load_lockfile(self.options.lockfile_path)
        except (OSError, ValueError) as exc:
            logger.warning("starting from an empty lockfile: %s", exc)
            return LockfileRecord.fresh()
        return record or LockfileRecord.fresh()

    # ------------------------- installer protocol -------------------------

    def install(self, uri: str, tag: str) -> None:
        parsed = parse_library_uri(uri)
        target = package_dir(self.packages_dir, parsed, tag)
        if not target.exists():
            self._fetch(parsed, tag, target)
        root = library_root(target, parsed)
        if not (root / MANIFEST_FILE).is_file():
            raise PackageInstallError(f"{uri}@{tag} does not contain {MANIFEST_FILE} at {root}")
        if not self.options.quiet:
            logger.info(">>> Installed %s@%s", uri, tag)
        self._remember(LockedLibrary(uri=uri, path=self._relative(root), repo_tag=tag))

    def install_from_local_path(self, path: str, uri: str) -> None:
        root = Path(path)
        if not root.is_absolute():
            root = self.project_root / root
        if not (root / MANIFEST_FILE).is_file():
            raise PackageInstallError(f"{path} is not a library: {MANIFEST_FILE} is missing")
        if not self.options.quiet:
            logger.info(">>> Registered %s from %s", uri, path)
        self._remember(LockedLibrary(uri=uri, path=self._relative(root)))

    def is_installed(self, uri: str, tag: str | None) -> bool:
        library = self._record.find(uri)
        if library is None or library.repo_tag != tag or not library.path:
            return False
        return (self._absolute(library.path) / MANIFEST_FILE).is_file()

    def install_all(self) -> None:
        for library in self._record.libraries:
            if library.path and (self._absolute(library.path) / MANIFEST_FILE).is_file():
                logger.debug("%s is present", library.label)
                continue
            if library.repo_tag:
                self.install(library.uri, library.repo_tag)
            else:
                logger.warning("cannot install %s: it has no repository tag", library.uri)

    def delete_lockfile(self) -> None:
        self.options.lockfile_path.unlink(missing_ok=True)
        self._record = LockfileRecord.fresh()

    def get_lockfile_data(self) -> LockfileRecord:
        return LockfileRecord(version=LOCKFILE_SCHEMA_VERSION, libraries=self._record.libraries)

    def get_lockfile_path(self) -> Path:
        return self.options.lockfile_path

    # ------------------------- helpers -------------------------

    def _remember(self, library: LockedLibrary) -> None:
        self._record = self._record.with_library(library)
        if self.options.save:
            write_lockfile(self.options.lockfile_path, self.get_lockfile_data())

    def _fetch(self, uri: LibraryUri, tag: str, target: Path) -> None:
        archive_dir = self.cache_dir or self.packages_dir / ".archives"
        archive = archive_dir / f"{target.name}.tar.gz"
        if not archive.exists():
            self.client.download(uri, tag, archive)
        self.packages_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(dir=self.packages_dir, prefix=".staging-") as staging:
            staging_dir = Path(staging)
            try:
                with tarfile.open(archive, "r:gz") as tf:
                    _safe_tar_extract(tf, staging_dir)
            except tarfile.TarError as exc:
                raise PackageInstallError(f"{archive} is not a valid archive: {exc}") from exc
            content = _content_root(staging_dir)
            if content == staging_dir:
                target.mkdir(parents=True)
                for entry in staging_dir.iterdir():
                    shutil.move(str(entry), str(target / entry.name))
            else:
                shutil.move(str(content), str(target))

    def _relative(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.project_root.resolve()).as_posix()
        except ValueError:
            return str(path)

    def _absolute(self, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.project_root / candidate


def _safe_tar_extract(tf: tarfile.TarFile, dest: Path) -> None:
    dest = dest.resolve()
    for m in tf.getmembers():
        target = (dest / m.name).resolve()
        if not str(target).startswith(str(dest) + os.sep) and target != dest:
            raise PackageInstallError(f"unsafe tar member path: {m.name}")
        if m.issym() or m.islnk():
            raise PackageInstallError(f"links are not allowed in library archives: {m.name}")
    tf.extractall(dest)


def _content_root(staging: Path) -> Path:
    # Repository archives wrap everything in a single "<repo>-<tag>" directory.
    entries = list(staging.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return staging


def default_installer_factory(settings: "SettingsResolver") -> Callable[[InstallerOptions], PackageInstaller]:
    """Bind the tool settings into an installer factory."""

    def factory(options: InstallerOptions) -> PackageInstaller:
        repository_url = settings.resolve("repository_url") or "https://github.com"
        return PackageInstaller(
            options,
            packages_dir=settings.resolve_path("packages_dir"),
            client=ArchiveClient(repository_url),
            cache_dir=settings.user_dirs.archive_cache(),
        )

    return factory
