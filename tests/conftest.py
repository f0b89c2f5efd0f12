"""Shared fixtures: an in-memory installer and small project writers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from qxc_core.installer import InstallerOptions
from qxc_core.lockfile import LOCKFILE_SCHEMA_VERSION, LockedLibrary, LockfileRecord

MANIFEST = "Manifest.json"


def _write_manifest(root: Path) -> None:
    root.mkdir(parents=True, exist_ok=True)
    (root / MANIFEST).write_text("{}\n", encoding="utf-8")


class FakeInstaller:
    """Records every call; installs by creating manifests on disk."""

    def __init__(
        self,
        options: InstallerOptions,
        *,
        materialize: Iterable[Path] = (),
        installed: Iterable[tuple[str, str | None]] = (),
        fail_on: str | None = None,
    ) -> None:
        self.options = options
        self.materialize = [Path(path) for path in materialize]
        self.installed = set(installed)
        self.fail_on = fail_on
        self.calls: list[tuple[Any, ...]] = []
        self.libraries: list[LockedLibrary] = []

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def install(self, uri: str, tag: str) -> None:
        self.calls.append(("install", uri, tag))
        self._maybe_fail("install")
        path = f"qx_packages/{uri.replace('/', '_')}_{tag}"
        _write_manifest(self.options.project_root / path)
        self._remember(LockedLibrary(uri=uri, path=path, repo_tag=tag))

    def install_from_local_path(self, path: str, uri: str) -> None:
        self.calls.append(("install_from_local_path", path, uri))
        self._maybe_fail("install_from_local_path")
        self._remember(LockedLibrary(uri=uri, path=path))

    def is_installed(self, uri: str, tag: str | None) -> bool:
        self.calls.append(("is_installed", uri, tag))
        return (uri, tag) in self.installed

    def install_all(self) -> None:
        self.calls.append(("install_all",))
        self._maybe_fail("install_all")
        for root in self.materialize:
            _write_manifest(root)

    def delete_lockfile(self) -> None:
        self.calls.append(("delete_lockfile",))
        self._maybe_fail("delete_lockfile")
        self.options.lockfile_path.unlink(missing_ok=True)

    def get_lockfile_data(self) -> LockfileRecord:
        return LockfileRecord(version=LOCKFILE_SCHEMA_VERSION, libraries=tuple(self.libraries))

    def get_lockfile_path(self) -> Path:
        return self.options.lockfile_path

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _remember(self, library: LockedLibrary) -> None:
        self.libraries = [item for item in self.libraries if item.uri != library.uri]
        self.libraries.append(library)


class FakeInstallerFactory:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.created: list[FakeInstaller] = []

    def __call__(self, options: InstallerOptions) -> FakeInstaller:
        installer = FakeInstaller(options, **self.kwargs)
        self.created.append(installer)
        return installer


@pytest.fixture
def installer_factory() -> FakeInstallerFactory:
    return FakeInstallerFactory()


@pytest.fixture
def installer_provider(
    tmp_path: Path, installer_factory: FakeInstallerFactory
) -> Callable[[], FakeInstaller]:
    """A zero-argument provider, the shape the resolver and the migrator expect."""

    options = InstallerOptions(project_root=tmp_path, lockfile_path=tmp_path / "qx-lock.json")
    return lambda: installer_factory(options)


@pytest.fixture
def write_manifest() -> Callable[[Path], None]:
    return _write_manifest


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    def write(path: Path, payload: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        return path

    return write
