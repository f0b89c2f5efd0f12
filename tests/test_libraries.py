"""Tests for manifest checks and the batched install fallback."""

from __future__ import annotations

from pathlib import Path

import pytest

from qxc_core.errors import UnresolvedLibraryError
from qxc_core.libraries import LibraryResolver, has_manifest, needs_libraries


def test_all_present_never_builds_an_installer(tmp_path, installer_provider, installer_factory, write_manifest):
    write_manifest(tmp_path / "a")
    write_manifest(tmp_path / "b")

    resolution = LibraryResolver(installer_provider, base_dir=tmp_path).resolve(["a", "b"], "compile")

    assert [entry.root_path for entry in resolution.resolved] == [tmp_path / "a", tmp_path / "b"]
    assert resolution.missing == ()
    assert resolution.installed is False
    assert installer_factory.created == []


def test_missing_library_installs_once_then_fails_naming_the_path(
    tmp_path, installer_provider, installer_factory, write_manifest
):
    lib_a = tmp_path / "a"
    lib_b = tmp_path / "b"
    write_manifest(lib_a)

    resolver = LibraryResolver(installer_provider, base_dir=tmp_path)
    with pytest.raises(UnresolvedLibraryError) as excinfo:
        resolver.resolve([str(lib_a), str(lib_b)], "compile")

    assert excinfo.value.paths == (str(lib_b),)
    assert str(lib_b) in str(excinfo.value)
    assert len(installer_factory.created) == 1
    assert installer_factory.created[0].call_names() == ["install_all"]


def test_missing_library_resolved_after_install(tmp_path, installer_provider, installer_factory, write_manifest):
    write_manifest(tmp_path / "a")
    installer_factory.kwargs["materialize"] = [tmp_path / "b", tmp_path / "c"]

    resolution = LibraryResolver(installer_provider, base_dir=tmp_path).resolve(["a", "b", "c"], "serve")

    assert resolution.installed is True
    assert resolution.missing == ()
    assert [entry.root_path.name for entry in resolution.resolved] == ["a", "b", "c"]
    assert all(entry.manifest_present for entry in resolution.resolved)
    assert installer_factory.created[0].call_names() == ["install_all"]


def test_clean_skips_installation(tmp_path, installer_provider, installer_factory):
    resolution = LibraryResolver(installer_provider, base_dir=tmp_path).resolve(["gone"], "clean")

    assert resolution.skipped is True
    assert resolution.missing == ("gone",)
    assert installer_factory.created == []


def test_needs_libraries():
    assert needs_libraries("compile") is True
    assert needs_libraries(None) is True
    assert needs_libraries("clean") is False


def test_has_manifest_relative_to_base(tmp_path: Path, write_manifest):
    write_manifest(tmp_path / "lib")

    assert has_manifest("lib", tmp_path)
    assert not has_manifest("other", tmp_path)
    assert has_manifest(tmp_path / "lib")
