"""Tests for the lockfile record and its IO."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from qxc_core.lockfile import (
    FALLBACK_VERSION,
    LockedLibrary,
    LockfileRecord,
    coerce_version,
    load_lockfile,
    major_version,
    write_lockfile,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2.0.0", "2.0.0"),
        ("v2", "2.0.0"),
        ("1.3.7-beta.2", "1.3.7"),
        ("schema 3.1", "3.1.0"),
        ("latest", None),
        (None, None),
        (2, "2.0.0"),
    ],
)
def test_coerce_version(raw, expected):
    assert coerce_version(raw) == expected


def test_major_version_falls_back_for_missing_values():
    assert major_version(None) == 1
    assert major_version("garbage") == 1
    assert major_version("4.2.0") == 4


def test_missing_version_uses_fallback():
    record = LockfileRecord.from_payload({"libraries": []})

    assert record.version is None
    assert record.effective_version == FALLBACK_VERSION


def test_load_missing_lockfile_returns_none(tmp_path: Path):
    assert load_lockfile(tmp_path / "qx-lock.json") is None


def test_load_rejects_invalid_json(tmp_path: Path):
    path = tmp_path / "qx-lock.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValueError):
        load_lockfile(path)


def test_load_rejects_entries_without_uri(tmp_path: Path):
    path = tmp_path / "qx-lock.json"
    path.write_text(json.dumps({"version": "2.0.0", "libraries": [{"path": "x"}]}), encoding="utf-8")

    with pytest.raises(ValueError):
        load_lockfile(path)


def test_write_keeps_unknown_keys_and_leaves_no_temp_files(tmp_path: Path):
    path = tmp_path / "qx-lock.json"
    payload = {
        "version": "2.0.0",
        "libraries": [
            {"uri": "acme/widgets", "path": "qx_packages/acme_widgets_v1", "repo_tag": "v1", "library_name": "widgets"},
            {"uri": "acme/local", "path": "../local"},
        ],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")

    record = load_lockfile(path)
    write_lockfile(path, record)

    assert json.loads(path.read_text(encoding="utf-8")) == payload
    assert sorted(p.name for p in tmp_path.iterdir()) == ["qx-lock.json"]


def test_with_library_replaces_same_uri():
    record = LockfileRecord.fresh().with_library(LockedLibrary(uri="a/b", path="one"))
    record = record.with_library(LockedLibrary(uri="a/b", path="two", repo_tag="v2"))

    assert record.libraries == (LockedLibrary(uri="a/b", path="two", repo_tag="v2"),)
    assert record.find("a/b").label == "a/b@v2"
    assert record.find("c/d") is None
