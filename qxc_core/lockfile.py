"""Lockfile record, version coercion and atomic IO."""

from __future__ import annotations

import json
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

LOCKFILE_NAME = "qx-lock.json"
LOCKFILE_SCHEMA_VERSION = "2.0.0"
FALLBACK_VERSION = "1.0.0"

_COERCE_RE = re.compile(r"(?<!\d)(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?!\d)")


def coerce_version(value: Any) -> str | None:
    """Return ``major.minor.patch`` for the first version-looking run in ``value``.

    Mirrors ``semver.coerce``: ``"v2"`` -> ``"2.0.0"``, ``"1.3.7-beta"`` -> ``"1.3.7"``,
    anything without digits -> ``None``.
    """

    if value is None:
        return None
    match = _COERCE_RE.search(str(value))
    if match is None:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return f"{major}.{minor}.{patch}"


def major_version(value: Any, *, fallback: str = FALLBACK_VERSION) -> int:
    coerced = coerce_version(value) or fallback
    return int(coerced.split(".", 1)[0])


@dataclass(frozen=True)
class LockedLibrary:
    """One library recorded in the lockfile."""

    uri: str
    path: str | None = None
    repo_tag: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "LockedLibrary":
        if not isinstance(payload, Mapping):
            raise ValueError("lockfile library entries must be objects")
        uri = str(payload.get("uri") or "").strip()
        if not uri:
            raise ValueError("lockfile library entry lacks 'uri'")
        extra = {
            key: value
            for key, value in payload.items()
            if key not in ("uri", "path", "repo_tag")
        }
        return cls(
            uri=uri,
            path=_string_or_none(payload.get("path")),
            repo_tag=_string_or_none(payload.get("repo_tag")),
            extra=extra,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"uri": self.uri}
        if self.path is not None:
            payload["path"] = self.path
        if self.repo_tag is not None:
            payload["repo_tag"] = self.repo_tag
        payload.update(self.extra)
        return payload

    @property
    def label(self) -> str:
        return f"{self.uri}@{self.repo_tag}" if self.repo_tag else self.uri


@dataclass(frozen=True)
class LockfileRecord:
    """Persisted list of installed libraries plus the schema version that wrote it."""

    version: str | None
    libraries: tuple[LockedLibrary, ...] = ()

    @classmethod
    def fresh(cls) -> "LockfileRecord":
        return cls(version=LOCKFILE_SCHEMA_VERSION, libraries=())

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "LockfileRecord":
        if not isinstance(payload, Mapping):
            raise ValueError("lockfile payload must be an object")
        raw_libraries = payload.get("libraries") or []
        if not isinstance(raw_libraries, list):
            raise ValueError("lockfile 'libraries' must be a list")
        version = payload.get("version")
        return cls(
            version=str(version) if version not in (None, "") else None,
            libraries=tuple(LockedLibrary.from_payload(item) for item in raw_libraries),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "version": self.version or LOCKFILE_SCHEMA_VERSION,
            "libraries": [library.to_payload() for library in self.libraries],
        }

    @property
    def effective_version(self) -> str:
        """The coerced version, ``1.0.0`` when absent or unparseable."""

        return coerce_version(self.version) or FALLBACK_VERSION

    def find(self, uri: str) -> LockedLibrary | None:
        for library in self.libraries:
            if library.uri == uri:
                return library
        return None

    def with_library(self, library: LockedLibrary) -> "LockfileRecord":
        """Return a copy where ``library`` replaces any entry sharing its uri."""

        kept = tuple(item for item in self.libraries if item.uri != library.uri)
        return LockfileRecord(version=self.version, libraries=kept + (library,))


def load_lockfile(path: Path) -> LockfileRecord | None:
    """Read the lockfile at ``path``; ``None`` when it does not exist.

    Raises ``ValueError`` for payloads that are not valid lockfiles.
    """

    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    return LockfileRecord.from_payload(payload)


def write_lockfile(path: Path, record: LockfileRecord) -> None:
    """Atomically replace ``path`` with ``record`` (temp file, fsync, rename)."""

    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(record.to_payload(), ensure_ascii=False, indent=2) + "\n"
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
            temp_path = Path(handle.name)
        os.replace(temp_path, path)
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
