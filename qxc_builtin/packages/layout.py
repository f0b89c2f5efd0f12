"""Naming of library URIs and of their directories under ``qx_packages``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

__all__ = ["LibraryUri", "library_root", "package_dir", "parse_library_uri"]

_SAFE_SEGMENT = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class LibraryUri:
    """``owner/repo[/sub/path]``: a repository plus the library's place inside it."""

    owner: str
    repo: str
    subpath: str = ""

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_library_uri(uri: str) -> LibraryUri:
    parts = [part for part in uri.strip().strip("/").split("/") if part]
    if len(parts) < 2 or any(part in (".", "..") for part in parts):
        raise ValueError(f"library uri must look like owner/repo[/path]: {uri!r}")
    return LibraryUri(owner=parts[0], repo=parts[1], subpath="/".join(parts[2:]))


def package_dir(packages_root: Path, uri: LibraryUri, tag: str) -> Path:
    name = "_".join(_SAFE_SEGMENT.sub("-", part) for part in (uri.owner, uri.repo, tag))
    return packages_root / name


def library_root(package_path: Path, uri: LibraryUri) -> Path:
    if not uri.subpath:
        return package_path
    return package_path.joinpath(*PurePosixPath(uri.subpath).parts)
