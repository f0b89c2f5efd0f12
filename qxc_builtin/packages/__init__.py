"""Package installer published by qxc_builtin."""

from __future__ import annotations

from .client import ArchiveClient
from .errors import ArchiveDownloadError, PackageInstallError
from .installer import PackageInstaller, default_installer_factory
from .layout import LibraryUri, parse_library_uri

__all__ = [
    "ArchiveClient",
    "ArchiveDownloadError",
    "LibraryUri",
    "PackageInstallError",
    "PackageInstaller",
    "default_installer_factory",
    "parse_library_uri",
]
