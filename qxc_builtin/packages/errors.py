"""Errors raised by the built-in package installer."""

from __future__ import annotations

from qxc_core.errors import QxcError


class PackageInstallError(QxcError):
    """Raised when a library cannot be installed or registered."""


class ArchiveDownloadError(PackageInstallError):
    """Raised when a release archive cannot be fetched."""
