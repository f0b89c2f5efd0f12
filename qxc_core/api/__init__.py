"""Convenience imports for the qxc extension API."""

from .abc import ConfigurationProvider, LibraryExtension, QxAbstractCommand
from .decorators import configuration_provider, library_extension, qxcommand

__all__ = [
    "QxAbstractCommand",
    "ConfigurationProvider",
    "LibraryExtension",
    "qxcommand",
    "configuration_provider",
    "library_extension",
]
