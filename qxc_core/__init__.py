"""Configuration and dependency bootstrap engine of the qxc build tool."""

from .app import BootstrapContext, BootstrapResult, QxcApp
from .assembler import EffectiveConfiguration, StyleCompiler
from .errors import QxcError
from .installer import Installer, InstallerFactory, InstallerOptions
from .lockfile import LockedLibrary, LockfileRecord
from .migration import MigrationOutcome, MigrationState
from .paths import UserDirs
from .settings import SettingsResolver

__all__ = [
    "QxcApp",
    "BootstrapContext",
    "BootstrapResult",
    "EffectiveConfiguration",
    "StyleCompiler",
    "QxcError",
    "Installer",
    "InstallerFactory",
    "InstallerOptions",
    "LockedLibrary",
    "LockfileRecord",
    "MigrationOutcome",
    "MigrationState",
    "SettingsResolver",
    "UserDirs",
]
