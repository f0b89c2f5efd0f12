"""Per-user locations of the qxc settings file and the downloaded-archive cache."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir

APP_NAME = "qxc"
USER_SETTINGS_FILE = "settings.toml"
ARCHIVE_CACHE_DIR = "archives"


@dataclass(frozen=True)
class UserDirs:
    """Where qxc keeps state outside any project.

    Overrides replace the platformdirs locations entirely; tests use them to
    keep the real user directories untouched.
    """

    config_dir_override: Path | None = None
    cache_dir_override: Path | None = None

    def config_dir(self) -> Path:
        if self.config_dir_override:
            return Path(self.config_dir_override)
        return Path(user_config_dir(APP_NAME, appauthor=False))

    def cache_dir(self) -> Path:
        if self.cache_dir_override:
            return Path(self.cache_dir_override)
        return Path(user_cache_dir(APP_NAME, appauthor=False))

    def settings_file(self) -> Path:
        return self.config_dir() / USER_SETTINGS_FILE

    def archive_cache(self) -> Path:
        """Tarballs fetched by the package installer, shared across projects."""

        return self.cache_dir() / ARCHIVE_CACHE_DIR
