"""Layered settings for the qxc tool itself (file names, package locations)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import tomllib

from .paths import UserDirs

logger = logging.getLogger(__name__)

PROJECT_SETTINGS_FILE = "qxc.toml"

_DEFAULTS: dict[str, str] = {
    "config_file": "compile.json",
    "plugin_file": "compile.py",
    "lockfile": "qx-lock.json",
    "packages_dir": "qx_packages",
    "repository_url": "https://github.com",
}
_ENV_KEY_MAP: dict[str, str] = {
    "config_file": "QXC_CONFIG_FILE",
    "plugin_file": "QXC_PLUGIN_FILE",
    "lockfile": "QXC_LOCKFILE",
    "packages_dir": "QXC_PACKAGES_DIR",
    "repository_url": "QXC_REPOSITORY_URL",
}


def _load_settings_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring unreadable settings file %s: %s", path, exc)
        return {}
    section = data.get("qxc", data)
    if not isinstance(section, dict):
        return {}
    return {key: str(value) for key, value in section.items() if not isinstance(value, dict)}


@dataclass
class SettingsResolver:
    """Resolve tool settings honoring CLI, env, project, user and default layers."""

    project_root: Path | None = None
    user_dirs: UserDirs | None = None
    cli_overrides: Mapping[str, str] | None = None
    env: Mapping[str, str] | None = None
    defaults: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        self.project_root = Path(self.project_root or Path.cwd())
        self.user_dirs = self.user_dirs or UserDirs()
        self.cli_overrides = dict(self.cli_overrides or {})
        self.env = self.env if self.env is not None else os.environ
        base_defaults = dict(_DEFAULTS)
        if self.defaults:
            base_defaults.update(self.defaults)
        self.defaults = base_defaults

    def resolve(self, key: str) -> str | None:
        """Return the value for `key` using CLI, env, project, user, defaults order."""
        if value := self.cli_overrides.get(key):
            return value
        if value := self._env_value(key):
            return value
        if value := self._project_layer().get(key):
            return value
        if value := self._user_layer().get(key):
            return value
        return self.defaults.get(key)

    def resolve_path(self, key: str) -> Path:
        """Resolve `key` and anchor relative values at the project root."""
        value = self.resolve(key)
        if value is None:
            raise KeyError(f"setting {key!r} has no value")
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.project_root / path

    def _env_value(self, key: str) -> str | None:
        alias = _ENV_KEY_MAP.get(key)
        if alias:
            return self.env.get(alias) or None
        return None

    def _project_layer(self) -> dict[str, str]:
        return _load_settings_file(self.project_root / PROJECT_SETTINGS_FILE)

    def _user_layer(self) -> dict[str, str]:
        return _load_settings_file(self.user_dirs.settings_file())
