"""Base classes for qxc commands and for the plugin capability interfaces."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from qxc_core.errors import ConfigError
from qxc_core.registry.entry import CommandSpec

if TYPE_CHECKING:
    from qxc_core.app import BootstrapContext


class QxAbstractCommand(ABC):
    """Base interface for qxc commands."""

    def __init__(self, args: Namespace, context: "BootstrapContext") -> None:
        self.args = args
        self.context = context

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        """Let the command add its own CLI options."""

    @classmethod
    def command_spec(cls) -> CommandSpec | None:
        """Return the declarative spec attached by ``@qxcommand``, if any."""

        metadata = getattr(cls, "__qxc_command__", None)
        if metadata is None:
            return None
        return CommandSpec(
            name=metadata["name"],
            configure=cls.configure,
            description=metadata["description"],
        )

    @property
    def name(self) -> str:
        return str(getattr(self.args, "command", "") or type(self).__name__)

    @abstractmethod
    def process(self) -> Any:
        """Run the command against the effective configuration."""


class ConfigurationProvider:
    """Owns the configuration descriptor and the library extensions of a project.

    A project's ``compile.py`` may subclass it (decorated with
    ``@configuration_provider``) to adjust the configuration once it is read.
    """

    def __init__(self, *, root_dir: Path | str = ".", config_filename: Path | str | None = None) -> None:
        self.root_dir = Path(root_dir)
        self.config_filename = Path(config_filename) if config_filename else None
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")
        self._configuration: dict[str, Any] = {}
        self._library_extensions: list[LibraryExtension] = []
        self._command: QxAbstractCommand | None = None

    def load(self) -> dict[str, Any]:
        """Read the JSON configuration descriptor; a missing file yields ``{}``."""

        path = self.config_filename
        if path is None or not path.is_file():
            self._configuration = {}
            return self._configuration
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"unable to read configuration {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigError(f"configuration {path} must contain a JSON object")
        self._configuration = payload
        return self._configuration

    def get_configuration(self) -> dict[str, Any]:
        return self._configuration

    def add_library_extension(self, extension: "LibraryExtension") -> None:
        self._library_extensions.append(extension)

    @property
    def library_extensions(self) -> tuple["LibraryExtension", ...]:
        return tuple(self._library_extensions)

    def set_command(self, command: QxAbstractCommand) -> None:
        self._command = command

    @property
    def command(self) -> QxAbstractCommand | None:
        return self._command

    def after_libraries_loaded(self) -> None:
        """Called once, after every library extension's ``load()`` has run."""


class LibraryExtension:
    """Per-library hook object; a library's ``compile.py`` may subclass it."""

    def __init__(self, *, root_dir: Path | str, provider: ConfigurationProvider) -> None:
        self.root_dir = Path(root_dir)
        self.provider = provider

    def initialize(self) -> None:
        """Called right after the library is registered with the provider."""

    def load(self) -> None:
        """Called once, after the command has been selected."""
