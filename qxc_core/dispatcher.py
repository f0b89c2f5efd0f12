"""Run a selected command once its libraries have been notified."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from . import console
from .errors import CommandError

if TYPE_CHECKING:
    from .api import QxAbstractCommand
    from .app import BootstrapContext

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Sets up verbosity, provider state and library hooks around ``process()``."""

    def __init__(
        self,
        context: "BootstrapContext",
        *,
        set_verbose: Callable[[bool], None] = console.set_verbose,
    ) -> None:
        self.context = context
        self._set_verbose = set_verbose

    def process_command(self, command: "QxAbstractCommand") -> Any:
        self._set_verbose(bool(getattr(command.args, "verbose", False)))
        self.context.command = command
        provider = self.context.provider
        if provider is not None:
            provider.set_command(command)
        try:
            self.notify_libraries()
            return command.process()
        except Exception as exc:
            logger.error("command %s failed", command.name, exc_info=True)
            raise CommandError(f"{command.name} failed: {exc}") from exc

    def notify_libraries(self) -> None:
        """Call every extension's ``load()`` and then the provider hook, once per context."""

        if self.context.libraries_notified:
            return
        self.context.libraries_notified = True
        provider = self.context.provider
        if provider is None:
            return
        for extension in provider.library_extensions:
            extension.load()
        provider.after_libraries_loaded()
