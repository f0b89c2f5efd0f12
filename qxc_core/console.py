"""Console logging setup shared by the engine and the built-in commands."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAMES = ("qxc_core", "qxc_builtin", "qxc_cli")
_HANDLER_NAME = "qxc-console"


class _ConsoleHandler(logging.StreamHandler):
    """Writes to the current ``sys.stderr`` at emit time unless a stream was given."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__(stream)
        self.fixed_stream = stream is not None

    def emit(self, record: logging.LogRecord) -> None:
        if not self.fixed_stream:
            self.stream = sys.stderr
        super().emit(record)


def _console_handler(logger: logging.Logger) -> logging.Handler | None:
    for handler in logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return handler
    return None


def _level_for(verbose: bool, quiet: bool | None) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_console(
    *,
    verbose: bool = False,
    quiet: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """Attach the console handler to the qxc logger trees and set their level.

    Calling it again only adjusts the level (and the stream when one is given).
    """

    level = _level_for(verbose, quiet)
    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        handler = _console_handler(logger)
        if handler is None:
            handler = _ConsoleHandler(stream)
            handler.set_name(_HANDLER_NAME)
            handler.setFormatter(logging.Formatter("%(message)s"))
            logger.addHandler(handler)
        elif stream is not None and isinstance(handler, _ConsoleHandler):
            handler.setStream(stream)
            handler.fixed_stream = True
        logger.setLevel(level)


def set_verbose(verbose: bool) -> None:
    """Switch the qxc loggers to DEBUG when verbose; otherwise drop DEBUG back to INFO."""

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        if verbose:
            logger.setLevel(logging.DEBUG)
        elif logger.level <= logging.DEBUG:
            logger.setLevel(logging.INFO)
