"""Decorators that mark commands and plugin capability classes with metadata."""

from __future__ import annotations

from typing import Any, Callable, Type

from .abc import ConfigurationProvider, LibraryExtension, QxAbstractCommand

_Candidate = Type[Any]

CONFIGURATION_PROVIDER = "configuration-provider"
LIBRARY_EXTENSION = "library-extension"


def qxcommand(
    cls: _Candidate | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
) -> Callable[[_Candidate], _Candidate] | _Candidate:
    """Register ``cls`` as a command named ``name`` (defaults to the lowercased class name)."""

    def wrap(target: _Candidate) -> _Candidate:
        if not isinstance(target, type) or not issubclass(target, QxAbstractCommand):
            raise TypeError(f"{target!r} must subclass QxAbstractCommand to be registered as a command.")
        command_name = name or target.__name__.lower().removesuffix("command")
        if not command_name or ":" in command_name:
            raise ValueError(f"invalid command name {command_name!r}")
        setattr(
            target,
            "__qxc_command__",
            {
                "name": command_name,
                "description": (description or target.__doc__ or "").strip(),
            },
        )
        return target

    if cls is None:
        return wrap
    return wrap(cls)


def _capability_decorator(base: type, kind: str) -> Callable[[_Candidate], _Candidate]:
    def decorator(target: _Candidate) -> _Candidate:
        if not isinstance(target, type) or not issubclass(target, base):
            raise TypeError(f"{target!r} must subclass {base.__name__} to be registered as {kind}.")
        setattr(target, "__qxc_extension__", kind)
        return target

    return decorator


configuration_provider = _capability_decorator(ConfigurationProvider, CONFIGURATION_PROVIDER)
library_extension = _capability_decorator(LibraryExtension, LIBRARY_EXTENSION)
