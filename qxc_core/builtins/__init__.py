"""Registration of the built-in qxc commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from qxc_core.registry import CommandEntry, CommandRegistry, CommandSpec

from .commands import (
    AddCommand,
    CleanCommand,
    CompileCommand,
    ConfigCommand,
    CreateCommand,
    DeployCommand,
    LintCommand,
    PackageCommand,
    RunCommand,
    ServeCommand,
    TestCommand,
)

if TYPE_CHECKING:
    from qxc_core.app import BootstrapContext
    from qxc_core.dispatcher import CommandDispatcher

__all__ = ["BUILTIN_COMMANDS", "register_builtin_commands"]

# Order matters: it is the order of the help listing.
BUILTIN_COMMANDS: Sequence[tuple[str, type]] = (
    ("add", AddCommand),
    ("clean", CleanCommand),
    ("compile", CompileCommand),
    ("config", ConfigCommand),
    ("deploy", DeployCommand),
    ("package", PackageCommand),
    ("pkg", PackageCommand),
    ("create", CreateCommand),
    ("lint", LintCommand),
    ("run", RunCommand),
    ("test", TestCommand),
    ("serve", ServeCommand),
)


def _default_handler(command_cls: type, dispatcher: "CommandDispatcher", context: "BootstrapContext"):
    def handler(args):
        return dispatcher.process_command(command_cls(args, context))

    return handler


def register_builtin_commands(
    registry: CommandRegistry,
    dispatcher: "CommandDispatcher",
    context: "BootstrapContext",
) -> None:
    """Register the built-in command classes, in their fixed order."""

    for name, command_cls in BUILTIN_COMMANDS:
        spec = command_cls.command_spec()
        if spec is None:
            continue
        spec = CommandSpec(
            name=name,
            configure=spec.configure,
            description=spec.description,
            handler=spec.handler or _default_handler(command_cls, dispatcher, context),
        )
        registry.register(
            CommandEntry(name=name, target=command_cls, spec=spec, origin="builtin")
        )
