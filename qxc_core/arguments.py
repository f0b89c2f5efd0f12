"""Two-pass command line parsing: a permissive bootstrap pass and the full grammar."""

from __future__ import annotations

import argparse
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterable, Mapping, NoReturn, Sequence

from .errors import UsageError, ValidationError

if TYPE_CHECKING:
    from .registry import CommandRegistry

PROG = "qxc"
BOOTSTRAP = "bootstrap"
FULL = "full"

SET_ENV_PATTERN = re.compile(r"^[^=\s]+=.+$")
_KEY_VALUE_PATTERN = re.compile(r"^([^=\s]+)(?:=(.*))?$", re.DOTALL)
_VALUE_OPTIONS = frozenset({"--set", "--set-env"})
_LIST_OPTIONS = ("set", "set_env")

BOOTSTRAP_DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {"force": False, "config_file": None, "verbose": False, "quiet": None}
)


class QxcArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises ``UsageError`` instead of exiting on bad input."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(f"{self.prog}: {message}")


@dataclass(frozen=True)
class ParsedArgs:
    """Immutable snapshot of one parsing pass."""

    values: Mapping[str, Any]
    raw: tuple[str, ...]
    phase: str
    command: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name.replace("-", "_"), default)

    def __getitem__(self, name: str) -> Any:
        return self.values[name.replace("-", "_")]

    @property
    def force(self) -> bool:
        return bool(self.get("force", False))

    @property
    def verbose(self) -> bool:
        return bool(self.get("verbose", False))

    @property
    def quiet(self) -> bool | None:
        return self.get("quiet")

    @property
    def config_file(self) -> str | None:
        return self.get("config_file")

    def is_explicit(self, name: str) -> bool:
        return is_explicit_arg(name, self.raw)

    def namespace(self) -> argparse.Namespace:
        """A fresh ``argparse.Namespace`` copy, handed to command objects."""

        return argparse.Namespace(**dict(self.values))


def is_explicit_arg(name: str, raw_args: Iterable[str]) -> bool:
    """True when ``-name`` or ``--name`` appears verbatim among ``raw_args``."""

    tokens = set(raw_args)
    return f"-{name}" in tokens or f"--{name}" in tokens


def _add_global_options(parser: argparse.ArgumentParser, *, suppress: bool) -> None:
    """Declare the options understood before configuration is known.

    Sub-parsers get ``suppress=True`` so that a default there never overwrites a
    value parsed by the main parser.
    """

    def default(value: Any) -> Any:
        return argparse.SUPPRESS if suppress else value

    parser.add_argument(
        "--force", "-F",
        action="store_true",
        default=default(False),
        help="Override warnings",
    )
    parser.add_argument(
        "--config-file", "-c",
        dest="config_file",
        default=default(None),
        help="Specify the config file to use",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=default(False),
        help="enables additional progress output to console",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        default=default(None),
        help="suppresses normal progress output to console",
    )


def _add_environment_options(parser: argparse.ArgumentParser, *, suppress: bool) -> None:
    """Declare the repeatable ``--set`` and ``--set-env`` lists.

    Sub-parser copies collect into ``_<dest>_after``; ``parse_full`` joins both
    halves in command-line order.
    """

    default = argparse.SUPPRESS if suppress else None
    parser.add_argument(
        "--set",
        dest=_after("set") if suppress else "set",
        action="append",
        metavar="KEY=VALUE",
        default=default,
        help="sets an environment value for the compiler",
    )
    parser.add_argument(
        "--set-env",
        dest=_after("set_env") if suppress else "set_env",
        action="append",
        metavar="KEY=VALUE",
        default=default,
        help="sets an environment value for the application",
    )


def _after(dest: str) -> str:
    return f"_{dest}_after"


def build_bootstrap_parser() -> QxcArgumentParser:
    parser = QxcArgumentParser(prog=PROG, add_help=False, allow_abbrev=False)
    _add_global_options(parser, suppress=False)
    return parser


def parse_bootstrap(raw_args: Sequence[str]) -> ParsedArgs:
    """Parse only force/config-file/verbose/quiet, ignoring everything else."""

    raw = tuple(raw_args)
    parser = build_bootstrap_parser()
    namespace, remainder = parser.parse_known_args(list(raw))
    values = dict(BOOTSTRAP_DEFAULTS)
    values.update(vars(namespace))
    return ParsedArgs(
        values=values,
        raw=raw,
        phase=BOOTSTRAP,
        command=_first_positional(remainder),
    )


def build_full_parser(registry: "CommandRegistry") -> QxcArgumentParser:
    parser = QxcArgumentParser(
        prog=PROG,
        description="qxc command line interface",
        allow_abbrev=False,
    )
    _add_global_options(parser, suppress=False)
    _add_environment_options(parser, suppress=False)

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True
    for entry in registry.entries():
        subparser = subparsers.add_parser(
            entry.name,
            help=entry.spec.summary,
            description=entry.spec.description,
            allow_abbrev=False,
        )
        _add_global_options(subparser, suppress=True)
        _add_environment_options(subparser, suppress=True)
        entry.spec.configure(subparser)
        subparser.set_defaults(_handler=entry.name)
    return parser


def parse_full(raw_args: Sequence[str], registry: "CommandRegistry") -> ParsedArgs:
    """Parse against every registered command; exactly one command is required."""

    raw = tuple(raw_args)
    parser = build_full_parser(registry)
    namespace = parser.parse_args(list(raw))
    values = vars(namespace)
    values.pop("_handler", None)
    for dest in _LIST_OPTIONS:
        after = values.pop(_after(dest), None)
        if after:
            values[dest] = [*(values.get(dest) or []), *after]
    command = values.get("command")
    if not command:
        raise UsageError(f"{PROG}: a command is required")

    invalid = [item for item in values.get("set_env") or [] if not SET_ENV_PATTERN.match(item)]
    if invalid:
        raise ValidationError(invalid)

    return ParsedArgs(values=values, raw=raw, phase=FULL, command=command)


def parse_key_values(
    entries: Iterable[str] | None, *, option: str = "--set"
) -> dict[str, str | bool]:
    """Split ``key=value`` entries; a bare ``key`` maps to ``True``."""

    result: dict[str, str | bool] = {}
    for entry in entries or ():
        match = _KEY_VALUE_PATTERN.match(entry)
        if match is None:
            raise ValidationError([entry], option=option)
        key, value = match.group(1), match.group(2)
        result[key] = True if value is None else value
    return result


def _first_positional(tokens: Sequence[str]) -> str | None:
    skip_next = False
    for token in tokens:
        if skip_next:
            skip_next = False
            continue
        if token == "--":
            continue
        if token in _VALUE_OPTIONS:
            skip_next = True
            continue
        if not token.startswith("-"):
            return token
    return None
