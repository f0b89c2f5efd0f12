"""Merge the config descriptor, the lockfile and the parsed arguments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .arguments import ParsedArgs, parse_key_values
from .errors import ConfigError
from .libraries import has_manifest
from .lockfile import LockfileRecord

logger = logging.getLogger(__name__)

DEFAULT_TARGET_TYPE = "source"
DEFAULT_LISTEN_PORT = 8080


class StyleCompiler(Enum):
    LATEST = "latest"
    LEGACY = "legacy"


@dataclass(frozen=True)
class EffectiveConfiguration:
    """The descriptor after overrides, plus the values commands ask for most."""

    descriptor: dict[str, Any]
    target_type: str
    target: dict[str, Any] | None
    style_compiler: StyleCompiler

    @property
    def libraries(self) -> list[str]:
        return list(self.descriptor.get("libraries") or [])

    @property
    def listen_port(self) -> int | None:
        serve = self.descriptor.get("serve") or {}
        return serve.get("listenPort")


def merge_libraries(config: dict[str, Any], record: LockfileRecord, project_root: Path) -> dict[str, Any]:
    """Fold the lockfile's library paths into ``config["libraries"]``.

    A project that is itself a library (``Manifest.json`` at its root) and
    declares no libraries gets ``["."]``.
    """

    if config.get("libraries") is None:
        config["libraries"] = ["."] if has_manifest(project_root) else []

    libraries: list[str] = config["libraries"]
    for library in record.libraries:
        if library.path and library.path not in libraries:
            libraries.append(library.path)

    if record.libraries:
        config["packages"] = {
            library.uri: library.path for library in record.libraries
        }
    return config


def apply_overrides(config: dict[str, Any], args: ParsedArgs) -> EffectiveConfiguration:
    target_type = args.get("target") or config.get("defaultTarget") or DEFAULT_TARGET_TYPE
    config["targetType"] = target_type

    target = _select_target(config, target_type)
    set_env = parse_key_values(args.get("set_env"), option="--set-env")
    if target is not None:
        environment = target.setdefault("environment", {})
        environment.update(set_env)
    elif set_env:
        logger.warning("no targets are declared; ignoring --set-env %s", ", ".join(set_env))

    locales = args.get("locale")
    if locales:
        config["locales"] = list(locales)
    elif config.get("locales") is None:
        config["locales"] = []

    write_all = args.get("write_all_translations")
    if isinstance(write_all, bool):
        config["writeAllTranslations"] = write_all

    environment = config.get("environment")
    if environment is None:
        environment = config["environment"] = {}
    environment.update(parse_key_values(args.get("set"), option="--set"))

    _apply_listen_port(config, args)

    sass = config.get("sass") or {}
    style_compiler = StyleCompiler.LATEST if sass.get("compiler") == "latest" else StyleCompiler.LEGACY

    return EffectiveConfiguration(
        descriptor=config,
        target_type=target_type,
        target=target,
        style_compiler=style_compiler,
    )


def _select_target(config: dict[str, Any], target_type: str) -> dict[str, Any] | None:
    targets = config.get("targets")
    if not targets:
        return None
    for target in targets:
        if isinstance(target, dict) and target.get("type") == target_type:
            return target
    raise ConfigError(f"Cannot find target '{target_type}' in the configuration")


def _apply_listen_port(config: dict[str, Any], args: ParsedArgs) -> None:
    serve = config.get("serve")
    configured = serve.get("listenPort") if isinstance(serve, dict) else None
    cli_value = args.get("listen_port")

    if args.is_explicit("listen-port") or args.is_explicit("p"):
        port = cli_value
    elif configured is not None:
        port = configured
    else:
        port = cli_value

    if port is None:
        return
    if not isinstance(serve, dict):
        serve = config["serve"] = {}
    serve["listenPort"] = int(port)
