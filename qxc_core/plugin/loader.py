"""Execute plugin files and pick up the capability classes they declare."""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
import traceback
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Iterator

from qxc_core.api.decorators import CONFIGURATION_PROVIDER, LIBRARY_EXTENSION

from .errors import PluginLoadError

logger = logging.getLogger(__name__)

_ENGINE_ROOT = str(Path(__file__).resolve().parents[1])
_MODULE_PREFIX = "qxc_plugin_"


@dataclass(frozen=True)
class PluginModule:
    """Handle on a loaded plugin file and the capability classes it exposes."""

    path: Path
    module: ModuleType
    configuration_provider: type | None = None
    library_extension: type | None = None


class PluginLoader:
    """Loads plugin files, at most once per resolved path."""

    def __init__(self) -> None:
        self._loaded: dict[Path, PluginModule] = {}

    def load(self, path: Path | str) -> PluginModule:
        resolved = Path(path).resolve()
        cached = self._loaded.get(resolved)
        if cached is not None:
            return cached

        module_name = _module_name(resolved)
        spec = importlib.util.spec_from_file_location(module_name, resolved)
        if spec is None or spec.loader is None:
            raise PluginLoadError(resolved, "not a loadable Python module")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            with _insert_sys_path(resolved.parent):
                spec.loader.exec_module(module)
            plugin = _inspect_module(resolved, module)
        except PluginLoadError:
            sys.modules.pop(module_name, None)
            raise
        except Exception as exc:
            sys.modules.pop(module_name, None)
            raise _reshape_failure(resolved, exc) from exc

        logger.debug("loaded plugin %s", resolved)
        self._loaded[resolved] = plugin
        return plugin


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    return f"{_MODULE_PREFIX}{digest}"


@contextmanager
def _insert_sys_path(directory: Path) -> Iterator[None]:
    entry = str(directory)
    already_present = entry in sys.path
    if not already_present:
        sys.path.insert(0, entry)
    try:
        yield
    finally:
        if not already_present and entry in sys.path:
            sys.path.remove(entry)


def _inspect_module(path: Path, module: ModuleType) -> PluginModule:
    found: dict[str, type] = {}
    for candidate in vars(module).values():
        if not isinstance(candidate, type) or candidate.__module__ != module.__name__:
            continue
        kind = vars(candidate).get("__qxc_extension__")
        if kind is None:
            continue
        if kind in found:
            raise PluginLoadError(
                path,
                f"declares more than one {kind}: {found[kind].__name__}, {candidate.__name__}",
            )
        found[kind] = candidate
    return PluginModule(
        path=path,
        module=module,
        configuration_provider=found.get(CONFIGURATION_PROVIDER),
        library_extension=found.get(LIBRARY_EXTENSION),
    )


def _is_engine_frame(filename: str) -> bool:
    return filename.startswith(_ENGINE_ROOT) or filename.startswith("<frozen importlib")


def _same_file(filename: str | None, path: Path) -> bool:
    if not filename:
        return False
    try:
        return Path(filename).resolve() == path
    except OSError:
        return False


def _reshape_failure(path: Path, exc: BaseException) -> PluginLoadError:
    """Turn a load failure into the plugin author's view of it.

    Engine frames are dropped; the line number comes from the syntax error when it
    points into the plugin file, else from the deepest frame inside the plugin file.
    """

    frames = [
        frame
        for frame in traceback.extract_tb(exc.__traceback__)
        if not _is_engine_frame(frame.filename)
    ]
    lineno: int | None = None
    if isinstance(exc, SyntaxError) and _same_file(exc.filename, path):
        lineno = exc.lineno
    else:
        for frame in reversed(frames):
            if _same_file(frame.filename, path):
                lineno = frame.lineno
                break

    lines = traceback.format_list(frames)
    lines.extend(traceback.format_exception_only(type(exc), exc))
    diagnostic = "".join(lines).rstrip()
    return PluginLoadError(path, diagnostic, lineno=lineno)
