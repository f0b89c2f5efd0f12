"""Built-in qxc commands.

The commands report the effective configuration they would hand to the
compiler pipeline; building, deploying and serving live outside the engine.
"""

from __future__ import annotations

import argparse
import json
import shutil
from argparse import ArgumentParser
from typing import Any

from qxc_core.api import QxAbstractCommand, qxcommand
from qxc_core.assembler import DEFAULT_LISTEN_PORT


class _ConfiguredCommand(QxAbstractCommand):
    """Commands that read the effective configuration from the bootstrap context."""

    @property
    def descriptor(self) -> dict[str, Any]:
        effective = self.context.effective
        return effective.descriptor if effective is not None else {}

    def _say(self, message: str) -> None:
        print(f"[qxc:{self.name}] {message}")

    def _report_target(self) -> None:
        effective = self.context.effective
        target_type = effective.target_type if effective is not None else "source"
        self._say(f"target={target_type}")
        libraries = self.descriptor.get("libraries") or []
        self._say(f"libraries={', '.join(libraries) if libraries else '(none)'}")


class _TargetCommand(_ConfiguredCommand):
    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("--target", "-t", help="Set the target type: source or build or class name")
        parser.add_argument("--output-path", "-o", dest="output_path", help="Base path for output")
        parser.add_argument(
            "--locale",
            action="append",
            help="Compile for a given locale (repeatable)",
        )
        parser.add_argument(
            "--write-all-translations",
            dest="write_all_translations",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="enables output of all translations, not just those that are explicitly referenced",
        )

    def process(self) -> int:
        self._report_target()
        output_path = getattr(self.args, "output_path", None)
        if output_path:
            self._say(f"output-path={output_path}")
        locales = self.descriptor.get("locales") or []
        if locales:
            self._say(f"locales={', '.join(locales)}")
        return 0


@qxcommand(name="add")
class AddCommand(_ConfiguredCommand):
    """Add a class, script or theme to the application."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("kind", choices=("class", "script", "theme"), help="What to add")
        parser.add_argument("item", help="Fully qualified name or path of the new item")

    def process(self) -> int:
        self._say(f"would add {self.args.kind} {self.args.item}")
        return 0


@qxcommand(name="clean")
class CleanCommand(_ConfiguredCommand):
    """Remove the generated output of every target."""

    def process(self) -> int:
        root = self.context.project_root.resolve()
        removed = 0
        for target in self.descriptor.get("targets") or []:
            output_path = target.get("outputPath") if isinstance(target, dict) else None
            if not output_path:
                continue
            location = (root / output_path).resolve()
            if location == root or not location.is_relative_to(root):
                self._say(f"refusing to delete {output_path} outside the project")
                continue
            if location.is_dir():
                shutil.rmtree(location)
                removed += 1
                self._say(f"deleted {output_path}")
        if not removed:
            self._say("nothing to clean")
        return 0


@qxcommand(name="compile")
class CompileCommand(_TargetCommand):
    """Compile the current application."""


@qxcommand(name="config")
class ConfigCommand(_ConfiguredCommand):
    """Print the effective configuration, or one key of it."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("key", nargs="?", help="Top-level configuration key to print")

    def process(self) -> int:
        key = getattr(self.args, "key", None)
        if key is None:
            print(json.dumps(self.descriptor, indent=2, sort_keys=True))
            return 0
        if key not in self.descriptor:
            self._say(f"{key} is not set")
            return 1
        print(json.dumps(self.descriptor[key], indent=2, sort_keys=True))
        return 0


@qxcommand(name="deploy")
class DeployCommand(_TargetCommand):
    """Deploy the current application."""


@qxcommand(name="package")
class PackageCommand(_ConfiguredCommand):
    """Show the libraries installed through the lockfile."""

    def process(self) -> int:
        packages = self.descriptor.get("packages") or {}
        if not packages:
            self._say("no packages installed")
            return 0
        for uri, path in sorted(packages.items()):
            self._say(f"{uri} -> {path}")
        return 0


@qxcommand(name="create")
class CreateCommand(_ConfiguredCommand):
    """Create a new application skeleton."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("app_name", metavar="name", help="Name of the application")
        parser.add_argument("--type", "-T", dest="app_type", default="desktop", help="Application type")

    def process(self) -> int:
        directory = self.context.project_root / self.args.app_name
        self._say(f"would create {self.args.app_type} application in {directory}")
        return 0


@qxcommand(name="lint")
class LintCommand(_ConfiguredCommand):
    """Check the application sources."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("--target", "-t", help="Target type whose sources are checked")
        parser.add_argument("--fix", action="store_true", help="Try to fix reported problems")

    def process(self) -> int:
        self._report_target()
        if getattr(self.args, "fix", False):
            self._say("fix requested")
        return 0


@qxcommand(name="run")
class RunCommand(_TargetCommand):
    """Compile and run the application."""


@qxcommand(name="test")
class TestCommand(_TargetCommand):
    """Compile and run the application's tests."""

    __test__ = False


@qxcommand(name="serve")
class ServeCommand(_TargetCommand):
    """Compile the application and serve it over HTTP."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        super().configure(parser)
        parser.add_argument(
            "--listen-port", "-p",
            dest="listen_port",
            type=int,
            default=DEFAULT_LISTEN_PORT,
            help="The port for the web server to listen on",
        )

    def process(self) -> int:
        super().process()
        effective = self.context.effective
        port = effective.listen_port if effective is not None else None
        self._say(f"listening on port {port or DEFAULT_LISTEN_PORT}")
        return 0
