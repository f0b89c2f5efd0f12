"""Bootstrap orchestrator: from raw arguments to a dispatch-ready command."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from .api import ConfigurationProvider, LibraryExtension, QxAbstractCommand
from .arguments import ParsedArgs, parse_bootstrap, parse_full
from .assembler import EffectiveConfiguration, apply_overrides, merge_libraries
from .builtins import register_builtin_commands
from .console import configure_console
from .dispatcher import CommandDispatcher
from .errors import UsageError
from .installer import Installer, InstallerFactory, InstallerOptions
from .libraries import LibraryEntry, LibraryResolver, needs_libraries
from .lockfile import LockfileRecord
from .migration import LockfileMigrator, MigrationOutcome
from .plugin import PluginLoader
from .registry import CommandRegistry
from .settings import SettingsResolver

DEFAULT_CONFIG_FILE = "compile.json"
PLUGIN_SUFFIX = ".py"


@dataclass
class BootstrapContext:
    """State shared by every bootstrap step of one process run."""

    project_root: Path
    raw_args: tuple[str, ...]
    settings: SettingsResolver
    installer_factory: InstallerFactory | None = None
    plugin_loader: PluginLoader = field(default_factory=PluginLoader)
    registry: CommandRegistry = field(default_factory=CommandRegistry)
    bootstrap_args: ParsedArgs | None = None
    full_args: ParsedArgs | None = None
    config_path: Path | None = None
    plugin_path: Path | None = None
    lockfile_path: Path | None = None
    provider: ConfigurationProvider | None = None
    migration: MigrationOutcome | None = None
    lockfile: LockfileRecord | None = None
    libraries: list[LibraryEntry] = field(default_factory=list)
    effective: EffectiveConfiguration | None = None
    command: QxAbstractCommand | None = None
    libraries_notified: bool = False
    _installer: Installer | None = field(default=None, repr=False)

    def installer(self) -> Installer:
        """Build the installer on first use; later calls reuse it."""

        if self._installer is None:
            self._installer = self._make_installer()
        return self._installer

    def _make_installer(self) -> Installer:
        factory = self.installer_factory
        if factory is None:
            from qxc_builtin.packages import default_installer_factory

            factory = default_installer_factory(self.settings)
        args = self.bootstrap_args
        options = InstallerOptions(
            project_root=self.project_root,
            lockfile_path=self.lockfile_path or self.project_root / "qx-lock.json",
            verbose=args.verbose if args is not None else False,
            quiet=args.quiet if args is not None else None,
            save=True,
        )
        return factory(options)


@dataclass(frozen=True)
class BootstrapResult:
    command: str
    effective: EffectiveConfiguration
    migration: MigrationOutcome
    libraries: tuple[LibraryEntry, ...]
    bootstrap_args: ParsedArgs
    full_args: ParsedArgs


class QxcApp:
    """Runs the bootstrap steps in order and dispatches the selected command."""

    def __init__(
        self,
        raw_args: Sequence[str],
        *,
        project_root: Path | str | None = None,
        installer_factory: InstallerFactory | None = None,
        settings: SettingsResolver | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        root = Path(project_root) if project_root is not None else Path.cwd()
        self.logger = logger or logging.getLogger("qxc_core.app")
        self.context = BootstrapContext(
            project_root=root,
            raw_args=tuple(raw_args),
            settings=settings or SettingsResolver(project_root=root),
            installer_factory=installer_factory,
        )
        self.dispatcher = CommandDispatcher(self.context)
        self._result: BootstrapResult | None = None

    @property
    def registry(self) -> CommandRegistry:
        return self.context.registry

    def bootstrap(self) -> BootstrapResult:
        if self._result is not None:
            return self._result
        ctx = self.context

        ctx.bootstrap_args = parse_bootstrap(ctx.raw_args)
        configure_console(verbose=ctx.bootstrap_args.verbose, quiet=ctx.bootstrap_args.quiet)

        self._locate_config()
        config = self._load_configuration()

        migrator = LockfileMigrator(ctx.lockfile_path, ctx.installer, base_dir=ctx.project_root)
        ctx.migration = migrator.run(
            force=ctx.bootstrap_args.force,
            verbose=ctx.bootstrap_args.verbose,
            quiet=ctx.bootstrap_args.quiet,
        )
        ctx.lockfile = ctx.migration.unwrap()

        merge_libraries(config, ctx.lockfile, ctx.project_root)

        command = ctx.bootstrap_args.command
        if needs_libraries(command):
            resolver = LibraryResolver(ctx.installer, base_dir=ctx.project_root)
            resolution = resolver.resolve(config.get("libraries") or [], command)
            ctx.libraries = list(resolution.resolved)
            self._load_library_plugins()
        else:
            self.logger.debug("command %s does not need libraries", command)

        register_builtin_commands(ctx.registry, self.dispatcher, ctx)
        ctx.full_args = parse_full(ctx.raw_args, ctx.registry)
        _check_stable(ctx.bootstrap_args, ctx.full_args)

        ctx.effective = apply_overrides(config, ctx.full_args)

        self._result = BootstrapResult(
            command=ctx.full_args.command or "",
            effective=ctx.effective,
            migration=ctx.migration,
            libraries=tuple(ctx.libraries),
            bootstrap_args=ctx.bootstrap_args,
            full_args=ctx.full_args,
        )
        return self._result

    def run(self) -> Any:
        result = self.bootstrap()
        entry = self.context.registry.resolve(result.command)
        return entry.handler(result.full_args.namespace())

    def _locate_config(self) -> None:
        ctx = self.context
        settings = ctx.settings
        requested = ctx.bootstrap_args.config_file if ctx.bootstrap_args else None
        chosen = requested or settings.resolve("config_file") or DEFAULT_CONFIG_FILE

        config_path = self._anchor(DEFAULT_CONFIG_FILE)
        plugin_path = settings.resolve_path("plugin_file")
        if chosen.endswith(PLUGIN_SUFFIX):
            plugin_path = chosen_path = self._anchor(chosen)
        else:
            config_path = chosen_path = self._anchor(chosen)

        ctx.config_path = config_path
        ctx.plugin_path = plugin_path
        lockfile = Path(settings.resolve("lockfile") or "qx-lock.json").expanduser()
        ctx.lockfile_path = lockfile if lockfile.is_absolute() else chosen_path.parent / lockfile
        self.logger.debug(
            "config=%s plugin=%s lockfile=%s", ctx.config_path, ctx.plugin_path, ctx.lockfile_path
        )

    def _anchor(self, value: str) -> Path:
        path = Path(value).expanduser()
        return path if path.is_absolute() else self.context.project_root / path

    def _load_configuration(self) -> dict[str, Any]:
        ctx = self.context
        provider_cls: type[ConfigurationProvider] = ConfigurationProvider
        if ctx.plugin_path is not None and ctx.plugin_path.is_file():
            plugin = ctx.plugin_loader.load(ctx.plugin_path)
            if plugin.configuration_provider is not None:
                provider_cls = plugin.configuration_provider
        ctx.provider = provider_cls(root_dir=ctx.project_root, config_filename=ctx.config_path)
        ctx.provider.load()
        return ctx.provider.get_configuration()

    def _load_library_plugins(self) -> None:
        ctx = self.context
        plugin_name = Path(ctx.settings.resolve("plugin_file") or "compile.py").name
        for entry in ctx.libraries:
            extension_cls: type[LibraryExtension] = LibraryExtension
            plugin_path = entry.root_path / plugin_name
            if plugin_path.is_file():
                entry.plugin_module = ctx.plugin_loader.load(plugin_path)
                if entry.plugin_module.library_extension is not None:
                    extension_cls = entry.plugin_module.library_extension
            extension = extension_cls(root_dir=entry.root_path, provider=ctx.provider)
            entry.extension = extension
            ctx.provider.add_library_extension(extension)
            extension.initialize()


def _check_stable(bootstrap_args: ParsedArgs, full_args: ParsedArgs) -> None:
    for name in ("force", "verbose", "quiet"):
        if getattr(bootstrap_args, name) != getattr(full_args, name):
            raise UsageError(f"--{name} was parsed inconsistently; place it before the command")
