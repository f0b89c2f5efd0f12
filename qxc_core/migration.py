"""Detect lockfile schema drift and migrate the lockfile when forced."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from .errors import MigrationFailedError, QxcError, SchemaDriftError
from .installer import Installer
from .lockfile import (
    LOCKFILE_SCHEMA_VERSION,
    LockedLibrary,
    LockfileRecord,
    load_lockfile,
    major_version,
    write_lockfile,
)

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".old"


class MigrationState(Enum):
    """States of the lockfile check."""

    NO_LOCKFILE = "no-lockfile"
    COMPATIBLE = "compatible"
    INCOMPATIBLE_BLOCKED = "incompatible-blocked"
    INCOMPATIBLE_MIGRATING = "incompatible-migrating"
    MIGRATION_FAILED = "migration-failed"
    MIGRATION_COMPLETE = "migration-complete"


_SUCCESS_STATES = frozenset(
    {
        MigrationState.NO_LOCKFILE,
        MigrationState.COMPATIBLE,
        MigrationState.MIGRATION_COMPLETE,
    }
)


@dataclass(frozen=True)
class MigrationOutcome:
    """Terminal result of the lockfile check; failures carry their error."""

    state: MigrationState
    record: LockfileRecord
    lockfile_path: Path
    backup_path: Path | None = None
    error: QxcError | None = None

    @property
    def ok(self) -> bool:
        return self.state in _SUCCESS_STATES

    def unwrap(self) -> LockfileRecord:
        if self.error is not None:
            raise self.error
        return self.record


def backup_path_for(lockfile_path: Path) -> Path:
    return lockfile_path.with_name(lockfile_path.name + BACKUP_SUFFIX)


class LockfileMigrator:
    """Compare the lockfile's schema major version with the engine's and react."""

    def __init__(
        self,
        lockfile_path: Path,
        installer_provider: Callable[[], Installer],
        *,
        schema_version: str = LOCKFILE_SCHEMA_VERSION,
        base_dir: Path | None = None,
    ) -> None:
        self.lockfile_path = Path(lockfile_path)
        self.base_dir = Path(base_dir) if base_dir is not None else self.lockfile_path.parent
        self.installer_provider = installer_provider
        self.schema_version = schema_version

    def run(self, *, force: bool, verbose: bool = False, quiet: bool | None = None) -> MigrationOutcome:
        record = self._read()
        if record is None:
            return MigrationOutcome(
                state=MigrationState.NO_LOCKFILE,
                record=LockfileRecord(version=self.schema_version),
                lockfile_path=self.lockfile_path,
            )

        if not self.is_incompatible(record):
            return MigrationOutcome(
                state=MigrationState.COMPATIBLE,
                record=record,
                lockfile_path=self.lockfile_path,
            )

        if not force:
            return MigrationOutcome(
                state=MigrationState.INCOMPATIBLE_BLOCKED,
                record=record,
                lockfile_path=self.lockfile_path,
                error=SchemaDriftError(self.lockfile_path),
            )

        logger.debug(
            "migrating %s from schema %s to %s",
            self.lockfile_path,
            record.effective_version,
            self.schema_version,
        )
        return self._migrate(record, verbose=verbose, quiet=quiet)

    def is_incompatible(self, record: LockfileRecord) -> bool:
        return major_version(self.schema_version) > major_version(record.version)

    def _read(self) -> LockfileRecord | None:
        try:
            return load_lockfile(self.lockfile_path)
        except (OSError, ValueError) as exc:
            logger.warning("ignoring unreadable lockfile %s: %s", self.lockfile_path, exc)
            return None

    def _migrate(self, record: LockfileRecord, *, verbose: bool, quiet: bool | None) -> MigrationOutcome:
        backup = backup_path_for(self.lockfile_path)
        state = MigrationState.INCOMPATIBLE_MIGRATING
        try:
            shutil.copy2(self.lockfile_path, backup)
            if not quiet:
                logger.warning(
                    "*** A backup of %s has been saved to %s, in case you need to revert to it. ***",
                    self.lockfile_path.name,
                    backup,
                )
            installer = self.installer_provider()
            installer.delete_lockfile()
            for library in record.libraries:
                self._reinstall(installer, library, verbose=verbose)
            migrated = installer.get_lockfile_data()
            write_lockfile(self.lockfile_path, migrated)
        except Exception as exc:
            error = MigrationFailedError(
                f"lockfile migration of {self.lockfile_path} failed: {exc}. "
                f"The previous lockfile is kept at {backup}."
            )
            error.__cause__ = exc
            logger.debug("migration failed in state %s", state.value, exc_info=True)
            return MigrationOutcome(
                state=MigrationState.MIGRATION_FAILED,
                record=record,
                lockfile_path=self.lockfile_path,
                backup_path=backup if backup.exists() else None,
                error=error,
            )

        return MigrationOutcome(
            state=MigrationState.MIGRATION_COMPLETE,
            record=migrated,
            lockfile_path=self.lockfile_path,
            backup_path=backup,
        )

    def _reinstall(self, installer: Installer, library: LockedLibrary, *, verbose: bool) -> None:
        if installer.is_installed(library.uri, library.repo_tag):
            if verbose:
                logger.info(">>> %s is already installed.", library.label)
            return
        if library.repo_tag:
            installer.install(library.uri, library.repo_tag)
        elif library.path and self._local_path(library.path).exists():
            installer.install_from_local_path(library.path, library.uri)
        else:
            logger.warning(
                "cannot reinstall %s: no repository tag and local path %s is missing",
                library.uri,
                library.path,
            )

    def _local_path(self, raw: str) -> Path:
        path = Path(raw)
        return path if path.is_absolute() else self.base_dir / path
