"""qxc CLI entrypoint: bootstrap the project, dispatch the command, map errors to exit codes."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from qxc_core.app import QxcApp
from qxc_core.errors import QxcError
from qxc_core.installer import InstallerFactory

CLI_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def main(
    argv: Sequence[str] | None = None,
    *,
    project_root: Path | str | None = None,
    installer_factory: InstallerFactory | None = None,
) -> int:
    """Run one qxc invocation and return its exit status."""

    tokens = list(argv) if argv is not None else list(sys.argv[1:])
    if tokens and tokens[0] == "--version":
        print(f"qxc v{CLI_VERSION}")
        return 0

    app = QxcApp(tokens, project_root=project_root, installer_factory=installer_factory)
    try:
        result = app.run()
    except SystemExit as exc:
        # argparse --help
        return to_int(exc.code)
    except QxcError as exc:
        logger.error("Error: %s", exc)
        return 1
    return to_int(result)


def to_int(result: Any) -> int:
    if result is None:
        return 0
    if isinstance(result, bool):
        return 0 if result else 1
    if isinstance(result, int):
        return result
    return 0
