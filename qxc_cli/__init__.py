"""Command line entrypoint for qxc."""

from .main import main

__all__ = ["main"]
