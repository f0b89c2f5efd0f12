"""Plugin file loading."""

from .errors import PluginError, PluginLoadError
from .loader import PluginLoader, PluginModule

__all__ = [
    "PluginError",
    "PluginLoadError",
    "PluginLoader",
    "PluginModule",
]
