"""
roboplug - Robo plugin installer for a host package manager.

This is the main package that exports the public API: the event subscriber
the host activates, the plugin interface plugins implement, and the error
types a run can raise.
"""

__version__ = "0.1.0"

from roboplug.config import Settings, load_settings
from roboplug.core.events import EventDispatcher
from roboplug.plugin.errors import (
    ClassNotFoundError,
    DispatchError,
    InvocationError,
    MalformedCallableError,
    PluginBatchError,
    ResolutionError,
    SourceLoadError,
)
from roboplug.plugin.interface import RoboPluginInterface
from roboplug.plugin.manifest import is_plugin
from roboplug.plugin.subscriber import PluginBatch, RoboPluginSubscriber

__all__ = [
    "__version__",
    "ClassNotFoundError",
    "DispatchError",
    "EventDispatcher",
    "InvocationError",
    "MalformedCallableError",
    "PluginBatch",
    "PluginBatchError",
    "ResolutionError",
    "RoboPluginInterface",
    "RoboPluginSubscriber",
    "Settings",
    "SourceLoadError",
    "is_plugin",
    "load_settings",
]
