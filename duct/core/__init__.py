"""Core functionality for duct."""

from .composer import Composer
from .context import Context
from .image_builder import Builder
from .signal_watcher import SignalWatcher, WatcherState

__all__ = [
    'Builder',
    'Composer',
    'Context',
    'SignalWatcher',
    'WatcherState',
]
