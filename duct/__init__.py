"""Duct - Compose linked Docker containers for integration tests."""

__version__ = "0.1.0"

from .core import Builder, Composer, Context, SignalWatcher, WatcherState
from .models import (
    AttachNetwork,
    Build,
    BuildSet,
    ComposerOptions,
    ContainerSpec,
    CreateNetwork,
    Manifest,
    with_existing_network,
    with_new_network,
)

__all__ = [
    'Builder',
    'Composer',
    'Context',
    'SignalWatcher',
    'WatcherState',
    'AttachNetwork',
    'Build',
    'BuildSet',
    'ComposerOptions',
    'ContainerSpec',
    'CreateNetwork',
    'Manifest',
    'with_existing_network',
    'with_new_network',
]
