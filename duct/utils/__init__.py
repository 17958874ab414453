"""Utilities for duct."""

from .logging import build_logger
from .manifest_loader import LoadedManifest, ManifestLoader

__all__ = [
    'build_logger',
    'LoadedManifest',
    'ManifestLoader',
]
