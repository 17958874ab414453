"""Models for duct."""

from .build import Build, BuildSet
from .config import (
    AttachNetwork,
    ComposerOptions,
    CreateNetwork,
    NetworkMode,
    with_existing_network,
    with_new_network,
)
from .container import ContainerSpec, Manifest, ReadinessCheck

__all__ = [
    'Build',
    'BuildSet',
    'AttachNetwork',
    'ComposerOptions',
    'CreateNetwork',
    'NetworkMode',
    'with_existing_network',
    'with_new_network',
    'ContainerSpec',
    'Manifest',
    'ReadinessCheck',
]
