"""Service layer for abstracting Docker operations."""

from .docker_service import DockerService
from .exceptions import (
    ServiceError,
    DockerServiceError,
    ImageNotFoundError,
    ContainerNotFoundError,
    NetworkNotFoundError,
    ComposerError,
    ConfigurationError,
    ComposerStateError,
    LaunchError,
    PostCommandError,
    ContainerExitError,
    ReadinessCheckError,
    LaunchCancelledError,
    TeardownError,
)

__all__ = [
    "DockerService",
    "ServiceError",
    "DockerServiceError",
    "ImageNotFoundError",
    "ContainerNotFoundError",
    "NetworkNotFoundError",
    "ComposerError",
    "ConfigurationError",
    "ComposerStateError",
    "LaunchError",
    "PostCommandError",
    "ContainerExitError",
    "ReadinessCheckError",
    "LaunchCancelledError",
    "TeardownError",
]
