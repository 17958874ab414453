"""Custom exceptions for the service and composer layers."""


class ServiceError(Exception):
    """Base exception for all service-related errors."""

    pass


class DockerServiceError(ServiceError):
    """Exception raised for Docker service operations."""

    pass


class ImageNotFoundError(DockerServiceError):
    """Exception raised when a Docker image is not found."""

    pass


class ContainerNotFoundError(DockerServiceError):
    """Exception raised when a Docker container is not found."""

    pass


class NetworkNotFoundError(DockerServiceError):
    """Exception raised when a Docker network is not found."""

    pass


class ComposerError(Exception):
    """Base exception for composition lifecycle errors."""

    pass


class ConfigurationError(ComposerError):
    """Exception raised when a composition is configured incorrectly."""

    pass


class ComposerStateError(ComposerError):
    """Exception raised when an operation is invalid in the current state."""

    pass


class LaunchError(ComposerError):
    """Exception raised when a launch step other than an engine call fails."""

    def __init__(self, message: str, container: str = None):
        super().__init__(message)
        self.container = container


class PostCommandError(LaunchError):
    """Exception raised when a post-start command exits non-zero."""

    def __init__(self, container: str, command: list, exit_code: int):
        super().__init__(
            f"[{container}] invalid exit code {exit_code} from postcommand: "
            f"[{' '.join(command)}]",
            container=container,
        )
        self.command = command
        self.exit_code = exit_code


class ContainerExitError(LaunchError):
    """Exception raised when a waited-on container exits non-zero."""

    def __init__(self, container: str, exit_code: int):
        super().__init__(
            f"[{container}] container exited with status {exit_code}",
            container=container,
        )
        self.exit_code = exit_code


class ReadinessCheckError(LaunchError):
    """Exception raised when a readiness check fails or times out."""

    pass


class LaunchCancelledError(LaunchError):
    """Exception raised when the launch context is cancelled or expires."""

    pass


class TeardownError(ComposerError):
    """Exception raised when one or more teardown steps failed."""

    pass
