"""Docker image building functionality."""

import logging
import sys
from typing import Dict, List, Optional, TextIO, Union

from ..models.build import Build, BuildSet
from ..services.docker_service import DockerService
from ..services.exceptions import DockerServiceError
from .context import Context

logger = logging.getLogger(__name__)


class Builder:
    """Builds a named set of images before a composition uses them.

    Images built here are referenced from container specs with
    ``local_image`` set, so the composer does not try to pull them.
    """

    def __init__(
        self,
        builds: Union[BuildSet, Dict[str, Union[Build, dict]]],
        docker_service: Optional[DockerService] = None,
        stream: Optional[TextIO] = None,
    ):
        """Initialize the builder.

        Args:
            builds: Image name to build instructions
            docker_service: Engine adapter; created on first use when omitted
            stream: Sink for build output (defaults to sys.stderr)
        """
        if not isinstance(builds, BuildSet):
            builds = BuildSet.model_validate(builds)
        self.builds = builds
        self.stream = stream
        self._docker_service = docker_service

    @property
    def docker_service(self) -> DockerService:
        if self._docker_service is None:
            self._docker_service = DockerService()
        return self._docker_service

    def run(self, ctx: Optional[Context] = None) -> List[str]:
        """Build every image in order, stopping at the first failure.

        Returns:
            Names of the images built

        Raises:
            DockerServiceError: If any build fails
            LaunchCancelledError: If the context is done before a build starts
        """
        ctx = ctx or Context()
        built = []
        for name, build in self.builds.items():
            ctx.raise_if_done("build")
            logger.info(f"Building image: [{name}]")
            try:
                _, logs = self.docker_service.build_image(
                    path=build.context,
                    dockerfile=build.dockerfile,
                    tag=name,
                    rm=True,
                )
            except DockerServiceError as e:
                self._write_logs(getattr(e, "build_log", []))
                raise
            self._write_logs(logs)
            built.append(name)
        return built

    def _write_logs(self, logs: List[dict]) -> None:
        stream = self.stream or sys.stderr
        for log in logs:
            if 'stream' in log:
                stream.write(log['stream'])
            elif 'error' in log:
                stream.write(f"{log['error']}\n")
        stream.flush()
