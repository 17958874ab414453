"""Docker service for abstracting Docker engine operations."""

import codecs
import logging
from typing import Any, Dict, List, Optional, TextIO, Tuple

import docker
import docker.errors
from docker.models.images import Image
from docker.types import IPAMConfig, IPAMPool, Mount

from .exceptions import (
    ContainerNotFoundError,
    DockerServiceError,
    ImageNotFoundError,
    NetworkNotFoundError,
)

logger = logging.getLogger(__name__)


class DockerService:
    """Service for Docker engine operations with clean abstractions.

    Containers, execs and networks are addressed by engine identifier so
    that callers only ever hold plain strings, never SDK model objects.
    """

    def __init__(self, client: Optional[docker.DockerClient] = None):
        """Initialize Docker service and test connection."""
        if client is not None:
            self.client = client
            return

        try:
            self.client = docker.from_env()
            self.client.ping()
        except docker.errors.DockerException as e:
            if "connection refused" in str(e).lower() or "cannot connect" in str(e).lower():
                raise DockerServiceError(
                    "Docker daemon is not running. Please start Docker Desktop or the Docker service."
                ) from e
            else:
                raise DockerServiceError(f"Failed to connect to Docker: {e}") from e

    @property
    def api(self):
        """Low-level API client used for identifier-based calls."""
        return self.client.api

    def pull_image(self, reference: str) -> None:
        """Pull an image by repository reference.

        Args:
            reference: Image reference such as ``debian:latest``

        Raises:
            ImageNotFoundError: If the repository or tag does not exist
            DockerServiceError: If the pull fails
        """
        try:
            self.client.images.pull(reference)
        except docker.errors.ImageNotFound as e:
            raise ImageNotFoundError(f"Image '{reference}' not found") from e
        except docker.errors.NotFound as e:
            raise ImageNotFoundError(f"Image '{reference}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to pull image '{reference}': {e}") from e

    def build_image(
        self,
        path: str,
        dockerfile: str,
        tag: str,
        rm: bool = True,
        nocache: bool = False,
        buildargs: Optional[Dict[str, str]] = None,
    ) -> Tuple[Image, List[Dict[str, Any]]]:
        """Build a Docker image.

        Args:
            path: Path to the build context
            dockerfile: Path to the Dockerfile relative to the build context
            tag: Tag for the image
            rm: Remove intermediate containers after build
            nocache: Do not use cache when building
            buildargs: Build arguments

        Returns:
            Tuple of (built image, build logs)

        Raises:
            DockerServiceError: If build fails. The build log collected before
                the failure is attached as ``build_log``.
        """
        try:
            image, logs = self.client.images.build(
                path=path,
                dockerfile=dockerfile,
                tag=tag,
                rm=rm,
                nocache=nocache,
                buildargs=buildargs or {},
            )
            return image, list(logs)
        except docker.errors.BuildError as e:
            error = DockerServiceError(f"Failed to build image '{tag}': {e}")
            error.build_log = list(e.build_log or [])
            raise error from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to build image '{tag}': {e}") from e
        except TypeError as e:
            raise DockerServiceError(f"Invalid build arguments for '{tag}': {e}") from e

    def create_network(
        self,
        name: str,
        driver: str = "bridge",
        subnet: Optional[str] = None,
    ) -> str:
        """Create a network and return its identifier.

        Args:
            name: Network name (not required to be unique by the engine)
            driver: Network driver
            subnet: Optional CIDR for a single IPAM pool

        Raises:
            DockerServiceError: If creation fails
        """
        ipam = None
        if subnet:
            ipam = IPAMConfig(pool_configs=[IPAMPool(subnet=subnet)])

        try:
            network = self.client.networks.create(name, driver=driver, ipam=ipam)
            return network.id
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to create network '{name}': {e}") from e

    def remove_network(self, network_id: str) -> None:
        """Remove a network by identifier.

        Raises:
            NetworkNotFoundError: If network not found
            DockerServiceError: If removal fails
        """
        try:
            self.api.remove_network(network_id)
        except docker.errors.NotFound as e:
            raise NetworkNotFoundError(f"Network '{network_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to remove network: {e}") from e

    def list_networks(self, name: str) -> List[str]:
        """List identifiers of networks with the given name."""
        try:
            return [network.id for network in self.client.networks.list(names=[name])]
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to list networks: {e}") from e

    def create_container(
        self,
        name: str,
        image: str,
        env: Optional[List[str]] = None,
        command: Optional[List[str]] = None,
        entrypoint: Optional[List[str]] = None,
        ports: Optional[List[int]] = None,
        port_bindings: Optional[Dict[int, List[Tuple[str, int]]]] = None,
        mounts: Optional[Dict[str, str]] = None,
        network_id: Optional[str] = None,
        aliases: Optional[List[str]] = None,
        extra_hosts: Optional[Dict[str, str]] = None,
        ipv4_address: Optional[str] = None,
    ) -> str:
        """Create a container and return its identifier.

        The container's hostname is its name. When ``network_id`` is given the
        container joins that network with the supplied aliases and address.

        Args:
            name: Container name
            image: Image name
            env: ``KEY=value`` environment strings
            command: Command argv
            entrypoint: Entrypoint argv override
            ports: Container ports to expose (TCP)
            port_bindings: Container port to list of (host ip, host port)
            mounts: Absolute host path to container path bind mounts
            network_id: Network to attach to
            aliases: Network aliases
            extra_hosts: Hostname to IP static entries
            ipv4_address: Fixed address on the network

        Raises:
            ImageNotFoundError: If image not found
            DockerServiceError: If creation fails, including name conflicts
        """
        bind_mounts = [
            Mount(target=target, source=source, type="bind")
            for source, target in (mounts or {}).items()
        ]

        try:
            host_config = self.api.create_host_config(
                mounts=bind_mounts or None,
                port_bindings=port_bindings or None,
                extra_hosts=extra_hosts or None,
            )

            networking_config = None
            if network_id:
                endpoint = self.api.create_endpoint_config(
                    aliases=aliases or None,
                    ipv4_address=ipv4_address,
                )
                networking_config = self.api.create_networking_config({network_id: endpoint})

            response = self.api.create_container(
                image=image,
                command=command,
                name=name,
                hostname=name,
                environment=env or None,
                entrypoint=entrypoint,
                ports=ports or None,
                host_config=host_config,
                networking_config=networking_config,
            )
            return response["Id"]
        except docker.errors.ImageNotFound as e:
            raise ImageNotFoundError(f"Image '{image}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to create container '{name}': {e}") from e

    def start_container(self, container_id: str) -> None:
        """Start a created container.

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If start fails
        """
        try:
            self.api.start(container_id)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to start container: {e}") from e

    def kill_container(self, container_id: str, signal: str = "SIGKILL") -> bool:
        """Send a signal to a container's main process.

        Returns:
            True if the signal was delivered, False if the container was
            not running

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If the kill fails
        """
        try:
            self.api.kill(container_id, signal=signal)
            return True
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            if e.status_code == 409:
                logger.debug(f"Container {container_id} is not running: {e}")
                return False
            raise DockerServiceError(f"Failed to kill container: {e}") from e

    def remove_container(self, container_id: str, force: bool = True) -> None:
        """Remove a container.

        Args:
            container_id: Container ID or name
            force: Force remove even if running

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If removal fails
        """
        try:
            self.api.remove_container(container_id, force=force)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to remove container: {e}") from e

    def inspect_container(self, container_id: str) -> bool:
        """Return whether the container is currently running.

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If inspection fails
        """
        try:
            state = self.api.inspect_container(container_id).get("State", {})
            return bool(state.get("Running"))
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to inspect container: {e}") from e

    def wait_container(self, container_id: str) -> int:
        """Block until the container exits and return its exit status.

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If waiting fails
        """
        try:
            result = self.api.wait(container_id)
            return result.get("StatusCode", 0)
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to wait for container: {e}") from e

    def create_exec(self, container_id: str, command: List[str]) -> str:
        """Create an exec instance attached to stdout and stderr.

        Raises:
            ContainerNotFoundError: If container not found
            DockerServiceError: If creation fails, e.g. the container is not running
        """
        try:
            exec_instance = self.api.exec_create(
                container_id, command, stdout=True, stderr=True, tty=False
            )
            return exec_instance["Id"]
        except docker.errors.NotFound as e:
            raise ContainerNotFoundError(f"Container '{container_id}' not found") from e
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to create exec: {e}") from e

    def start_exec(self, exec_id: str, stdout: TextIO, stderr: TextIO) -> None:
        """Run an exec instance, streaming its output to the given sinks.

        Raises:
            DockerServiceError: If the exec cannot be started
        """
        # Chunk boundaries can split a multi-byte character.
        out_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        err_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            for out_chunk, err_chunk in self.api.exec_start(exec_id, stream=True, demux=True):
                if out_chunk:
                    stdout.write(out_decoder.decode(out_chunk))
                if err_chunk:
                    stderr.write(err_decoder.decode(err_chunk))
            stdout.write(out_decoder.decode(b"", final=True))
            stderr.write(err_decoder.decode(b"", final=True))
            stdout.flush()
            stderr.flush()
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to start exec: {e}") from e

    def inspect_exec(self, exec_id: str) -> int:
        """Return the exit code of a finished exec instance.

        Raises:
            DockerServiceError: If inspection fails
        """
        try:
            exit_code = self.api.exec_inspect(exec_id).get("ExitCode")
        except docker.errors.APIError as e:
            raise DockerServiceError(f"Failed to inspect exec: {e}") from e
        # A still-running exec reports no exit code.
        return -1 if exit_code is None else exit_code

