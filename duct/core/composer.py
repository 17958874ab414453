"""Composer: launches and tears down a manifest of linked containers."""

import ipaddress
import os
import sys
import threading
import time
from typing import Dict, Iterable, List, Optional, TextIO, Tuple, Union

from ..models.config import AttachNetwork, ComposerOptions, CreateNetwork
from ..models.container import ContainerSpec, Manifest
from ..services.docker_service import DockerService
from ..services.exceptions import (
    ConfigurationError,
    ComposerStateError,
    ContainerExitError,
    ContainerNotFoundError,
    LaunchCancelledError,
    PostCommandError,
    ReadinessCheckError,
    ServiceError,
    TeardownError,
)
from ..utils.logging import build_logger
from .constants import DEFAULT_HOST_IP, DEFAULT_NETWORK_DRIVER, KILL_SIGNAL, TEARDOWN_ERROR_MESSAGE
from .context import Context
from .signal_watcher import SignalWatcher


class Composer:
    """Owns one launch/teardown lifecycle for a manifest.

    Containers are created, started and torn down one at a time in manifest
    order. Every launch failure tears down whatever was created before the
    error is raised, so a failed ``launch`` never leaves containers behind.

    ``launch`` and ``teardown`` are meant to be driven from a single thread;
    the only other actor is the optional signal watcher.
    """

    def __init__(
        self,
        manifest: Union[Manifest, Iterable[ContainerSpec]],
        options: Optional[ComposerOptions] = None,
        docker_service: Optional[DockerService] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        """Initialize the composer.

        Args:
            manifest: Containers to run, in order
            options: Network mode and log routing
            docker_service: Engine adapter; created on first use when omitted
            stdout: Sink for post-command output (defaults to sys.stdout)
            stderr: Sink for post-command errors (defaults to sys.stderr)

        Raises:
            ConfigurationError: If no network mode is given, or a fixed
                container address cannot fit the network.
        """
        if not isinstance(manifest, Manifest):
            manifest = Manifest.model_validate(list(manifest))

        options = options or ComposerOptions()
        if options.network is None:
            raise ConfigurationError("compositions must have a network specified")

        self.manifest = manifest
        self.options = options
        self.logger = build_logger(options)
        self.stdout = stdout
        self.stderr = stderr

        self._docker_service = docker_service
        self._container_ids: Dict[str, str] = {}
        self._network_id = ""
        self._network_created = False
        self._watcher: Optional[SignalWatcher] = None
        self._active_ctx: Optional[Context] = None
        self._lock = threading.RLock()

        self._validate_addresses()

    def _validate_addresses(self) -> None:
        network = self.options.network
        if not isinstance(network, CreateNetwork):
            return

        for spec in self.manifest:
            if spec.ipv4_address is None:
                continue
            if network.subnet is None:
                raise ConfigurationError(
                    f"[{spec.name}] a fixed address requires a network created with a subnet"
                )
            if ipaddress.ip_address(spec.ipv4_address) not in ipaddress.ip_network(network.subnet):
                raise ConfigurationError(
                    f"[{spec.name}] address {spec.ipv4_address} is outside subnet {network.subnet}"
                )

    @property
    def docker_service(self) -> DockerService:
        """The engine adapter, connected lazily."""
        if self._docker_service is None:
            self._docker_service = DockerService()
        return self._docker_service

    @property
    def watcher(self) -> Optional[SignalWatcher]:
        return self._watcher

    def get_network_id(self) -> str:
        """Return the network ID resolved by ``launch``, or "" before launch."""
        return self._network_id

    def container_id(self, name: str) -> Optional[str]:
        """Return the engine ID recorded for a container, if it exists."""
        return self._container_ids.get(name)

    def handle_signals(self, forward: bool = False) -> SignalWatcher:
        """Tear down on SIGINT or SIGTERM.

        Any previous watcher is disarmed and joined first. With ``forward``
        the signal is re-raised against this process after teardown, once the
        previous handlers are back in place, so a surrounding test runner
        still terminates. Must be called from the main thread.
        """
        if self._watcher is not None:
            self._watcher.disarm()

        self._watcher = SignalWatcher(self._on_signal, forward=forward, logger=self.logger)
        self._watcher.arm()
        return self._watcher

    def _on_signal(self, signum: int) -> None:
        ctx = self._active_ctx
        if ctx is not None:
            ctx.cancel()
        self.teardown()

    def launch(self, ctx: Optional[Context] = None, timeout: Optional[float] = None) -> None:
        """Launch the manifest.

        Args:
            ctx: Parent context; cancelling it aborts the launch
            timeout: Seconds before the launch is abandoned

        Raises:
            ComposerStateError: If containers from a previous launch remain
            ServiceError: If an engine call fails
            LaunchError: If a readiness check, post-command or waited-on
                container fails, or the context is cancelled

        On any failure every created container (and a created network) is
        torn down before the error propagates.
        """
        if self._container_ids:
            raise ComposerStateError(
                "composition still has containers from a previous launch; tear down first"
            )

        ctx = Context(timeout=timeout, parent=ctx)
        self._active_ctx = ctx
        try:
            self._resolve_network(ctx)
            try:
                for spec in self.manifest:
                    self._create(ctx, spec)

                for spec in self.manifest:
                    self._start(ctx, spec)
            except (Exception, KeyboardInterrupt) as e:
                self._unwind(e)
                raise
        finally:
            self._active_ctx = None

    def _resolve_network(self, ctx: Context) -> None:
        network = self.options.network
        if isinstance(network, AttachNetwork):
            self._network_id = network.network_id
            self._network_created = False
            self.logger.info(f"Using existing network: [{network.network_id}]")
            return

        self._network_id = ""
        self._network_created = False
        ctx.raise_if_done()
        self.logger.info(f"Creating network: [{network.name}]")
        self._network_id = self.docker_service.create_network(
            network.name, driver=DEFAULT_NETWORK_DRIVER, subnet=network.subnet
        )
        self._network_created = True

    def _create(self, ctx: Context, spec: ContainerSpec) -> None:
        if not spec.local_image:
            ctx.raise_if_done()
            self.logger.info(f"Pulling docker image: [{spec.image}]")
            self.docker_service.pull_image(spec.image)

        mounts = resolve_bind_mounts(spec.bind_mounts)
        ports, bindings = port_bindings_for(spec.port_forwards)

        ctx.raise_if_done()
        self.logger.info(f"Creating container: [{spec.name}]")
        container_id = self.docker_service.create_container(
            name=spec.name,
            image=spec.image,
            env=list(spec.env),
            command=spec.command,
            entrypoint=spec.entrypoint,
            ports=ports,
            port_bindings=bindings,
            mounts=mounts,
            network_id=self._network_id,
            aliases=[spec.name],
            extra_hosts=dict(spec.extra_hosts),
            ipv4_address=spec.ipv4_address,
        )
        with self._lock:
            self._container_ids[spec.name] = container_id

    def _start(self, ctx: Context, spec: ContainerSpec) -> None:
        ctx.raise_if_done()
        with self._lock:
            container_id = self._container_ids.get(spec.name)
        if container_id is None:
            # A signal-driven teardown may have run since the last check.
            ctx.raise_if_done()
            raise ComposerStateError(f"[{spec.name}] container was removed before it could be started")

        self.logger.info(f"Starting container: [{spec.name}]")
        self.docker_service.start_container(container_id)

        if spec.wait_for_exit:
            self.logger.info(f"Waiting for container to exit: [{spec.name}]")
            status = self.docker_service.wait_container(container_id)
            if status != 0:
                raise ContainerExitError(spec.name, status)

        if spec.boot_wait:
            self.logger.info(f"Sleeping for {spec.boot_wait}s (requested by {spec.name!r} boot_wait parameter)")
            time.sleep(spec.boot_wait)

        if spec.readiness_check is not None:
            self.logger.info(f"Running readiness check for [{spec.name}]")
            try:
                spec.readiness_check(ctx, container_id)
            except LaunchCancelledError:
                raise
            except Exception as e:
                raise ReadinessCheckError(f"[{spec.name}] readiness check failed: {e}", container=spec.name) from e
            self.logger.info(f"Readiness check for [{spec.name}] completed")

        for command in spec.post_commands:
            self._run_post_command(ctx, spec, container_id, command)

    def _run_post_command(self, ctx: Context, spec: ContainerSpec, container_id: str, command: List[str]) -> None:
        ctx.raise_if_done()
        self.logger.info(f"Running post-command [{' '.join(command)}] in container: [{spec.name}]")
        exec_id = self.docker_service.create_exec(container_id, command)
        self.docker_service.start_exec(exec_id, self.stdout or sys.stdout, self.stderr or sys.stderr)
        exit_code = self.docker_service.inspect_exec(exec_id)
        if exit_code != 0:
            raise PostCommandError(spec.name, list(command), exit_code)

    def _unwind(self, error: BaseException) -> None:
        self.logger.error(f"Launch failed, tearing down: {error}")
        try:
            self.teardown()
        except TeardownError as e:
            self.logger.error(f"Teardown after failed launch reported errors: {e}")

    def teardown(self) -> None:
        """Kill and remove the containers, then remove a created network.

        Every container is visited even when earlier steps fail; failures are
        logged and reported together. Containers that were never created are
        skipped, and containers removed here are forgotten so a second call
        does not touch them again. An attached network is left alone.

        Raises:
            TeardownError: If any step failed (details are in the log)
        """
        if self._watcher is not None:
            self._watcher.disarm()

        with self._lock:
            failed = False
            for spec in self.manifest:
                container_id = self._container_ids.get(spec.name)
                if not container_id:
                    self.logger.info(f"Skipping unstarted container: [{spec.name}]")
                    continue

                try:
                    service = self.docker_service
                except ServiceError as e:
                    self.logger.error(f"Cannot reach docker to tear down: {e}")
                    raise TeardownError(TEARDOWN_ERROR_MESSAGE) from e

                self.logger.info(f"Killing container: [{spec.name}]")
                try:
                    if not service.kill_container(container_id, signal=KILL_SIGNAL):
                        self.logger.info(f"Container already stopped: [{spec.name}]")
                except ServiceError as e:
                    self.logger.error(f"Error killing container: [{spec.name}] {e}")
                    failed = True

                self.logger.info(f"Removing container: [{spec.name}]")
                try:
                    service.remove_container(container_id, force=True)
                except ContainerNotFoundError as e:
                    self.logger.error(f"Container vanished before removal: [{spec.name}] {e}")
                    failed = True
                except ServiceError as e:
                    self.logger.error(f"Error shutting down container: [{spec.name}] {e}")
                    failed = True
                    continue
                del self._container_ids[spec.name]

            if self._network_created and self._network_id:
                self.logger.info(f"Removing network: [{self._network_id}]")
                try:
                    self.docker_service.remove_network(self._network_id)
                except ServiceError as e:
                    self.logger.error(f"Error removing network: [{self._network_id}] {e}")
                    failed = True

        if failed:
            raise TeardownError(TEARDOWN_ERROR_MESSAGE)


def resolve_bind_mounts(bind_mounts: Dict[str, str]) -> Dict[str, str]:
    """Return bind mounts keyed by absolute host path."""
    return {os.path.abspath(host): target for host, target in bind_mounts.items()}


def port_bindings_for(port_forwards: Dict[int, int]) -> Tuple[List[int], Dict[int, List[Tuple[str, int]]]]:
    """Translate host to container port forwards into exposed ports and bindings."""
    exposed: List[int] = []
    bindings: Dict[int, List[Tuple[str, int]]] = {}
    for host_port, container_port in sorted(port_forwards.items()):
        if container_port not in bindings:
            exposed.append(container_port)
            bindings[container_port] = []
        bindings[container_port].append((DEFAULT_HOST_IP, host_port))
    return exposed, bindings
