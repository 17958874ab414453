"""Stock readiness checks for container specs."""

import logging
import socket
from typing import Optional

from ..services.docker_service import DockerService
from .constants import READINESS_POLL_INTERVAL
from .context import Context

logger = logging.getLogger(__name__)


def tcp_port_open(host: str, port: int, interval: float = READINESS_POLL_INTERVAL,
                  connect_timeout: float = 1.0):
    """Return a check that polls until a TCP connection to host:port succeeds."""

    def check(ctx: Context, container_id: str) -> None:
        while True:
            ctx.raise_if_done("readiness check")
            try:
                with socket.create_connection((host, port), timeout=connect_timeout):
                    return
            except OSError as e:
                logger.debug(f"Error while dialing {host}:{port}: {e}")
            ctx.wait(interval)

    return check


def container_running(docker_service: Optional[DockerService] = None,
                      interval: float = READINESS_POLL_INTERVAL):
    """Return a check that polls until the engine reports the container running.

    A service is created on first use when none is given.
    """
    def check(ctx: Context, container_id: str) -> None:
        nonlocal docker_service
        if docker_service is None:
            docker_service = DockerService()
        while True:
            ctx.raise_if_done("readiness check")
            if docker_service.inspect_container(container_id):
                return
            logger.debug(f"Container {container_id} is not running yet")
            ctx.wait(interval)

    return check
