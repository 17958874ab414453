import signal

import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock

from duct.models import ContainerSpec, Manifest, with_new_network
from duct.services.docker_service import DockerService


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def mock_docker_service():
    """Provides a mocked DockerService that succeeds at everything."""
    service = MagicMock(spec=DockerService)
    service.create_network.return_value = "net-123"
    service.create_container.side_effect = lambda name, **kwargs: f"id-{name}"
    service.kill_container.return_value = True
    service.create_exec.return_value = "exec-1"
    service.inspect_exec.return_value = 0
    service.wait_container.return_value = 0
    service.inspect_container.return_value = True
    return service


@pytest.fixture
def two_container_manifest():
    """Provides a manifest of a server and a client that pings it."""
    return Manifest([
        ContainerSpec(
            name="target",
            image="nc:latest",
            command=["nc", "-k", "-l", "-p", "6000"],
            port_forwards={6000: 6000},
        ),
        ContainerSpec(
            name="pinger",
            image="debian:latest",
            command=["sleep", "infinity"],
            post_commands=[["ping", "-c", "1", "target"]],
        ),
    ])


@pytest.fixture
def network_options():
    """Provides quiet options that create a test network."""
    return with_new_network("duct-test-network", quiet=True)


@pytest.fixture
def restore_signal_handlers():
    """Puts SIGINT and SIGTERM handlers back after a test."""
    saved = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}
    yield saved
    for signum, handler in saved.items():
        signal.signal(signum, handler)


@pytest.fixture
def manifest_file(tmp_path):
    """Writes a manifest file and returns its path."""
    path = tmp_path / "duct.yaml"
    path.write_text(
        "network:\n"
        "  name: duct-test-network\n"
        "containers:\n"
        "  - name: web\n"
        "    image: nginx:latest\n"
        "    port_forwards: {8080: 80}\n"
        "  - name: client\n"
        "    image: debian:latest\n"
        "    command: sleep infinity\n"
        "    post_commands:\n"
        "      - getent hosts web\n"
    )
    return path
