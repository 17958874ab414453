"""CLI helper functions shared by duct commands."""

import sys
from typing import Optional

import click
from rich.table import Table

from ..models.config import AttachNetwork, CreateNetwork, NetworkMode
from ..models.container import Manifest
from ..services.docker_service import DockerService
from ..services.exceptions import ConfigurationError, DockerServiceError
from ..utils.manifest_loader import LoadedManifest, ManifestLoader


def load_manifest(path: str) -> LoadedManifest:
    """Load a manifest file, exiting with an error message on failure."""
    try:
        return ManifestLoader(path).load()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def get_docker_service() -> DockerService:
    """Connect to Docker, exiting with an error message on failure."""
    try:
        return DockerService()
    except DockerServiceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def resolve_network(
    loaded: LoadedManifest,
    network_name: Optional[str] = None,
    subnet: Optional[str] = None,
    existing_network: Optional[str] = None,
) -> NetworkMode:
    """Pick the network mode from command line flags, falling back to the manifest.

    Raises:
        click.UsageError: If the flags conflict or no network is configured
    """
    if network_name and existing_network:
        raise click.UsageError("--network and --existing-network are mutually exclusive")
    if subnet and not network_name:
        raise click.UsageError("--subnet requires --network")

    try:
        if existing_network:
            return AttachNetwork(network_id=existing_network)
        if network_name:
            return CreateNetwork(name=network_name, subnet=subnet)
    except ValueError as e:
        raise click.UsageError(str(e))

    if loaded.network is None:
        raise click.UsageError(
            f"No network configured in {loaded.path}; pass --network or --existing-network"
        )
    return loaded.network


def manifest_table(manifest: Manifest) -> Table:
    """Render a manifest as a rich table."""
    table = Table(title="Manifest")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Image", style="green")
    table.add_column("Pull", justify="center")
    table.add_column("Ports", style="white")
    table.add_column("Boot wait", justify="right")
    table.add_column("Readiness", justify="center")
    table.add_column("Post-commands", justify="right")

    for index, spec in enumerate(manifest, start=1):
        ports = ", ".join(f"{host}->{target}" for host, target in spec.port_forwards.items())
        table.add_row(
            str(index),
            spec.name,
            spec.image,
            "no" if spec.local_image else "yes",
            ports or "-",
            f"{spec.boot_wait:g}s" if spec.boot_wait else "-",
            "yes" if spec.readiness_check else "-",
            str(len(spec.post_commands)),
        )
    return table
