"""Down command for duct."""

import click

from ...core.constants import DEFAULT_MANIFEST_FILE
from ...models.config import CreateNetwork
from ...services.exceptions import ContainerNotFoundError, DockerServiceError, NetworkNotFoundError
from ..helpers import get_docker_service, load_manifest


@click.command()
@click.argument('manifest_file', default=DEFAULT_MANIFEST_FILE, type=click.Path(dir_okay=False))
@click.option('--network', 'network_name', help='Remove networks with this name instead of the manifest\'s')
@click.pass_context
def down(ctx, manifest_file, network_name):
    """Force-remove containers and networks left behind by an interrupted run"""
    loaded = load_manifest(manifest_file)
    docker_service = get_docker_service()
    failures = 0

    for spec in loaded.manifest:
        try:
            docker_service.remove_container(spec.name, force=True)
            click.echo(f"Removed container: {spec.name}")
        except ContainerNotFoundError:
            click.echo(f"No container named {spec.name}")
        except DockerServiceError as e:
            click.echo(f"Failed to remove container {spec.name}: {e}", err=True)
            failures += 1

    if not network_name and isinstance(loaded.network, CreateNetwork):
        network_name = loaded.network.name

    if network_name:
        try:
            network_ids = docker_service.list_networks(network_name)
        except DockerServiceError as e:
            click.echo(f"Failed to list networks: {e}", err=True)
            ctx.exit(1)

        for network_id in network_ids:
            try:
                docker_service.remove_network(network_id)
                click.echo(f"Removed network: {network_name} ({network_id[:12]})")
            except NetworkNotFoundError:
                pass  # Removed concurrently
            except DockerServiceError as e:
                click.echo(f"Failed to remove network {network_name}: {e}", err=True)
                failures += 1

    if failures:
        ctx.exit(1)
