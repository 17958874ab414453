"""Up command for duct."""

import click
from rich.console import Console
from rich.markup import escape

from ...core.composer import Composer
from ...core.constants import DEFAULT_MANIFEST_FILE
from ...core.image_builder import Builder
from ...models.config import ComposerOptions
from ...services.exceptions import ComposerError, ServiceError
from ..helpers import get_docker_service, load_manifest, resolve_network


@click.command()
@click.argument('manifest_file', default=DEFAULT_MANIFEST_FILE, type=click.Path(dir_okay=False))
@click.option('--network', 'network_name', help='Create a network with this name')
@click.option('--subnet', help='Subnet (CIDR) for the created network')
@click.option('--existing-network', help='Attach to an existing network by ID')
@click.option('--timeout', type=float, help='Seconds to allow for the launch')
@click.option('--skip-build', is_flag=True, help='Do not build images declared in the manifest')
@click.option('--quiet', '-q', is_flag=True, help='Silence lifecycle logging')
@click.pass_context
def up(ctx, manifest_file, network_name, subnet, existing_network, timeout, skip_build, quiet):
    """Launch a manifest and hold it until interrupted"""
    console = Console()
    loaded = load_manifest(manifest_file)
    network = resolve_network(loaded, network_name, subnet, existing_network)
    docker_service = get_docker_service()

    if len(loaded.builds) and not skip_build:
        try:
            Builder(loaded.builds, docker_service).run()
        except ServiceError as e:
            console.print(f"[red]Build failed: {escape(str(e))}[/red]")
            ctx.exit(1)

    try:
        composer = Composer(
            loaded.manifest,
            ComposerOptions(network=network, quiet=quiet),
            docker_service=docker_service,
        )
    except ComposerError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        ctx.exit(1)

    watcher = composer.handle_signals(forward=False)

    try:
        composer.launch(timeout=timeout)
    except (ComposerError, ServiceError) as e:
        console.print(f"[red]Launch failed: {escape(str(e))}[/red]")
        ctx.exit(1)

    console.print(
        f"[green]Launched {len(loaded.manifest)} container(s) "
        f"on network {composer.get_network_id()[:12]}.[/green]"
    )
    console.print("Press Ctrl-C to tear down.")

    # Returns once the watcher has run teardown.
    watcher.join()
    console.print("Containers torn down.")
