"""Validate command for duct."""

import click
from rich.console import Console

from ...core.constants import DEFAULT_MANIFEST_FILE
from ...models.config import AttachNetwork
from ..helpers import load_manifest, manifest_table


@click.command()
@click.argument('manifest_file', default=DEFAULT_MANIFEST_FILE, type=click.Path(dir_okay=False))
def validate(manifest_file):
    """Check a manifest file and show what it would launch"""
    console = Console()
    loaded = load_manifest(manifest_file)

    if loaded.network is None:
        console.print("[yellow]No network configured; pass --network or --existing-network to 'duct up'.[/yellow]")
    elif isinstance(loaded.network, AttachNetwork):
        console.print(f"Network: existing [cyan]{loaded.network.network_id}[/cyan]")
    else:
        subnet = f" ({loaded.network.subnet})" if loaded.network.subnet else ""
        console.print(f"Network: new [cyan]{loaded.network.name}[/cyan]{subnet}")

    for name, build in loaded.builds.items():
        console.print(f"Build: [green]{name}[/green] from {build.dockerfile} in {build.context}")

    console.print(manifest_table(loaded.manifest))
    console.print(f"[green]Manifest is valid: {len(loaded.manifest)} container(s).[/green]")
