"""Build command for duct."""

import click

from ...core.constants import DEFAULT_MANIFEST_FILE
from ...core.image_builder import Builder
from ...services.exceptions import DockerServiceError
from ..helpers import get_docker_service, load_manifest


@click.command()
@click.argument('manifest_file', default=DEFAULT_MANIFEST_FILE, type=click.Path(dir_okay=False))
@click.pass_context
def build(ctx, manifest_file):
    """Build the images declared in a manifest"""
    loaded = load_manifest(manifest_file)
    if not len(loaded.builds):
        click.echo(f"No builds declared in {manifest_file}")
        return

    docker_service = get_docker_service()
    try:
        built = Builder(loaded.builds, docker_service).run()
    except DockerServiceError as e:
        click.echo(f"Build failed: {e}", err=True)
        ctx.exit(1)

    for name in built:
        click.echo(f"Image built: {name}")
