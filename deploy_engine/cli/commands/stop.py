"""Stop and cleanup commands."""

import click

from ..helpers import console, get_deployer, run_async


@click.command()
@click.argument('project_id')
@click.pass_context
def stop(ctx, project_id):
    """Stop and remove a project's container"""
    deployer = get_deployer(ctx)
    if run_async(deployer.stop(project_id)):
        console.print(f"[green]Stopped {project_id}[/green]")
    else:
        console.print(f"[yellow]Could not remove container for {project_id}[/yellow]")


@click.command()
@click.argument('project_id')
@click.option('--build', '-b', 'build_ids', multiple=True, help='Build ID whose image should be removed (repeatable)')
@click.pass_context
def cleanup(ctx, project_id, build_ids):
    """Remove a project's container and build images"""
    deployer = get_deployer(ctx)
    run_async(deployer.cleanup(project_id, list(build_ids)))
    console.print(f"[green]Cleaned up {project_id}[/green]")
