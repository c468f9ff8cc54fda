"""Status command."""

import sys

import click
from tabulate import tabulate

from ...models.container import get_container_name
from ..helpers import console, get_deployer, run_async


@click.command()
@click.argument('project_id', required=False)
@click.pass_context
def status(ctx, project_id):
    """Show Docker availability and managed containers"""
    deployer = get_deployer(ctx)

    async def _collect():
        if not await deployer.is_available():
            return False, []
        if project_id:
            return True, [(project_id, await deployer.is_running(project_id))]
        return True, await deployer.containers.list_managed()

    available, rows = run_async(_collect())
    if not available:
        console.print("[red]Docker is not available[/red]")
        sys.exit(1)

    if project_id:
        _, running = rows[0]
        state = "running" if running else "not running"
        click.echo(f"{get_container_name(project_id)}: {state}")
        return

    if not rows:
        click.echo("No managed containers running.")
        return

    table = [[c.container_name, c.project_id, c.build_id] for c in rows]
    click.echo(tabulate(table, headers=["Container", "Project", "Build"], tablefmt="simple"))
