"""Logs command."""

import click

from ..helpers import get_deployer, run_async


@click.command()
@click.argument('project_id')
@click.option('--tail', '-n', type=int, default=None, help='Number of lines to show')
@click.option('--follow', '-f', is_flag=True, help='Follow log output')
@click.pass_context
def logs(ctx, project_id, tail, follow):
    """Show a project's container logs"""
    deployer = get_deployer(ctx)

    if not follow:
        output = run_async(deployer.get_logs(project_id, tail))
        if output:
            click.echo(output)
        return

    async def _follow():
        stream = await deployer.stream_logs(project_id, click.echo)
        if stream is None:
            click.echo(f"Error: could not follow logs for {project_id}", err=True)
            return
        try:
            await stream.wait_closed()
        finally:
            stream.cancel()

    try:
        run_async(_follow())
    except KeyboardInterrupt:
        pass
