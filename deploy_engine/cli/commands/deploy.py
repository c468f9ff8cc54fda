"""Deploy command."""

import sys

import click

from ...core.constants import APP_TYPES
from ..helpers import console, get_deployer, run_async


def parse_env(values):
    env = {}
    for item in values:
        key, sep, value = item.partition('=')
        if not sep or not key:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{item}'", param_hint='--env')
        env[key] = value
    return env


@click.command()
@click.argument('project_id')
@click.argument('build_id')
@click.argument('source_dir', type=click.Path(file_okay=False))
@click.option('--port', 'host_port', type=int, required=True, help='Host port to publish the app on')
@click.option('--app-type', type=click.Choice(APP_TYPES), required=True, help='Application type')
@click.option('--env', '-e', 'env', multiple=True, help='Environment variable KEY=VALUE (repeatable)')
@click.option('--follow', '-f', is_flag=True, help='Keep streaming runtime logs after deploying')
@click.pass_context
def deploy(ctx, project_id, build_id, source_dir, host_port, app_type, env, follow):
    """Build SOURCE_DIR and run it as the project's container"""
    env_vars = parse_env(env)
    deployer = get_deployer(ctx)

    async def _deploy():
        outcome = await deployer.deploy(
            project_id, build_id, source_dir, host_port, app_type, env_vars
        )
        if outcome.success and follow:
            stream = deployer.log_streams.get(project_id)
            try:
                if stream is not None:
                    await stream.wait_closed()
            finally:
                await deployer.shutdown()
        else:
            await deployer.shutdown()
        return outcome

    try:
        outcome = run_async(_deploy())
    except KeyboardInterrupt:
        return

    if not outcome.success:
        console.print(f"[red]Deployment failed: {outcome.error}[/red]")
        sys.exit(1)
    console.print(f"[green]Deployed {project_id} (container {outcome.container_id[:12]})[/green]")
