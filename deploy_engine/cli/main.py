"""Main CLI entry point for the deploy engine."""

import click

from .commands.deploy import deploy
from .commands.logs import logs
from .commands.status import status
from .commands.stop import cleanup, stop
from .helpers import configure_logging, load_settings


@click.group()
@click.option('--config', 'config_file', type=click.Path(dir_okay=False), envvar='DEPLOY_ENGINE_CONFIG',
              help='JSON settings file')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_file, verbose):
    """Deploy Engine - build and run one container per project"""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['settings'] = load_settings(config_file)


# Register commands
cli.add_command(deploy)
cli.add_command(stop)
cli.add_command(cleanup)
cli.add_command(status)
cli.add_command(logs)


if __name__ == '__main__':
    cli()
