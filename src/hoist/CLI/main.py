"""
Command Line Interface for hoist.
"""
import click
from .. import __version__
from ..errors import HoistError
from ..MODELS.command import Command
from ..MODELS.dependencies import KindSelector
from ..PARSERS.config_parser import ConfigParser
from ..RUNNERS.dependency_graph import DependencyGraph
from ..RUNNERS.target import ResolutionOptions, TargetResolver, allowed_containers
from ..RUNNERS.unit_of_work import UnitOfWork
from ..MANAGERS.command_dispatcher import CommandDispatcher, PrintingDriver
from ..CONVERTERS.to_dot import DotConverter

KIND_CHOICES = [selector.value for selector in KindSelector if selector is not KindSelector.REQUIRED]


@click.group()
@click.option('--config', '-c', multiple=True, help='Location of config file (repeatable).')
@click.option('--prefix', '-p', default='', help='Container/Network/Volume prefix.')
@click.option('--exclude', '-x', multiple=True, metavar='CONTAINER|GROUP',
              help='Exclude group or container (repeatable).')
@click.option('--only', '-o', default='', metavar='CONTAINER|GROUP', help='Limit scope to group or container.')
@click.option('--extend', '-e', is_flag=True, help='Extend command from target to dependencies.')
@click.option('--cascade-dependencies', '-d', type=click.Choice(KIND_CHOICES), default='none',
              help='Also apply the command to the containers the target depends on.')
@click.option('--cascade-affected', '-a', type=click.Choice(KIND_CHOICES), default='none',
              help='Also apply the command to the containers depending on the target.')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output.')
@click.pass_context
def cli(ctx, config, prefix, exclude, only, extend, cascade_dependencies, cascade_affected, verbose):
    """
    hoist - Lift containers with ease.

    Plans which containers a command touches, in which order and how.
    """
    ctx.ensure_object(dict)
    if extend and cascade_dependencies == 'none':
        cascade_dependencies = 'all'
    ctx.obj.update(
        config_files=list(config),
        prefix=prefix,
        exclude=list(exclude),
        only=only,
        cascade_dependencies=cascade_dependencies,
        cascade_affected=cascade_affected,
        verbose=verbose,
    )


def _fail(ctx, error: HoistError):
    click.secho(f"ERROR: {error}", fg='red', err=True)
    ctx.exit(error.exit_status)


def _resolve(ctx, target: str):
    """
    Loads the configuration and resolves ``target`` against it.

    :return: Tuple of config, dependency graph and target.
    """
    obj = ctx.obj
    config = ConfigParser(prefix=obj['prefix'] or None).load(obj['config_files'] or None)
    allowed = allowed_containers(config, obj['exclude'], obj['only'])
    graph = DependencyGraph.from_config(config, allowed)
    options = ResolutionOptions(
        allowed=allowed,
        cascade_dependencies=obj['cascade_dependencies'],
        cascade_affected=obj['cascade_affected'],
    )
    return config, graph, TargetResolver(config, graph, options).resolve(target)


def _run_command(ctx, command: Command, target: str):
    try:
        config, dependency_graph, resolved = _resolve(ctx, target)
        unit_of_work = UnitOfWork.build(dependency_graph, resolved.all())
    except HoistError as e:
        _fail(ctx, e)
        return

    if ctx.obj['verbose']:
        click.secho(f"Command will be applied to: {', '.join(unit_of_work.targeted())}", fg='blue')
        if command.brings_up:
            associated = unit_of_work.associated()
            if associated:
                click.secho(f"If needed, also starts containers: {', '.join(associated)}", fg='blue')
            networks = unit_of_work.required_networks(config)
            if networks:
                click.secho(f"If needed, also creates networks: {', '.join(networks)}", fg='blue')
            volumes = unit_of_work.required_volumes(config)
            if volumes:
                click.secho(f"If needed, also creates volumes: {', '.join(volumes)}", fg='blue')
        click.echo()

    driver = PrintingDriver(prefix=config.prefix, echo=click.echo)
    CommandDispatcher(unit_of_work, config, driver).dispatch(command)


def _register(command: Command, help_text: str):
    @click.argument('target', default='')
    @click.pass_context
    def run_command(ctx, target):
        _run_command(ctx, command, target)

    run_command.__doc__ = help_text
    cli.command(name=command.value)(run_command)


_register(Command.UP, "Provision and run or start the containers. Alias of `lift`.")
_register(Command.LIFT, "Provision and run or start the containers. Alias of `up`.")
_register(Command.RUN, "Run the containers.")
_register(Command.CREATE, "Create the containers.")
_register(Command.START, "Start stopped containers. Non-existant containers will be created.")
_register(Command.EXEC, "Execute a command in the targeted containers.")
_register(Command.STOP, "Stop running containers.")
_register(Command.KILL, "Kill running containers.")
_register(Command.RM, "Remove stopped containers.")
_register(Command.PAUSE, "Pause running containers.")
_register(Command.UNPAUSE, "Unpause paused containers.")
_register(Command.PROVISION, "Build or pull images.")
_register(Command.PULL, "Pull images.")
_register(Command.PUSH, "Push containers to the registry.")
_register(Command.LOGS, "Show container logs.")
_register(Command.STATUS, "Display status of containers.")
_register(Command.STATS, "Display statistics about containers.")


@cli.command()
@click.argument('target', default='')
@click.pass_context
def graph(ctx, target):
    """Dump the dependency graph as a DOT file."""
    try:
        _, dependency_graph, resolved = _resolve(ctx, target)
    except HoistError as e:
        _fail(ctx, e)
        return
    click.echo(DotConverter(dependency_graph).render(resolved.all()))


@cli.command()
def version():
    """Display the current version."""
    click.echo(f"v{__version__}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={}, auto_envvar_prefix='HOIST')


if __name__ == '__main__':
    main()
