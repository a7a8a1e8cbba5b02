"""Main CLI entry point for cmsdev.

cmsdev helps plugin developers work against a local installation of the
content-management platform: it builds and copies a plugin into the
installation's plugin directory and runs the host platform for testing.
"""

import signal
import threading
from typing import Optional, Tuple

import click

from cmsdev import __version__
from cmsdev.utils.errors import ErrorHandler
from cmsdev.utils.logging import setup_logging


def _stop_event_on_signals() -> threading.Event:
    """Return an event that is set by the first SIGINT or SIGTERM."""
    stop_event = threading.Event()

    def handler(signum, frame):
        stop_event.set()

    signal.signal(signal.SIGINT, handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, handler)

    return stop_event


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--log-file", help="Log to file in addition to console")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Configuration file (defaults to ./cmsdev.yml when present)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_file: Optional[str], config_path: Optional[str]) -> None:
    """cmsdev - plugin development helper for the CMS platform.

    Build and publish plugins into a local installation and run the host
    platform to try them out.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["log_file"] = log_file
    ctx.obj["config_path"] = config_path
    ctx.obj["error_handler"] = ErrorHandler(verbose=verbose)

    setup_logging(verbose=verbose, log_file=log_file)


def _load_config(ctx: click.Context) -> dict:
    from cmsdev.config import ConfigManager

    try:
        return ConfigManager(config_path=ctx.obj["config_path"]).load_config()
    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Loading configuration")


@cli.command()
@click.argument("source", required=False, default="")
@click.argument("destination", required=False, default="")
@click.option("--name", "-n", default="", help="Name of the plugin. *Required")
@click.option(
    "--delete",
    "-d",
    "hard",
    is_flag=True,
    help="Delete the existing destination and replace with the contents of the source.",
)
@click.option("--watch", "-w", is_flag=True, help="Watch for file changes in source and republish on change.")
@click.option("--entry", "-e", default="", help="Build the plugin using this entry point. Defaults to 'main.go'.")
@click.option("--binary", "-b", default="", help="Name of the built binary. Defaults to the plugin name.")
@click.option(
    "--copy",
    "-c",
    "extra_paths",
    multiple=True,
    help="Directory or file to copy with the plugin. May be given multiple times.",
)
@click.pass_context
def plugin(
    ctx: click.Context,
    source: str,
    destination: str,
    name: str,
    hard: bool,
    watch: bool,
    entry: str,
    binary: str,
    extra_paths: Tuple[str, ...],
) -> None:
    """Build a plugin and copy it into an installation.

    SOURCE is the plugin's development directory and DESTINATION the root of
    the installation. The binary and the plugin's files end up in
    DESTINATION/content/plugins/NAME/ (layout configurable in cmsdev.yml).
    """
    from cmsdev.plugins import PluginPublisher, PluginWatchManager, PublishRequest

    request = PublishRequest(
        plugin_name=name,
        source_dir=source,
        dest_dir=destination,
        entry_point=entry,
        binary_name=binary,
        extra_paths=list(extra_paths),
        hard=hard,
        watch=watch,
        verbose=ctx.obj["verbose"],
    )

    errors = request.validate()
    if errors:
        # Missing arguments are reported but are not a hard failure
        for message in errors:
            click.echo(message)
        return

    config = _load_config(ctx)
    publisher = PluginPublisher(config)

    if not request.watch:
        result = publisher.publish(request)
        if not result.success:
            ctx.exit(1)
        click.echo(f"✓ Plugin '{name}' published to {publisher.derive_paths(request).plugin_path}")
        return

    manager = PluginWatchManager(publisher, request)
    stop_event = _stop_event_on_signals()
    manager.publish()
    manager.run(stop_event)


@cli.command()
@click.argument("directory", required=False, default=".", type=click.Path(file_okay=False))
@click.option("--dev", is_flag=True, help="Build and run the host from source instead of the precompiled binary")
@click.pass_context
def run(ctx: click.Context, directory: str, dev: bool) -> None:
    """Run the host platform in DIRECTORY until interrupted (Ctrl+C)."""
    from cmsdev.host import HostProcess

    config = _load_config(ctx)
    host = HostProcess(directory, dev_mode=dev, config=config)
    stop_event = _stop_event_on_signals()

    try:
        host.run(stop_event)
    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Running host platform")


@cli.command()
@click.option("--force", is_flag=True, help="Overwrite an existing cmsdev.yml")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Write a starter cmsdev.yml in the current directory."""
    from cmsdev.config import ConfigManager

    try:
        path = ConfigManager(config_path=ctx.obj["config_path"]).generate_config(
            output_path=ctx.obj["config_path"], force=force
        )
        click.echo(f"✓ Wrote {path}")
    except Exception as e:
        ctx.obj["error_handler"].exit_with_error(e, "Creating configuration")


if __name__ == "__main__":
    cli()
