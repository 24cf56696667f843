#!/usr/bin/env python
import asyncio
import logging
import sys

import click
import yaml

from .config import get_widget_bridge_home_dir, load_config
from .exceptions import ConfigError, ResolutionError
from .logging_config import setup_logging
from .registry import MODEL, VIEW
from .resolver import TypeResolver
from .runtime import WidgetRuntime

logger = logging.getLogger("widget_bridge")


def _build_runtime(config_path):
    try:
        config = load_config(config_path)
        return WidgetRuntime.from_config(config)
    except ConfigError as e:
        click.echo(click.style(f"Configuration error: {e.detail}", fg="red"), err=True)
        sys.exit(2)


@click.group()
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Path to the bridge config file.")
@click.option("-V", "--verbose", is_flag=True, help="Enable verbose (DEBUG level) logging.")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Widget Bridge Command-Line Interface Tool"""
    log_level = logging.DEBUG if verbose else logging.WARNING
    setup_logging(str(get_widget_bridge_home_dir()), level=log_level, console_output=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.pass_context
def types(ctx):
    """Lists the registered widget models and views."""
    runtime = _build_runtime(ctx.obj["config_path"])
    models = runtime.registry.available_models()
    views = runtime.registry.available_views()

    click.echo(f"Models ({len(models)}):")
    for name in models:
        click.echo(f"  {name}")
    click.echo(f"Views ({len(views)}):")
    for name in views:
        click.echo(f"  {name}")


@cli.command()
@click.argument("kind", type=click.Choice([MODEL, VIEW]))
@click.argument("name")
@click.option("-m", "--module", "module_name", default=None, help="Module to load the type from.")
@click.pass_context
def resolve(ctx, kind, name, module_name):
    """Resolves a widget type the way the managers do."""
    runtime = _build_runtime(ctx.obj["config_path"])
    resolver = TypeResolver(runtime.registry, runtime.loader)
    try:
        found = asyncio.run(resolver.resolve(kind, name, module_name))
    except ResolutionError as e:
        click.echo(click.style(e.detail, fg="red"), err=True)
        sys.exit(1)

    qualified = f"{getattr(found, '__module__', '?')}.{getattr(found, '__qualname__', repr(found))}"
    click.echo(qualified)


@cli.command("show-config")
@click.pass_context
def show_config(ctx):
    """Prints the effective configuration."""
    try:
        config = load_config(ctx.obj["config_path"])
    except ConfigError as e:
        click.echo(click.style(f"Configuration error: {e.detail}", fg="red"), err=True)
        sys.exit(2)
    click.echo(yaml.safe_dump(config.model_dump(), sort_keys=True).rstrip())


if __name__ == "__main__":
    cli()
