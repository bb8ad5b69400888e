"""Click CLI interface definitions."""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from NewsTracker.cli.runner import CommandRunner
from NewsTracker.config import load_config


@click.group(help="NewsTracker: search news articles and events.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False, exists=True),
    default=Path("config/default.yml"),
    show_default=True,
    help="Path to YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env before the config is read, so the
    API key variable named in ``api.api_key_env`` can live there.
    """
    load_dotenv()
    try:
        ctx.obj = load_config(config_path)
    except (TypeError, ValueError) as error:
        raise click.BadParameter(str(error), param_hint="--config") from error


@cli.command("search")
@click.pass_context
def search_cmd(ctx: click.Context) -> None:
    """Run the configured queries and write the results.

    Raises:
        click.Abort: When the search fails.
    """
    CommandRunner(ctx.obj).run_search(action=ctx.command.name)


@cli.command("compile")
@click.pass_context
def compile_cmd(ctx: click.Context) -> None:
    """Print the request body of each configured query as JSON."""
    CommandRunner(ctx.obj).run_compile(action=ctx.command.name)
