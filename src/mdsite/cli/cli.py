"""CLI entrypoint: Typer app definition and command registration"""

from typing import Annotated

import typer

from mdsite.cli.commands import build_cmd, list_cmd, render_cmd, slugs_cmd
from mdsite.config import load_config
from mdsite.log import setup_logging


app = typer.Typer(name="mdsite", no_args_is_help=True, help="Markdown/MDX content pipeline for static sites")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    ):
    """Configure logging before any command runs."""
    try:
        level = load_config().log_level
    except ValueError:
        level = "WARNING"    # commands report the config error themselves
    setup_logging(level, verbose)


app.command(name="list")(list_cmd)
app.command(name="slugs")(slugs_cmd)
app.command(name="render")(render_cmd)
app.command(name="build")(build_cmd)
