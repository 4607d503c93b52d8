"""qt-mongo CLI - explain plan analysis from the terminal.

Usage: qt-mongo <command> [options]
"""

from __future__ import annotations

import click

from .. import __version__


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential output.")
@click.version_option(__version__, prog_name="qt-mongo")
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """qt-mongo - explain plan analysis for document databases."""
    import logging

    from qt_shared.config import get_settings

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")
    elif quiet:
        logging.basicConfig(level=logging.WARNING)
    else:
        level = getattr(logging, get_settings().log_level, logging.INFO)
        logging.basicConfig(level=level, format="%(message)s")


# --- Lazy command registration (keeps `qt-mongo --help` fast) ---

def _register_commands() -> None:
    """Import and register all sub-commands."""
    from .cmd_analyze import analyze
    from .cmd_diff import diff
    from .cmd_pipeline import pipeline

    main.add_command(analyze)
    main.add_command(diff)
    main.add_command(pipeline)


_register_commands()
