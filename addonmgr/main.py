#!/usr/bin/env python3
"""Addon Manager CLI - Main entry point"""

import functools
import os
import sys

import rich_click as click
from rich.console import Console

from addonmgr import __version__
from addonmgr.commands.addons import (
    addons_dependants,
    addons_info,
    addons_list,
    addons_requirements,
    addons_scan,
)
from addonmgr.commands.cache import cache_clear
from addonmgr.commands.themes import assets_lookup, theme_chain
from addonmgr.constants import DEFAULT_CONFIG_FILE

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100

# COMMANDS: Bold cyan
click.rich_click.STYLE_COMMAND = "bold cyan"

# OPTIONS
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_ARGUMENT = "bold yellow"

# HEADERS
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold cyan"

# METAVARS
click.rich_click.STYLE_METAVAR = "bold yellow"

# PANEL BORDERS
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.STYLE_COMMANDS_PANEL_BORDER = "cyan"

console = Console()

BANNER = """
[bold cyan]╔═══════════════════════════════════════════════════════════╗[/bold cyan]
[bold cyan]║[/bold cyan]  [bold white]addonmgr[/bold white] - Addon catalog and runtime registry      [bold cyan]║[/bold cyan]
[bold cyan]╚═══════════════════════════════════════════════════════════╝[/bold cyan]
"""


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""
    from click.exceptions import ClickException

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)
        except Exception as e:
            console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}\n")

            if os.environ.get("DEBUG") or os.environ.get("VERBOSE"):
                import traceback

                console.print("[dim]Traceback:[/dim]")
                traceback.print_exc()
            sys.exit(1)

    return wrapper


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    envvar="ADDONMGR_CONFIG",
    help="Addon manager configuration file",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """
    addonmgr - Discover, cache and resolve addons.

    \b
    Quick Start:
      addonmgr addons:scan                   # Rebuild the addon cache
      addonmgr addons:list                   # List plugins and applications
      addonmgr addons:list --type theme      # List themes
      addonmgr addons:requirements vanilla   # Check requirements
      addonmgr theme:chain                   # Show the theme chain
      addonmgr cache:clear                   # Drop the cache
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = config_path

    if ctx.invoked_subcommand is None:
        console.print(BANNER)
        console.print("[yellow]Run 'addonmgr --help' for usage[/yellow]\n")


# Register addons commands (colon namespaced)
cli.add_command(addons_list)
cli.add_command(addons_info)
cli.add_command(addons_scan)
cli.add_command(addons_requirements)
cli.add_command(addons_dependants)
# Register cache commands
cli.add_command(cache_clear)
# Register theme commands
cli.add_command(theme_chain)
cli.add_command(assets_lookup)


@handle_cli_errors
def main():
    """Main entry point with error handling."""
    cli()


if __name__ == "__main__":
    main()
