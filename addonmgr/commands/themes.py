"""
Theme Commands

Show the theme inheritance chain and resolve assets through it.
"""

from typing import Optional

import click

from addonmgr.base import ManagerCommand
from addonmgr.core.bootstrap import start_configured_addons


class ThemeChainCommand(ManagerCommand):
    """Show the current theme and the themes it inherits from."""

    def __init__(self, config_path, mobile: bool = False, verbose=False, json_output=False):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.mobile = mobile

    def execute(self) -> None:
        manager = self.ensure_manager()
        start_configured_addons(manager, self.config, mobile=self.mobile)
        theme = manager.get_theme()
        subdirs = manager.theme_subdirs()

        if self.json_output:
            self.output_json({"theme": theme.key if theme else None, "chain": subdirs})
            return

        self.show_header(title="Theme Chain", subtitle="Most specific theme first")

        if theme is None:
            self.print_warning(f"No theme is enabled (configured: {self.config.get_theme(self.mobile)})")
            return

        for depth, subdir in enumerate(subdirs):
            self.console.print(f"{'  ' * depth}[cyan]{subdir}[/cyan]")


class AssetLookupCommand(ManagerCommand):
    """Resolve an asset through the theme chain and an addon."""

    def __init__(self, config_path, subpath: str, addon_key: Optional[str], verbose=False, json_output=False):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.subpath = subpath
        self.addon_key = addon_key

    def execute(self) -> None:
        manager = self.ensure_manager(start_addons=True)
        addon = self.require_addon(self.addon_key) if self.addon_key else None
        path = manager.lookup_asset(self.subpath, addon)

        if self.json_output:
            self.output_json({"subpath": self.subpath, "path": path or None}, exit_code=0 if path else 1)
            return

        if not path:
            self.exit_with_error(f"Asset {self.subpath} not found")
        print(path)


@click.command(name="theme:chain")
@click.option("--mobile", is_flag=True, help="Use the mobile theme")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def theme_chain(obj, mobile, verbose, json_output):
    """
    Show the theme inheritance chain

    Examples:
        addonmgr theme:chain
        addonmgr theme:chain --mobile
    """
    cmd = ThemeChainCommand(obj["config"], mobile=mobile, verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="assets:lookup")
@click.argument("subpath")
@click.option("--addon", "addon_key", help="Addon to fall back to")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def assets_lookup(obj, subpath, addon_key, verbose, json_output):
    """
    Find an asset in the theme chain or an addon

    Examples:
        addonmgr assets:lookup views/default.master.tpl
        addonmgr assets:lookup design/style.css --addon dashboard
    """
    cmd = AssetLookupCommand(obj["config"], subpath, addon_key, verbose=verbose, json_output=json_output)
    cmd.run()
