"""
Addon Catalog Commands

List, inspect and rescan addons, and check their requirements and dependants.
"""

import click
from rich.table import Table

from addonmgr.base import ManagerCommand
from addonmgr.core.addon import Addon, AddonType
from addonmgr.ui_components import status_markup

TYPE_CHOICE = click.Choice([t.value for t in AddonType])


def _addon_summary(addon: Addon, enabled: bool) -> dict:
    return {
        "key": addon.key,
        "name": addon.name,
        "type": addon.type.value,
        "version": addon.version,
        "priority": addon.priority,
        "subdir": addon.subdir,
        "enabled": enabled,
    }


class AddonsListCommand(ManagerCommand):
    """List the catalogued addons of a type."""

    def __init__(self, config_path, addon_type: str, verbose=False, json_output=False):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.addon_type = AddonType.coerce(addon_type)

    def execute(self) -> None:
        manager = self.ensure_manager(start_addons=True)
        addons = manager.lookup_all_by_type(self.addon_type)

        rows = [
            _addon_summary(addon, manager.is_enabled(addon.key, addon.type))
            for addon in sorted(addons.values(), key=lambda a: a.key)
        ]

        if self.json_output:
            self.output_json({"type": self.addon_type.value, "addons": rows, "total": len(rows)})
            return

        self.show_header(title="Addons", subtitle=f"Catalogued {self.addon_type.value} addons")

        if not rows:
            self.console.print(f"[yellow]No {self.addon_type.value} addons found[/yellow]")
            self.print_dim(f"Scan directories: {', '.join(manager.catalog.scan_dirs[self.addon_type])}")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Version", style="dim")
        table.add_column("Priority", justify="right")
        table.add_column("Enabled")

        for row in rows:
            table.add_row(
                row["key"],
                row["name"],
                row["version"],
                str(row["priority"]),
                "[green]yes[/green]" if row["enabled"] else "[dim]no[/dim]",
            )

        self.console.print(table)
        self.console.print(f"\n[dim]Total: {len(rows)} addons[/dim]")


class AddonsInfoCommand(ManagerCommand):
    """Show the metadata of one addon."""

    def __init__(self, config_path, key: str, addon_type: str, verbose=False, json_output=False):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.key = key
        self.addon_type = AddonType.coerce(addon_type)

    def execute(self) -> None:
        manager = self.ensure_manager(start_addons=True)
        addon = self.require_addon(self.key, self.addon_type)
        enabled = manager.is_enabled(addon.key, addon.type)

        if self.json_output:
            data = _addon_summary(addon, enabled)
            data.update(
                {
                    "requirements": addon.requirements,
                    "classes": sorted(name for name, _ in addon.classes.values()),
                    "specials": addon.specials,
                    "translations": addon.translations,
                }
            )
            self.output_json(data)
            return

        self.show_header(
            title=addon.name,
            details={"Key": addon.key, "Type": addon.type.value, "Directory": addon.subdir},
        )

        self.console.print(f"[bold]Version:[/bold] {addon.version}")
        self.console.print(f"[bold]Priority:[/bold] {addon.priority}")
        self.console.print(f"[bold]Enabled:[/bold] {'yes' if enabled else 'no'}")

        if addon.requirements:
            self.console.print("\n[bold]Requires:[/bold]")
            for key, requirement in addon.requirements.items():
                self.console.print(f"  • {key} [dim]{requirement}[/dim]")

        if addon.classes:
            self.console.print("\n[bold]Classes:[/bold]")
            for class_name, subpath in sorted(addon.classes.values()):
                self.console.print(f"  • {class_name} [dim]{subpath}[/dim]")

        if addon.specials:
            self.console.print("\n[bold]Special files:[/bold]")
            for name, subpath in addon.specials.items():
                self.console.print(f"  • {name}: [dim]{subpath}[/dim]")


class AddonsScanCommand(ManagerCommand):
    """Rescan the addon directories and rewrite the cache."""

    def __init__(self, config_path, addon_types, verbose=False, json_output=False):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.addon_types = [AddonType.coerce(t) for t in addon_types]

    def execute(self) -> None:
        manager = self.ensure_manager()
        self.init_logger(self.log_root, "addons:scan")

        counts = {}
        for addon_type in self.addon_types:
            if self.logger:
                self.logger.step(f"Scanning {addon_type.value} directories")
            found = manager.scan(addon_type, persist=True)
            counts[addon_type.value] = len(found)
            if self.logger:
                self.logger.success(f"Cached {len(found)} {addon_type.value} addons")

        if self.json_output:
            self.output_json({"scanned": counts})
            return

        self.console.print()
        self.print_success(f"Addon cache rebuilt in {manager.catalog.cache_dir}")


class AddonsRequirementsCommand(ManagerCommand):
    """Show the transitive requirements of an addon and their status."""

    def __init__(self, config_path, key: str, verbose=False, json_output=False):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.key = key

    def execute(self) -> None:
        manager = self.ensure_manager(start_addons=True)
        addon = self.require_addon(self.key)
        rows = manager.lookup_requirements(addon)
        problems = [row for row in rows.values() if row.is_problem]

        if self.json_output:
            self.output_json(
                {
                    "addon": addon.key,
                    "requirements": [
                        {"key": row.key, "requirement": row.requirement, "status": row.status.name.lower()}
                        for row in rows.values()
                    ],
                    "ok": not problems,
                },
                exit_code=1 if problems else 0,
            )
            return

        self.show_header(title="Requirements", details={"Addon": addon.name})

        if not rows:
            self.print_success(f"{addon.name} has no requirements")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Addon", style="cyan", no_wrap=True)
        table.add_column("Requirement", style="dim")
        table.add_column("Status")
        for row in rows.values():
            table.add_row(row.key, row.requirement or "*", status_markup(row.status.name.lower()))
        self.console.print(table)

        if problems:
            self.console.print()
            self.exit_with_error(f"{len(problems)} requirements of {addon.name} are not met")

        self.console.print()
        self.print_success(f"All requirements of {addon.name} can be met")


class AddonsDependantsCommand(ManagerCommand):
    """List the enabled addons that require an addon."""

    def __init__(self, config_path, key: str, verbose=False, json_output=False):
        super().__init__(config_path, verbose=verbose, json_output=json_output)
        self.key = key

    def execute(self) -> None:
        manager = self.ensure_manager(start_addons=True)
        addon = self.require_addon(self.key)
        dependants = manager.lookup_dependants(addon)

        if self.json_output:
            self.output_json({"addon": addon.key, "dependants": sorted(dependants)})
            return

        self.show_header(title="Dependants", details={"Addon": addon.name})

        if not dependants:
            self.print_success(f"No enabled addon depends on {addon.name}")
            return

        for enabled_key, dependant in dependants.items():
            self.console.print(f"  • {dependant.name} [dim]({enabled_key})[/dim]")
        self.print_dim(f"\nStop these before stopping {addon.name}.")


# Click command wrappers
@click.command(name="addons:list")
@click.option("--type", "addon_type", type=TYPE_CHOICE, default="addon", help="Addon type")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def addons_list(obj, addon_type, verbose, json_output):
    """
    List catalogued addons

    Examples:
        addonmgr addons:list
        addonmgr addons:list --type theme
    """
    cmd = AddonsListCommand(obj["config"], addon_type, verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="addons:info")
@click.argument("key")
@click.option("--type", "addon_type", type=TYPE_CHOICE, default="addon", help="Addon type")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def addons_info(obj, key, addon_type, verbose, json_output):
    """
    Show detailed information about an addon

    Examples:
        addonmgr addons:info vanilla
        addonmgr addons:info mytheme --type theme
    """
    cmd = AddonsInfoCommand(obj["config"], key, addon_type, verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="addons:scan")
@click.option("--type", "addon_types", type=TYPE_CHOICE, multiple=True, help="Addon type (default: all)")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def addons_scan(obj, addon_types, verbose, json_output):
    """
    Rescan addon directories and rebuild the cache

    Examples:
        addonmgr addons:scan
        addonmgr addons:scan --type theme --type locale
    """
    types = addon_types or [t.value for t in AddonType]
    cmd = AddonsScanCommand(obj["config"], types, verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="addons:requirements")
@click.argument("key")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def addons_requirements(obj, key, verbose, json_output):
    """
    Check the requirements of an addon

    Exits with status 1 when a requirement is missing or has the wrong version.

    Examples:
        addonmgr addons:requirements vanilla
    """
    cmd = AddonsRequirementsCommand(obj["config"], key, verbose=verbose, json_output=json_output)
    cmd.run()


@click.command(name="addons:dependants")
@click.argument("key")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def addons_dependants(obj, key, verbose, json_output):
    """
    List enabled addons that depend on an addon

    Examples:
        addonmgr addons:dependants conversations
    """
    cmd = AddonsDependantsCommand(obj["config"], key, verbose=verbose, json_output=json_output)
    cmd.run()

