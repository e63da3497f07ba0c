"""
Cache Commands

Drop the addon metadata cache so the next lookup rescans the addon directories.
"""

import click

from addonmgr.base import ManagerCommand


class CacheClearCommand(ManagerCommand):
    """Delete every addon cache file."""

    def execute(self) -> None:
        manager = self.ensure_manager()
        cache_dir = manager.catalog.cache_dir

        if cache_dir is None:
            if self.json_output:
                self.output_json({"cleared": False, "cache_dir": None})
                return
            self.print_warning("Caching is disabled, nothing to clear")
            return

        self.init_logger(self.log_root, "cache:clear")
        if self.logger:
            self.logger.step(f"Clearing {cache_dir}")

        cleared = manager.clear_cache()

        if self.json_output:
            self.output_json({"cleared": cleared, "cache_dir": str(cache_dir)}, exit_code=0 if cleared else 1)
            return

        if cleared:
            self.logger.success("Addon cache cleared")
        else:
            self.logger.warning("Some cache files could not be deleted")
            raise SystemExit(1)


@click.command(name="cache:clear")
@click.option("--verbose", "-v", is_flag=True)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.pass_obj
def cache_clear(obj, verbose, json_output):
    """
    Clear the addon cache

    Examples:
        addonmgr cache:clear
    """
    cmd = CacheClearCommand(obj["config"], verbose=verbose, json_output=json_output)
    cmd.run()
