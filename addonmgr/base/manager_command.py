"""
Manager Command Base Class

Base class for commands that work on an addon manager.
Provides configuration loading and manager initialization.
"""

from pathlib import Path
from typing import Optional, Union

from addonmgr.core.addon import Addon, AddonType
from addonmgr.core.bootstrap import create_manager, start_configured_addons
from addonmgr.core.config_loader import ConfigLoader, ManagerConfig
from addonmgr.core.manager import AddonManager
from addonmgr.exceptions import AddonNotFoundError

from .base_command import BaseCommand


class ManagerCommand(BaseCommand):
    """
    Base class for commands that need an addon manager.

    Provides:
    - Configuration loading from the --config file
    - Lazy manager creation, optionally with the configured addons started
    - Addon lookup that fails with a clean error
    """

    def __init__(
        self,
        config_path: Union[str, Path],
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output)
        self.config_path = Path(config_path)
        self._config: Optional[ManagerConfig] = None
        self._manager: Optional[AddonManager] = None

    @property
    def config(self) -> ManagerConfig:
        if self._config is None:
            self._config = ConfigLoader(self.config_path).load()
        return self._config

    @property
    def log_root(self) -> Path:
        """Command logs live next to the cache, or under the root without one."""
        base = self.config.cache_dir or self.config.root
        return base / "logs"

    def ensure_manager(self, start_addons: bool = False) -> AddonManager:
        """
        Ensure the addon manager is initialized.

        Args:
            start_addons: Start the addons enabled in the configuration

        Returns:
            AddonManager instance
        """
        if self._manager is None:
            self._manager = create_manager(self.config)
            if start_addons:
                start_configured_addons(self._manager, self.config)
        return self._manager

    def require_addon(self, key: str, addon_type: AddonType = AddonType.ADDON) -> Addon:
        """
        Lookup an addon or fail.

        Raises:
            AddonNotFoundError: If the addon isn't in the catalog
        """
        addon = self.ensure_manager().lookup_by_type(key, addon_type)
        if addon is None:
            raise AddonNotFoundError(key, addon_type.value)
        return addon
