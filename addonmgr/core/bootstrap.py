"""Startup sequence: build a manager from configuration and start its addons"""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from addonmgr.core.addon import AddonType
from addonmgr.core.catalog import AddonCatalog
from addonmgr.core.config_loader import ConfigLoader, ManagerConfig
from addonmgr.core.manager import AddonManager

logger = logging.getLogger(__name__)

BOOTSTRAP_FUNCTION = "bootstrap"


def create_manager(config: ManagerConfig) -> AddonManager:
    """Create an addon manager over a fresh catalog for a configuration."""
    catalog = AddonCatalog(config.root, config.scan_dirs, cache_dir=config.cache_dir)
    return AddonManager(catalog)


def start_configured_addons(
    manager: AddonManager, config: ManagerConfig, mobile: bool = False
) -> Dict[str, int]:
    """
    Start the addons listed in the configuration.

    Plugins start first, then applications, locales and finally the theme.

    Args:
        manager: Manager to start the addons in
        config: Loaded configuration
        mobile: Start the mobile theme when one is configured

    Returns:
        Number of addons started per group
    """
    enabled = config.enabled
    counts = {
        "plugins": manager.start_addons_by_key(enabled.plugins, AddonType.ADDON),
        "applications": manager.start_addons_by_key(enabled.applications, AddonType.ADDON),
        "locales": manager.start_addons_by_key(list(enabled.locales), AddonType.LOCALE),
        "theme": 0,
    }

    theme_key = config.get_theme(mobile)
    if theme_key:
        counts["theme"] = manager.start_addons_by_key([theme_key], AddonType.THEME)

    logger.info(
        "Started %d plugins, %d applications, %d locales and %d theme",
        counts["plugins"],
        counts["applications"],
        counts["locales"],
        counts["theme"],
    )
    return counts


def load_addon_configs(manager: AddonManager) -> Dict[str, Any]:
    """
    Merge the ``config`` special file of every enabled addon.

    Addons are merged in enabled order, so on conflicting keys the value of
    the highest priority addon is kept.

    Returns:
        Merged configuration mapping
    """
    merged: Dict[str, Any] = {}
    for addon in reversed(manager.get_enabled()):
        subpath = addon.get_special("config")
        if not subpath:
            continue

        path = addon.path(subpath)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Skipping config of {addon.enabled_key}: {e}")
            continue

        if not isinstance(data, dict):
            logger.warning(f"Skipping config of {addon.enabled_key}: {path} must contain a mapping")
            continue
        merged.update(data)

    return merged


def run_bootstrap_hooks(manager: AddonManager) -> int:
    """
    Run the ``bootstrap`` special file of every enabled addon.

    Each file is executed at most once per manager. When it defines a
    ``bootstrap`` function, the function is called with the manager.

    Returns:
        Number of bootstrap files executed
    """
    count = 0
    for addon in manager.get_enabled():
        subpath = addon.get_special("bootstrap")
        if not subpath:
            continue

        path = addon.path(subpath)
        if manager.autoloader.is_loaded(path):
            continue

        module = manager.autoloader.load_file(addon, path)
        hook = getattr(module, BOOTSTRAP_FUNCTION, None)
        if callable(hook):
            hook(manager)
        count += 1

    return count


def bootstrap(
    config_path: Union[str, Path], mobile: bool = False, run_hooks: bool = True
) -> AddonManager:
    """
    Load a configuration file, start its addons and run their bootstrap files.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = ConfigLoader(config_path).load()
    manager = create_manager(config)
    start_configured_addons(manager, config, mobile=mobile)
    if run_hooks:
        run_bootstrap_hooks(manager)
    return manager

