"""Runtime addon manager: enabled set, autoloading and themes"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from addonmgr.core import themes
from addonmgr.core.addon import Addon, AddonType
from addonmgr.core.autoload import AutoloadRegistry
from addonmgr.core.catalog import AddonCatalog, TypeLike
from addonmgr.core.requirements import DependencyResolver, Requirement, RequirementStatus
from addonmgr.exceptions import AddonManagerError

logger = logging.getLogger(__name__)

KeyList = Union[Iterable[str], Mapping[str, Any]]


class AddonManager:
    """
    Manages the addons that are started for one request or session.

    Addons are looked up in an ``AddonCatalog`` and then started, which:

    - adds them to the enabled set, ordered by priority (highest first)
    - registers their classes in the autoload registry
    - makes a theme the current theme (only one theme runs at a time)

    The manager is not thread-safe; create one per request, session or test.
    """

    def __init__(self, catalog: AddonCatalog):
        self.catalog = catalog
        self.autoloader = AutoloadRegistry()
        self.resolver = DependencyResolver(
            catalog,
            is_enabled=lambda addon: self.is_enabled(addon.key, addon.type),
            get_enabled=self.get_enabled,
        )
        self._enabled: Dict[str, Addon] = {}
        self._enabled_sorted = True
        self._theme: Optional[Addon] = None
        self._theme_subdirs: Optional[List[str]] = None

    @property
    def root(self) -> Path:
        return self.catalog.root

    # Enabled set

    def start_addon(self, addon: Addon) -> None:
        """
        Start an addon and make it available.

        Args:
            addon: The addon to start
        """
        if addon.enabled_key in self._enabled:
            self.stop_addon(self._enabled[addon.enabled_key])

        self._enabled[addon.enabled_key] = addon
        self._enabled_sorted = len(self._enabled) <= 1

        if addon.type == AddonType.THEME:
            if self._theme is not None:
                self.stop_addon(self._theme)
            self._theme = addon
            self._theme_subdirs = None

        self.autoloader.register_addon(addon)
        logger.debug(f"Started {addon.enabled_key}")

    def stop_addon(self, addon: Optional[Addon]) -> None:
        """
        Stop an addon and make it unavailable.

        Classes the addon owned fall back to the highest priority enabled
        addon that also declares them.
        """
        if addon is None:
            logger.info("Null addon supplied to stop_addon(), nothing to stop.")
            return

        started = self._enabled.pop(addon.enabled_key, None)
        self.autoloader.unregister_addon(started or addon)

        if self._theme is not None and self._theme.enabled_key == addon.enabled_key:
            self._theme = None
            self._theme_subdirs = None

        logger.debug(f"Stopped {addon.enabled_key}")

    def start_addons_by_key(self, keys: KeyList, addon_type: TypeLike) -> int:
        """
        Start addons by key, e.g. the addons listed in a configuration file.

        Args:
            keys: Addon keys, or a mapping of key to ``True`` or to a folder name
            addon_type: One of the AddonType values

        Returns:
            The number of addons started
        """
        addon_type = AddonType.coerce(addon_type)
        count = 0
        for lookup in self._lookup_keys(keys):
            addon = self._safe_lookup(lookup, addon_type)
            if addon is None:
                logger.warning(
                    f"The {addon_type.value} with key {lookup} could not be found and will not be started."
                )
            else:
                self.start_addon(addon)
                count += 1
        return count

    def stop_addons_by_key(self, keys: KeyList, addon_type: TypeLike) -> int:
        """
        Stop addons by key.

        Returns:
            The number of addons stopped
        """
        addon_type = AddonType.coerce(addon_type)
        count = 0
        for lookup in self._lookup_keys(keys):
            addon = self._safe_lookup(lookup, addon_type)
            if addon is None:
                logger.warning(
                    f"The {addon_type.value} with key {lookup} could not be found and will not be stopped."
                )
            else:
                self.stop_addon(addon)
                count += 1
        return count

    @staticmethod
    def _lookup_keys(keys: KeyList) -> List[str]:
        """Turn a key list or a key to flag/folder mapping into lookup keys."""
        if isinstance(keys, str):
            keys = [keys]

        if not isinstance(keys, Mapping):
            return [str(k) for k in keys if k]

        lookups = []
        for key, value in keys.items():
            if not value:
                continue
            if value is True or value == 1 or value == "1":
                lookups.append(str(key))
            else:
                lookups.append(str(value))
        return lookups

    def _safe_lookup(self, key: str, addon_type: AddonType) -> Optional[Addon]:
        try:
            return self.catalog.lookup_by_type(key, addon_type)
        except AddonManagerError as e:
            logger.warning(f"The {addon_type.value} with key {key} is invalid: {e}")
            return None

    def get_enabled(self) -> List[Addon]:
        """
        Get the enabled addons, highest priority first.

        Sorting is stable and only happens when the set changed since the
        last call.
        """
        if not self._enabled_sorted:
            ordered = sorted(self._enabled.items(), key=lambda item: -item[1].priority)
            self._enabled = dict(ordered)
            self._enabled_sorted = True
        return list(self._enabled.values())

    def is_enabled(self, key: str, addon_type: TypeLike) -> bool:
        addon_type = AddonType.coerce(addon_type)
        return f"{addon_type.value}/{str(key).lower()}" in self._enabled

    def get_enabled_translation_paths(self, locale: str) -> List[Path]:
        """
        Get the translation files of the enabled addons for a locale.

        Lower priority addons come first so higher priority translations
        are loaded last and win.
        """
        result = []
        for addon in reversed(self.get_enabled()):
            for subpath in addon.get_translation_paths(locale):
                result.append(addon.path(subpath))
        return result

    # Autoloading

    def lookup_by_classname(self, class_name: str, search_all: bool = False) -> Optional[Addon]:
        """
        Lookup the addon that provides a class.

        Args:
            class_name: The class name (case-insensitive)
            search_all: Also search every catalogued plugin and application.
                This reads the whole catalog and is meant for diagnostics.
        """
        entry = self.autoloader.lookup(class_name)
        if entry is not None:
            return entry.addon

        if search_all:
            class_key = class_name.lower()
            for addon in self.catalog.lookup_all_by_type(AddonType.ADDON).values():
                if class_key in addon.classes:
                    return addon
        return None

    def autoload(self, class_name: str) -> Optional[type]:
        """Load a class provided by an enabled addon, importing its file once."""
        return self.autoloader.load(class_name)

    # Themes

    def get_theme(self) -> Optional[Addon]:
        return self._theme

    def set_theme(self, theme: Optional[Addon]) -> "AddonManager":
        """Start a theme, or stop the current theme when given None."""
        if theme is not None:
            self.start_addon(theme)
        elif self._theme is not None:
            self.stop_addon(self._theme)
        return self

    def theme_subdirs(self) -> List[str]:
        """Get the current theme's directory followed by its parent themes'."""
        if self._theme_subdirs is None:
            self._theme_subdirs = themes.theme_subdirs(self._theme, self._lookup_parent_theme)
        return list(self._theme_subdirs)

    def _lookup_parent_theme(self, key: str) -> Optional[Addon]:
        parent = self._safe_lookup(key, AddonType.THEME)
        if parent is None:
            logger.warning(f"Parent theme {key} could not be found.")
        return parent

    def lookup_asset(self, subpath: str, addon: Optional[Addon] = None, must_exist: bool = True) -> str:
        """
        Lookup the root-relative path of an asset.

        The theme chain is searched first, then the addon's own directory.
        """
        return themes.lookup_asset(self.root, subpath, self.theme_subdirs(), addon, must_exist)

    # Catalog

    def scan(self, addon_type: TypeLike, persist: bool = False) -> Dict[str, Addon]:
        return self.catalog.scan(addon_type, persist)

    def lookup_addon(self, key: str) -> Optional[Addon]:
        return self.catalog.lookup_addon(key)

    def lookup_by_type(self, key: str, addon_type: TypeLike) -> Optional[Addon]:
        return self.catalog.lookup_by_type(key, addon_type)

    def lookup_all_by_type(self, addon_type: TypeLike) -> Dict[str, Addon]:
        return self.catalog.lookup_all_by_type(addon_type)

    def lookup_theme(self, key: str) -> Optional[Addon]:
        return self.catalog.lookup_theme(key)

    def lookup_locale(self, key: str) -> Optional[Addon]:
        return self.catalog.lookup_locale(key)

    def clear_cache(self) -> bool:
        return self.catalog.clear_cache()

    # Requirements

    def lookup_requirements(
        self, addon: Addon, status_filter: Optional[RequirementStatus] = None
    ) -> Dict[str, Requirement]:
        return self.resolver.lookup_requirements(addon, status_filter)

    def check_requirements(self, addon: Addon, throw: bool = False) -> bool:
        return self.resolver.check_requirements(addon, throw)

    def lookup_dependants(self, addon: Addon) -> Dict[str, Addon]:
        return self.resolver.lookup_dependants(addon)

    def check_dependants(self, addon: Addon, throw: bool = False) -> bool:
        return self.resolver.check_dependants(addon, throw)
