"""Addon catalog with directory scanning and two-tier caching"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union

from addonmgr.constants import ERROR_CACHE_DIR_REQUIRED
from addonmgr.core.addon import Addon, AddonType
from addonmgr.core.cache_store import MISSING, CacheStore
from addonmgr.exceptions import AddonManagerError, ConfigurationError

logger = logging.getLogger(__name__)

AddonFactory = Callable[[Path, str], Addon]
TypeLike = Union[AddonType, str]


def uses_multi_cache(addon_type: AddonType) -> bool:
    """Plugins and applications are cached in one bulk file, other types per addon."""
    return addon_type == AddonType.ADDON


class AddonCatalog:
    """
    Discovers addons in scan directories and keeps them in a cache.

    The ``addon`` type is cached as one bulk document holding every addon.
    Themes and locales are cached one document per addon with a separate
    index of key to directory, so looking up one theme never loads the rest.
    """

    def __init__(
        self,
        root: Union[str, Path],
        scan_dirs: Mapping[TypeLike, Union[str, Iterable[str]]],
        cache_dir: Optional[Union[str, Path]] = None,
        addon_factory: Optional[AddonFactory] = None,
    ):
        """
        Initialize the addon catalog.

        Args:
            root: Absolute root directory all scan directories are relative to
            scan_dirs: Root-relative scan directories indexed by addon type
            cache_dir: Cache directory (relative paths are resolved against root)
            addon_factory: Callable building an Addon from (root, subdir)
        """
        self.root = Path(root).resolve()
        self.addon_factory = addon_factory or Addon.from_directory

        if cache_dir:
            cache_path = Path(cache_dir)
            if not cache_path.is_absolute():
                cache_path = self.root / cache_path
            self.store = CacheStore(cache_path)
        else:
            self.store = CacheStore(None)

        self.scan_dirs: Dict[AddonType, List[str]] = {t: [] for t in AddonType}
        for addon_type, dirs in scan_dirs.items():
            if isinstance(dirs, str):
                dirs = [dirs]
            self.scan_dirs[AddonType.coerce(addon_type)] = [
                "/" + str(d).strip("/") for d in dirs
            ]

        self._multi_cache: Optional[Dict[str, Addon]] = None
        self._single_cache: Dict[AddonType, Dict[str, Optional[Addon]]] = {}
        self._single_index: Dict[AddonType, Dict[str, str]] = {}

        self.store.ensure_dirs(t.value for t in AddonType if not uses_multi_cache(t))

    @property
    def cache_dir(self) -> Optional[Path]:
        return self.store.cache_dir

    def scan_addon_dirs(self, addon_type: TypeLike) -> Dict[str, str]:
        """
        List candidate addon directories for a type.

        Returns:
            Mapping of lower-cased folder name to root-relative directory
        """
        addon_type = AddonType.coerce(addon_type)
        result: Dict[str, str] = {}

        for scan_dir in self.scan_dirs[addon_type]:
            base = self.root / scan_dir.lstrip("/")
            if not base.is_dir():
                continue
            for path in sorted(base.iterdir()):
                if path.is_dir() and not path.name.startswith((".", "__")):
                    result[path.name.lower()] = f"{scan_dir.rstrip('/')}/{path.name}"

        return result

    def scan(self, addon_type: TypeLike, persist: bool = False) -> Dict[str, Addon]:
        """
        Scan the directories of all addons of a type.

        Args:
            addon_type: One of the AddonType values
            persist: Whether to save the found addons to the cache

        Returns:
            Mapping of addon key to Addon

        Raises:
            ConfigurationError: If persisting without a cache directory
        """
        addon_type = AddonType.coerce(addon_type)
        if persist and not self.store.enabled:
            raise ConfigurationError(ERROR_CACHE_DIR_REQUIRED)

        addons: Dict[str, Addon] = {}
        addon_dirs = self.scan_addon_dirs(addon_type)
        for subdir in addon_dirs.values():
            try:
                addon = self.addon_factory(self.root, subdir)
            except AddonManagerError as e:
                logger.warning(f"The {addon_type.value} in {subdir} is invalid: {e}")
                continue
            addons[addon.key] = addon

        if uses_multi_cache(addon_type):
            self._multi_cache = addons
        else:
            cache = self._single_cache.setdefault(addon_type, {})
            cache.update(addons)
            self._single_index[addon_type] = addon_dirs

        if persist:
            if uses_multi_cache(addon_type):
                self.store.write(
                    addon_type.value, {key: a.to_dict() for key, a in addons.items()}
                )
            else:
                for addon in addons.values():
                    self.store.write(self._single_name(addon_type, addon.key), addon.to_dict())
                self.store.write(self._index_name(addon_type), addon_dirs)

        return addons

    def _ensure_multi_cache(self) -> Dict[str, Addon]:
        """Load the bulk cache from disk, or scan and cache it."""
        if self._multi_cache is None:
            if self.store.enabled:
                data = self.store.read(AddonType.ADDON.value)
                if isinstance(data, dict):
                    self._multi_cache = self._addons_from_cache(data)
                if self._multi_cache is None:
                    self.scan(AddonType.ADDON, persist=True)
            else:
                self.scan(AddonType.ADDON)
        return self._multi_cache

    def _addons_from_cache(self, data: Dict[str, dict]) -> Optional[Dict[str, Addon]]:
        try:
            return {key: Addon.from_dict(row, self.root) for key, row in data.items()}
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.debug(f"Ignoring malformed {AddonType.ADDON.value} cache: {e}")
            return None

    def lookup_addon(self, key: str) -> Optional[Addon]:
        """
        Lookup a plugin or application by key (case-insensitive).

        Returns:
            Addon or None if not found
        """
        return self._ensure_multi_cache().get(str(key).lower())

    def lookup_by_type(self, key: str, addon_type: TypeLike) -> Optional[Addon]:
        """Lookup an addon by key within its type."""
        addon_type = AddonType.coerce(addon_type)
        if uses_multi_cache(addon_type):
            return self.lookup_addon(key)
        return self._lookup_single_cached(key, addon_type)

    def lookup_theme(self, key: str) -> Optional[Addon]:
        return self._lookup_single_cached(key, AddonType.THEME)

    def lookup_locale(self, key: str) -> Optional[Addon]:
        return self._lookup_single_cached(key, AddonType.LOCALE)

    def lookup_all_by_type(self, addon_type: TypeLike) -> Dict[str, Addon]:
        """
        Get all addons of a type.

        For per-addon cached types the index is walked and each addon is loaded
        individually. Entries that no longer load are dropped from the index,
        which is then saved again.
        """
        addon_type = AddonType.coerce(addon_type)
        if uses_multi_cache(addon_type):
            return dict(self._ensure_multi_cache())

        addons: Dict[str, Addon] = {}
        for key, subdir in list(self._get_single_index(addon_type).items()):
            try:
                addon = self._lookup_single_cached(key, addon_type)
            except AddonManagerError as e:
                logger.warning(f"The {addon_type.value} in {subdir} is invalid and will be skipped: {e}")
                addon = None
            else:
                if addon is None:
                    logger.warning(f"The {addon_type.value} in {subdir} is missing and will be skipped.")

            if addon is None:
                self._delete_single_index_key(addon_type, key)
            else:
                addons[addon.key] = addon
        return addons

    def _get_single_index(self, addon_type: AddonType) -> Dict[str, str]:
        """Get the key to directory index for a per-addon cached type."""
        if addon_type not in self._single_index:
            data = self.store.read(self._index_name(addon_type))
            if isinstance(data, dict):
                self._single_index[addon_type] = {str(k).lower(): v for k, v in data.items()}
            else:
                addon_dirs = self.scan_addon_dirs(addon_type)
                if self.store.enabled:
                    self.store.write(self._index_name(addon_type), addon_dirs)
                self._single_index[addon_type] = addon_dirs
        return self._single_index[addon_type]

    def _delete_single_index_key(self, addon_type: AddonType, key: str) -> bool:
        """
        Delete an item from a per-addon index and save the index.

        Returns:
            True if the key was in the index
        """
        index = self._get_single_index(addon_type)
        if key not in index:
            return False

        del index[key]
        self._single_cache.get(addon_type, {}).pop(key, None)
        if self.store.enabled:
            self.store.write(self._index_name(addon_type), index)
            self.store.delete(self._single_name(addon_type, key))
        return True

    def _lookup_single_cached(self, key: str, addon_type: AddonType) -> Optional[Addon]:
        """
        Lookup an addon that is cached on a per-addon basis.

        Looks in memory, then the cache file, then the scan directories.
        A miss is cached too so repeated lookups stay cheap.

        Raises:
            AddonConstructionError: If the addon's directory is not a valid addon
        """
        key = str(key).lower()
        cache = self._single_cache.setdefault(addon_type, {})
        if key in cache:
            return cache[key]

        name = self._single_name(addon_type, key)
        data = self.store.read(name)
        if data is not MISSING and (data is None or isinstance(data, dict)):
            try:
                addon = Addon.from_dict(data, self.root) if data else None
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.debug(f"Ignoring malformed cache entry {name}: {e}")
            else:
                cache[key] = addon
                return addon

        addon = None
        subdir = self._find_addon_dir(key, addon_type)
        if subdir is not None:
            addon = self.addon_factory(self.root, subdir)

        if self.store.enabled:
            self.store.write(name, addon.to_dict() if addon else None)
        cache[key] = addon
        return addon

    def _find_addon_dir(self, key: str, addon_type: AddonType) -> Optional[str]:
        for scan_dir in self.scan_dirs[addon_type]:
            base = self.root / scan_dir.lstrip("/")
            if not base.is_dir():
                continue
            for path in sorted(base.iterdir()):
                if path.is_dir() and path.name.lower() == key:
                    return f"{scan_dir.rstrip('/')}/{path.name}"
        return None

    def clear_cache(self) -> bool:
        """
        Remove all cached files and in-memory caches.

        Returns:
            True if all files were removed
        """
        self._multi_cache = None
        self._single_cache = {}
        self._single_index = {}
        return self.store.clear()

    @staticmethod
    def _index_name(addon_type: AddonType) -> str:
        return f"{addon_type.value}-index"

    @staticmethod
    def _single_name(addon_type: AddonType, key: str) -> str:
        return f"{addon_type.value}/{key}"
