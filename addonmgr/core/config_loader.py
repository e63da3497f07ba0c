"""Configuration management for addon manager setups"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from addonmgr.constants import (
    DEFAULT_CACHE_DIR,
    DEFAULT_LOCALE,
    DEFAULT_SCAN_DIRS,
    DEFAULT_THEME,
    ERROR_CONFIG_INVALID,
)
from addonmgr.exceptions import ConfigurationError

ENABLED_GROUPS = ("plugins", "applications", "locales")


@dataclass
class EnabledAddons:
    """Addons to start at bootstrap, as key to flag or folder mappings"""

    plugins: Dict[str, Any] = field(default_factory=dict)
    applications: Dict[str, Any] = field(default_factory=dict)
    locales: Dict[str, Any] = field(default_factory=dict)
    theme: Optional[str] = DEFAULT_THEME
    mobile_theme: Optional[str] = None


class ManagerConfig:
    """Represents a loaded and validated addon manager configuration"""

    def __init__(self, config_dict: Dict[str, Any], base_dir: Optional[Path] = None):
        """
        Initialize the configuration

        Args:
            config_dict: Raw configuration dictionary from the config file
            base_dir: Directory a relative root is resolved against
                (the config file's directory, defaults to the working directory)
        """
        self.raw_config = dict(config_dict)
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self._apply_defaults()
        self._validate()

        self.root = (self.base_dir / str(self.raw_config["root"])).resolve()
        self.cache_dir = self._resolve_cache_dir(self.raw_config["cache_dir"])
        self.scan_dirs = self._parse_scan_dirs(self.raw_config["scan_dirs"])
        self.enabled = self._parse_enabled(self.raw_config["enabled"])
        self.locale = str(self.raw_config["locale"])

    def _apply_defaults(self) -> None:
        """Apply default values to configuration"""
        self.raw_config.setdefault("root", ".")
        self.raw_config.setdefault("cache_dir", DEFAULT_CACHE_DIR)
        self.raw_config.setdefault("scan_dirs", DEFAULT_SCAN_DIRS)
        self.raw_config.setdefault("locale", DEFAULT_LOCALE)
        if self.raw_config.get("enabled") is None:
            self.raw_config["enabled"] = {}

    def _validate(self) -> None:
        """Validate configuration shapes"""
        if not isinstance(self.raw_config["scan_dirs"], dict):
            raise ConfigurationError(
                ERROR_CONFIG_INVALID.format(error="'scan_dirs' must be a mapping of addon type to directories")
            )

        for addon_type, dirs in self.raw_config["scan_dirs"].items():
            if addon_type not in DEFAULT_SCAN_DIRS:
                raise ConfigurationError(
                    ERROR_CONFIG_INVALID.format(error=f"unknown addon type '{addon_type}' in 'scan_dirs'"),
                    context=f"Valid types: {', '.join(DEFAULT_SCAN_DIRS)}",
                )
            if not isinstance(dirs, (str, list)):
                raise ConfigurationError(
                    ERROR_CONFIG_INVALID.format(error=f"'scan_dirs.{addon_type}' must be a string or a list")
                )

        enabled = self.raw_config["enabled"]
        if not isinstance(enabled, dict):
            raise ConfigurationError(ERROR_CONFIG_INVALID.format(error="'enabled' must be a mapping"))

        for group in ENABLED_GROUPS:
            value = enabled.get(group)
            if value is not None and not isinstance(value, (dict, list)):
                raise ConfigurationError(
                    ERROR_CONFIG_INVALID.format(error=f"'enabled.{group}' must be a mapping or a list")
                )

        for theme_field in ("theme", "mobile_theme"):
            value = enabled.get(theme_field)
            if value is not None and not isinstance(value, str):
                raise ConfigurationError(
                    ERROR_CONFIG_INVALID.format(error=f"'enabled.{theme_field}' must be a theme key")
                )

    def _resolve_cache_dir(self, cache_dir: Any) -> Optional[Path]:
        if not cache_dir:
            return None
        path = Path(str(cache_dir))
        if not path.is_absolute():
            path = self.root / path
        return path

    @staticmethod
    def _parse_scan_dirs(scan_dirs: Dict[str, Union[str, List[str]]]) -> Dict[str, List[str]]:
        result = {}
        for addon_type, dirs in scan_dirs.items():
            if isinstance(dirs, str):
                dirs = [dirs]
            result[addon_type] = [str(d) for d in dirs]
        return result

    @staticmethod
    def _parse_enabled(enabled: Dict[str, Any]) -> EnabledAddons:
        groups = {}
        for group in ENABLED_GROUPS:
            value = enabled.get(group) or {}
            if isinstance(value, list):
                value = {str(key): True for key in value}
            groups[group] = value

        return EnabledAddons(
            theme=enabled.get("theme", DEFAULT_THEME),
            mobile_theme=enabled.get("mobile_theme"),
            **groups,
        )

    def get_theme(self, mobile: bool = False) -> Optional[str]:
        """
        Get the theme to start

        Args:
            mobile: Prefer the mobile theme when one is configured

        Returns:
            Theme key or None when no theme is configured
        """
        if mobile and self.enabled.mobile_theme:
            return self.enabled.mobile_theme
        return self.enabled.theme

    def get_cache_dir(self) -> Optional[Path]:
        return self.cache_dir

    def __repr__(self) -> str:
        return f"ManagerConfig(root={self.root}, cache_dir={self.cache_dir})"


class ConfigLoader:
    """Loads addon manager configurations from YAML files"""

    def __init__(self, config_path: Union[str, Path]):
        """
        Initialize configuration loader

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)

    def load(self) -> ManagerConfig:
        """
        Load the configuration.

        A missing file yields the defaults, rooted at the file's directory.

        Returns:
            ManagerConfig instance

        Raises:
            ConfigurationError: If the file can't be parsed or is invalid
        """
        base_dir = self.config_path.resolve().parent
        if not self.config_path.exists():
            return ManagerConfig({}, base_dir)

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                ERROR_CONFIG_INVALID.format(error=f"cannot read {self.config_path}"),
                context=str(e),
            )

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                ERROR_CONFIG_INVALID.format(error=f"{self.config_path} must contain a mapping")
            )

        return ManagerConfig(config_dict, base_dir)

    def exists(self) -> bool:
        return self.config_path.exists()
