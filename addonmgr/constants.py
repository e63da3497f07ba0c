"""
Addon Manager Constants

Centralized constants for file names, default priorities and configuration.
"""

# Addon Info File
ADDON_INFO_FILE = "addon.yml"

# Default Priorities (higher wins class ownership)
PRIORITY_NORMAL = 100
PRIORITY_HIGH = 1000

DEFAULT_PRIORITIES = {
    "plugin": PRIORITY_NORMAL,
    "application": 20,
    "locale": 11,
    "theme": PRIORITY_HIGH,
}

DEFAULT_VERSION = "0.0"

# Directories scanned for class definitions, relative to the addon root
CLASS_SCAN_DIRS = ["", "library", "models", "controllers", "modules"]

# Special files detected automatically in the addon root
AUTO_SPECIALS = {
    "bootstrap": "bootstrap.py",
    "config": "config.yml",
}

# Default Scan Directories (root-relative)
DEFAULT_SCAN_DIRS = {
    "addon": ["/applications", "/plugins"],
    "theme": ["/themes"],
    "locale": ["/locales"],
}

# Cache Configuration
CACHE_FILE_SUFFIX = ".yml"
CACHE_FILE_MODE = 0o644
CACHE_DIR_MODE = 0o755
DEFAULT_CACHE_DIR = "cache"

# Config Configuration
DEFAULT_CONFIG_FILE = "addons.yml"
DEFAULT_THEME = "default"
DEFAULT_LOCALE = "en"

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Error Messages
ERROR_CACHE_DIR_REQUIRED = "Cannot save the addon cache when the cache directory is empty."
ERROR_CONFIG_INVALID = "Invalid addon configuration: {error}"
