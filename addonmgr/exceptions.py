"""
Addon Manager Exception Hierarchy

Clean exception hierarchy for consistent error handling across the catalog,
the runtime registry and the CLI.
"""

from typing import Dict, List, Optional


class AddonManagerError(Exception):
    """Base exception for all addon manager errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(AddonManagerError):
    """Raised when configuration is invalid or missing."""

    pass


class AddonConstructionError(AddonManagerError):
    """Raised when a directory does not hold a valid addon."""

    def __init__(self, subdir: str, reason: str):
        self.subdir = subdir
        self.reason = reason
        super().__init__(f"Invalid addon in {subdir}: {reason}")


class AddonNotFoundError(AddonManagerError):
    """Raised when an addon cannot be found in the catalog."""

    def __init__(self, key: str, addon_type: str):
        self.key = key
        self.addon_type = addon_type
        super().__init__(f"The {addon_type} '{key}' could not be found")


class CacheWriteError(AddonManagerError):
    """Raised when a cache file cannot be written."""

    pass


class RequirementsNotMetError(AddonManagerError):
    """Raised when an addon has missing or mismatched requirements."""

    def __init__(self, addon_name: str, unmet: List[str], requirements: Dict):
        self.addon_name = addon_name
        self.unmet = unmet
        self.requirements = requirements
        super().__init__(f"{addon_name} requires: {', '.join(unmet)}.")


class DependantsBlockingError(AddonManagerError):
    """Raised when enabled addons still depend on the addon being stopped."""

    def __init__(self, addon_name: str, dependants: List[str]):
        self.addon_name = addon_name
        self.dependants = dependants
        message = f"The following addons depend on {addon_name}: {', '.join(dependants)}."
        super().__init__(message)
