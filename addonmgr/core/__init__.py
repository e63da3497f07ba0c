"""Core addon catalog and registry components"""

from .addon import Addon, AddonType
from .autoload import AutoloadEntry, AutoloadRegistry, OverrideStack
from .cache_store import CacheStore
from .catalog import AddonCatalog
from .config_loader import ConfigLoader, EnabledAddons, ManagerConfig
from .manager import AddonManager
from .requirements import DependencyResolver, Requirement, RequirementStatus
from .version import check_version, compare_versions

__all__ = [
    "Addon",
    "AddonType",
    "AutoloadEntry",
    "AutoloadRegistry",
    "OverrideStack",
    "CacheStore",
    "AddonCatalog",
    "ConfigLoader",
    "EnabledAddons",
    "ManagerConfig",
    "AddonManager",
    "DependencyResolver",
    "Requirement",
    "RequirementStatus",
    "check_version",
    "compare_versions",
]
