"""Theme inheritance chain and asset lookup"""

from pathlib import Path
from typing import Callable, List, Optional

from addonmgr.core.addon import Addon

PARENT_THEME_INFO = "parentTheme"


def theme_subdirs(theme: Optional[Addon], lookup_theme: Callable[[str], Optional[Addon]]) -> List[str]:
    """
    Get the subdirs of a theme and the themes it is based on.

    The walk follows the ``parentTheme`` info value and stops when a theme
    has no parent, the parent can't be found, or a key repeats.

    Returns:
        Root-relative directories, most specific theme first
    """
    subdirs = {}
    while theme is not None:
        if theme.key in subdirs:
            break
        subdirs[theme.key] = theme.subdir

        parent = theme.get_info_value(PARENT_THEME_INFO)
        if not parent:
            break
        theme = lookup_theme(str(parent))

    return list(subdirs.values())


def lookup_asset(
    root: Path,
    subpath: str,
    theme_dirs: List[str],
    addon: Optional[Addon] = None,
    must_exist: bool = True,
) -> str:
    """
    Lookup the path of an asset.

    Themes in the chain are searched first, then the addon itself.

    Args:
        root: Absolute root that subdirs are relative to
        subpath: Path of the asset relative to an addon root
        theme_dirs: Theme chain from ``theme_subdirs``
        addon: The addon that should contain the asset
        must_exist: Whether the asset must exist in the addon

    Returns:
        Root-relative path of the asset or an empty string
    """
    subpath = "/" + subpath.lstrip("\\/")

    for subdir in theme_dirs:
        if (root / (subdir + subpath).lstrip("/")).exists():
            return subdir + subpath

    if addon is None:
        return ""

    path = addon.subdir + subpath
    if must_exist and not (root / path.lstrip("/")).exists():
        return ""
    return path
