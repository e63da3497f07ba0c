# conftest.py

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest
import yaml

from addonmgr.core.addon import Addon, AddonType
from addonmgr.core.catalog import AddonCatalog
from addonmgr.core.manager import AddonManager

SCAN_DIRS = {
    "addon": ["/applications", "/plugins"],
    "theme": ["/themes"],
    "locale": ["/locales"],
}


class AddonTree:
    """Builds addon directories under a temporary root."""

    def __init__(self, root: Path):
        self.root = root
        for dirs in SCAN_DIRS.values():
            for scan_dir in dirs:
                (root / scan_dir.lstrip("/")).mkdir(parents=True, exist_ok=True)

    def add(
        self,
        folder: str,
        info: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, str]] = None,
        scan_dir: str = "plugins",
    ) -> Path:
        """Create an addon folder with an addon.yml and extra files."""
        addon_dir = self.root / scan_dir / folder
        addon_dir.mkdir(parents=True, exist_ok=True)
        if info is not None:
            (addon_dir / "addon.yml").write_text(yaml.safe_dump(info), encoding="utf-8")
        for name, content in (files or {}).items():
            path = addon_dir / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return addon_dir

    def plugin(self, folder: str, **info) -> Path:
        info.setdefault("type", "plugin")
        files = info.pop("files", None)
        return self.add(folder, info, files, scan_dir="plugins")

    def theme(self, folder: str, **info) -> Path:
        info.setdefault("type", "theme")
        files = info.pop("files", None)
        return self.add(folder, info, files, scan_dir="themes")

    def locale(self, folder: str, **info) -> Path:
        info.setdefault("type", "locale")
        files = info.pop("files", None)
        return self.add(folder, info, files, scan_dir="locales")


@pytest.fixture
def tree(tmp_path: Path) -> AddonTree:
    """Empty addon root with the default scan directories."""
    return AddonTree(tmp_path / "root")


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def make_catalog(tree: AddonTree, cache_dir: Path) -> Callable[..., AddonCatalog]:
    """Factory for catalogs over the tree; each call simulates a new process."""

    def _make(cached: bool = True) -> AddonCatalog:
        return AddonCatalog(tree.root, SCAN_DIRS, cache_dir=cache_dir if cached else None)

    return _make


@pytest.fixture
def make_manager(make_catalog) -> Callable[..., AddonManager]:
    def _make(cached: bool = True) -> AddonManager:
        return AddonManager(make_catalog(cached))

    return _make


@pytest.fixture
def make_addon(tmp_path: Path) -> Callable[..., Addon]:
    """Build descriptors directly, without touching the filesystem."""

    def _make(
        key: str,
        priority: int = 100,
        classes=(),
        addon_type: AddonType = AddonType.ADDON,
        version: str = "1.0",
        requirements: Optional[Dict[str, str]] = None,
        info: Optional[Dict[str, Any]] = None,
    ) -> Addon:
        subdir = {
            AddonType.ADDON: "/plugins",
            AddonType.THEME: "/themes",
            AddonType.LOCALE: "/locales",
        }[addon_type] + f"/{key}"
        return Addon(
            key=key.lower(),
            type=addon_type,
            subdir=subdir,
            root=tmp_path,
            name=key,
            version=version,
            priority=priority,
            info=dict(info or {}),
            classes={c.lower(): (c, f"/class.{c.lower()}.py") for c in classes},
            requirements=dict(requirements or {}),
        )

    return _make


@pytest.fixture(autouse=True)
def _clean_addon_modules():
    """Drop modules loaded from addon files between tests."""
    yield
    for name in [m for m in sys.modules if m.startswith("addonmgr_addons.")]:
        del sys.modules[name]


@pytest.fixture(autouse=True)
def _reset_library_logger():
    logger = logging.getLogger("addonmgr")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers = handlers
    logger.setLevel(level)
