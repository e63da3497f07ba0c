"""Class registry for enabled addons with priority overrides"""

import importlib.util
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Dict, List, Optional

from addonmgr.core.addon import Addon


@dataclass(frozen=True)
class AutoloadEntry:
    """A class registration: where the class lives and which addon owns it."""

    class_name: str
    path: Path
    addon: Addon

    @property
    def priority(self) -> int:
        return self.addon.priority


class OverrideStack:
    """
    Registrations shadowed by a higher priority owner of the same class.

    Entries keep their push order so that equal priorities resolve to the
    one pushed first.
    """

    def __init__(self) -> None:
        self._entries: List[AutoloadEntry] = []

    def push(self, entry: AutoloadEntry) -> None:
        self._entries.append(entry)

    def pop_max(self) -> Optional[AutoloadEntry]:
        """Remove and return the highest priority entry."""
        if not self._entries:
            return None
        best = 0
        for i, entry in enumerate(self._entries):
            if entry.priority > self._entries[best].priority:
                best = i
        return self._entries.pop(best)

    def remove(self, addon: Addon) -> bool:
        """Drop the entries of an addon. Returns True if any were removed."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.addon.enabled_key != addon.enabled_key]
        return len(self._entries) != before

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)


class AutoloadRegistry:
    """
    Maps lower-cased class names to the enabled addon that provides them.

    When two enabled addons declare the same class, the higher priority
    one owns it and the other waits on the class's override stack until
    the owner is stopped.
    """

    def __init__(self) -> None:
        self._classes: Dict[str, AutoloadEntry] = {}
        self._overrides: Dict[str, OverrideStack] = {}
        self._modules: Dict[Path, ModuleType] = {}

    def register(self, class_key: str, entry: AutoloadEntry) -> None:
        """Register a class, keeping the higher priority owner. Ties keep the incumbent."""
        current = self._classes.get(class_key)
        if current is None:
            self._classes[class_key] = entry
            return

        stack = self._overrides.setdefault(class_key, OverrideStack())
        if current.priority < entry.priority:
            stack.push(current)
            self._classes[class_key] = entry
        else:
            stack.push(entry)

    def unregister(self, class_key: str, addon: Addon) -> None:
        """Remove an addon's registration, promoting the best shadowed one if it was the owner."""
        current = self._classes.get(class_key)
        stack = self._overrides.get(class_key)

        if current is not None and current.addon.enabled_key == addon.enabled_key:
            del self._classes[class_key]
            if stack:
                self._classes[class_key] = stack.pop_max()
        elif stack is not None:
            stack.remove(addon)

        if stack is not None and not stack:
            del self._overrides[class_key]

    def register_addon(self, addon: Addon) -> None:
        for class_key, (class_name, subpath) in addon.classes.items():
            self.register(class_key, AutoloadEntry(class_name, addon.path(subpath), addon))

    def unregister_addon(self, addon: Addon) -> None:
        for class_key in addon.classes:
            self.unregister(class_key, addon)

    def lookup(self, class_name: str) -> Optional[AutoloadEntry]:
        return self._classes.get(class_name.lower())

    def overrides(self, class_name: str) -> List[AutoloadEntry]:
        """Get the shadowed registrations of a class."""
        return list(self._overrides.get(class_name.lower(), []))

    def __contains__(self, class_name: str) -> bool:
        return class_name.lower() in self._classes

    def __len__(self) -> int:
        return len(self._classes)

    def load(self, class_name: str) -> Optional[type]:
        """
        Load a registered class from its file.

        Each file is executed at most once; later calls reuse the module.

        Returns:
            The class object, or None if no enabled addon provides the class
        """
        entry = self.lookup(class_name)
        if entry is None:
            return None

        module = self.load_file(entry.addon, entry.path)
        return getattr(module, entry.class_name, None)

    def load_file(self, addon: Addon, path: Path) -> ModuleType:
        """Execute an addon file once and return its module."""
        module = self._modules.get(path)
        if module is None:
            module = load_addon_module(addon, path)
            self._modules[path] = module
        return module

    def is_loaded(self, path: Path) -> bool:
        return path in self._modules


def load_addon_module(addon: Addon, path: Path) -> ModuleType:
    """
    Execute a Python file that belongs to an addon as a module.

    The module is named after the addon so files of different addons never
    collide in ``sys.modules``.

    Raises:
        ImportError: If the file can't be loaded
    """
    stem = re.sub(r"\W", "_", path.stem)
    addon_key = re.sub(r"\W", "_", addon.key)
    module_name = f"addonmgr_addons.{addon.type.value}.{addon_key}.{stem}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load {path} for {addon.enabled_key}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module
