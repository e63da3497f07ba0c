"""Addon descriptor model and directory parsing"""

import ast
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from addonmgr.constants import (
    ADDON_INFO_FILE,
    AUTO_SPECIALS,
    CLASS_SCAN_DIRS,
    DEFAULT_PRIORITIES,
    DEFAULT_VERSION,
)
from addonmgr.core.version import check_version
from addonmgr.exceptions import AddonConstructionError

logger = logging.getLogger(__name__)


class AddonType(Enum):
    """Kinds of addons. Plugins and applications share the ``addon`` type."""

    ADDON = "addon"
    THEME = "theme"
    LOCALE = "locale"

    @classmethod
    def coerce(cls, value: Union["AddonType", str]) -> "AddonType":
        """Accept either an AddonType or its string value."""
        if isinstance(value, cls):
            return value
        return cls(str(value).lower())


# Raw info "type" values mapped onto the unified addon types
INFO_TYPES = {
    "plugin": AddonType.ADDON,
    "application": AddonType.ADDON,
    "addon": AddonType.ADDON,
    "theme": AddonType.THEME,
    "locale": AddonType.LOCALE,
}


@dataclass(frozen=True, eq=False)
class Addon:
    """
    Immutable metadata for one addon.

    Descriptors are produced by scanning a directory (``from_directory``) or
    by loading a cache entry (``from_dict``). Rescanning produces a new
    descriptor; existing ones are never changed in place.
    """

    key: str
    type: AddonType
    subdir: str
    root: Path
    name: str
    version: str = DEFAULT_VERSION
    priority: int = DEFAULT_PRIORITIES["plugin"]
    info: Dict[str, Any] = field(default_factory=dict)
    classes: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    requirements: Dict[str, str] = field(default_factory=dict)
    specials: Dict[str, str] = field(default_factory=dict)
    translations: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_directory(cls, root: Union[str, Path], subdir: str) -> "Addon":
        """
        Construct an addon from its directory.

        Args:
            root: Absolute root that ``subdir`` is relative to
            subdir: Root-relative directory of the addon, e.g. "/plugins/foo"

        Returns:
            Addon instance

        Raises:
            AddonConstructionError: If the directory is not a valid addon
        """
        root = Path(root)
        subdir = "/" + str(subdir).strip("/")
        addon_dir = root / subdir.lstrip("/")

        if not addon_dir.is_dir():
            raise AddonConstructionError(subdir, "directory does not exist")

        info_path = addon_dir / ADDON_INFO_FILE
        if not info_path.is_file():
            raise AddonConstructionError(subdir, f"missing {ADDON_INFO_FILE}")

        try:
            with open(info_path, "r", encoding="utf-8") as f:
                info = yaml.safe_load(f) or {}
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise AddonConstructionError(subdir, f"unreadable {ADDON_INFO_FILE}: {e}")

        if not isinstance(info, dict):
            raise AddonConstructionError(subdir, f"{ADDON_INFO_FILE} must be a mapping")

        folder = addon_dir.name
        key = folder.lower()
        declared_key = info.get("key")
        if declared_key is not None and str(declared_key).lower() != key:
            raise AddonConstructionError(
                subdir,
                f"key '{declared_key}' doesn't match directory name '{folder}'",
            )

        raw_type = str(info.get("type", "plugin")).lower()
        if raw_type not in INFO_TYPES:
            raise AddonConstructionError(subdir, f"unknown addon type '{raw_type}'")
        addon_type = INFO_TYPES[raw_type]

        try:
            priority = int(info.get("priority", DEFAULT_PRIORITIES.get(raw_type, 0)))
        except (TypeError, ValueError):
            raise AddonConstructionError(subdir, f"invalid priority {info.get('priority')!r}")

        requirements = info.get("require") or {}
        if not isinstance(requirements, dict):
            raise AddonConstructionError(subdir, "'require' must be a mapping")

        classes = _scan_classes(addon_dir)
        declared_classes = info.get("classes") or {}
        if not isinstance(declared_classes, dict):
            raise AddonConstructionError(subdir, "'classes' must be a mapping")
        for class_name, subpath in declared_classes.items():
            classes[str(class_name).lower()] = (str(class_name), _normalize_subpath(subpath))

        specials = {
            name: "/" + filename
            for name, filename in AUTO_SPECIALS.items()
            if (addon_dir / filename).is_file()
        }
        declared_specials = info.get("specials") or {}
        if not isinstance(declared_specials, dict):
            raise AddonConstructionError(subdir, "'specials' must be a mapping")
        for name, subpath in declared_specials.items():
            specials[str(name)] = _normalize_subpath(subpath)

        declared_translations = info.get("translations") or {}
        if not isinstance(declared_translations, dict):
            raise AddonConstructionError(subdir, "'translations' must be a mapping")
        for locale, paths in declared_translations.items():
            if isinstance(paths, str):
                continue
            if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
                raise AddonConstructionError(
                    subdir, f"translations for '{locale}' must be a path or a list of paths"
                )
        translations = _scan_translations(addon_dir, addon_type, info, specials)

        version = info.get("version", DEFAULT_VERSION)
        if isinstance(version, float):
            # YAML reads 1.10 as the float 1.1
            logger.warning(
                f"Unquoted version {version!r} in {subdir}/{ADDON_INFO_FILE}; quote it to keep it exact."
            )

        return cls(
            key=key,
            type=addon_type,
            subdir=subdir,
            root=root,
            name=str(info.get("name", folder)),
            version=str(version),
            priority=priority,
            info=info,
            classes=classes,
            requirements={str(k): str(v) for k, v in requirements.items()},
            specials=specials,
            translations=translations,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], root: Union[str, Path]) -> "Addon":
        """Rebuild an addon from its cached representation."""
        return cls(
            key=data["key"],
            type=AddonType.coerce(data["type"]),
            subdir=data["subdir"],
            root=Path(root),
            name=data.get("name", data["key"]),
            version=data.get("version", DEFAULT_VERSION),
            priority=int(data.get("priority", 0)),
            info=dict(data.get("info") or {}),
            classes={k: (v[0], v[1]) for k, v in (data.get("classes") or {}).items()},
            requirements=dict(data.get("requirements") or {}),
            specials=dict(data.get("specials") or {}),
            translations={k: list(v) for k, v in (data.get("translations") or {}).items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for the cache."""
        return {
            "key": self.key,
            "type": self.type.value,
            "subdir": self.subdir,
            "name": self.name,
            "version": self.version,
            "priority": self.priority,
            "info": self.info,
            "classes": {k: [v[0], v[1]] for k, v in self.classes.items()},
            "requirements": self.requirements,
            "specials": self.specials,
            "translations": self.translations,
        }

    @property
    def enabled_key(self) -> str:
        """Key of this addon in the enabled set: "type/key"."""
        return f"{self.type.value}/{self.key}"

    def path(self, subpath: Optional[str] = None) -> Path:
        """Get the absolute path of the addon or of a file inside it."""
        base = self.root / self.subdir.lstrip("/")
        if subpath:
            return base / subpath.lstrip("/")
        return base

    def get_info_value(self, name: str, default: Any = None) -> Any:
        """Get an arbitrary value from the addon's info file."""
        return self.info.get(name, default)

    def get_special(self, name: str) -> Optional[str]:
        """Get the subpath of a special file such as "config" or "bootstrap"."""
        return self.specials.get(name)

    def get_translation_paths(self, locale: str) -> List[str]:
        """Get the translation subpaths for a locale, in load order."""
        return list(self.translations.get(locale, []))

    def get_requirements_lower(self) -> Dict[str, str]:
        """Requirements keyed by lower-cased addon key."""
        return {k.lower(): v for k, v in self.requirements.items()}

    def satisfies(self, requirement: Optional[str]) -> bool:
        """Check whether this addon's version meets a requirement string."""
        return check_version(self.version, requirement)

    def _identity(self) -> tuple:
        return (self.type, self.key, self.version, self.priority, self.subdir)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Addon):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return f"Addon({self.enabled_key}, version={self.version}, priority={self.priority})"


def _normalize_subpath(subpath: Any) -> str:
    return "/" + str(subpath).replace("\\", "/").lstrip("/")


def _scan_classes(addon_dir: Path) -> Dict[str, Tuple[str, str]]:
    """Find top-level class definitions in the addon's Python files."""
    classes: Dict[str, Tuple[str, str]] = {}

    for scan_dir in CLASS_SCAN_DIRS:
        directory = addon_dir / scan_dir if scan_dir else addon_dir
        if not directory.is_dir():
            continue

        for py_file in sorted(directory.glob("*.py")):
            try:
                tree = ast.parse(py_file.read_text(encoding="utf-8"), filename=str(py_file))
            except (OSError, SyntaxError, ValueError) as e:
                logger.warning(f"Skipping classes in {py_file}: {e}")
                continue

            subpath = "/" + py_file.relative_to(addon_dir).as_posix()
            for node in tree.body:
                if isinstance(node, ast.ClassDef):
                    classes.setdefault(node.name.lower(), (node.name, subpath))

    return classes


def _scan_translations(
    addon_dir: Path, addon_type: AddonType, info: Dict[str, Any], specials: Dict[str, str]
) -> Dict[str, List[str]]:
    """Collect translation subpaths by locale."""
    translations: Dict[str, List[str]] = {}

    def _add(locale: str, subpath: str) -> None:
        paths = translations.setdefault(str(locale), [])
        if subpath not in paths:
            paths.append(subpath)

    for locale, paths in (info.get("translations") or {}).items():
        if isinstance(paths, str):
            paths = [paths]
        for subpath in paths:
            _add(locale, _normalize_subpath(subpath))

    locale_dir = addon_dir / "locale"
    if locale_dir.is_dir():
        for item in sorted(locale_dir.iterdir()):
            if item.is_file() and item.suffix in (".yml", ".yaml"):
                _add(item.stem, f"/locale/{item.name}")
            elif item.is_dir():
                for sub in sorted(item.glob("*.yml")):
                    _add(item.name, f"/locale/{item.name}/{sub.name}")

    # Locale packs translate their own locale with every yaml file in their root.
    if addon_type == AddonType.LOCALE:
        pack_locale = str(info.get("locale", addon_dir.name))
        skip = {ADDON_INFO_FILE} | {s.lstrip("/") for s in specials.values()}
        for item in sorted(addon_dir.glob("*.yml")):
            if item.name not in skip:
                _add(pack_locale, f"/{item.name}")

    return translations
