"""Atomic, multi-process safe storage of addon metadata caches"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml

from addonmgr.constants import CACHE_DIR_MODE, CACHE_FILE_MODE, CACHE_FILE_SUFFIX
from addonmgr.exceptions import CacheWriteError

logger = logging.getLogger(__name__)

MISSING = object()

_Loader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)
_Dumper = getattr(yaml, "CSafeDumper", yaml.SafeDumper)


class CacheStore:
    """
    Reads and writes YAML cache documents under a cache directory.

    Names are relative to the cache directory and carry no suffix:
    ``"addon"`` maps to ``<cache_dir>/addon.yml`` and ``"theme/foo"`` to
    ``<cache_dir>/theme/foo.yml``. A missing or unreadable document is
    reported as not cached.
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]]):
        self.cache_dir = Path(cache_dir) if cache_dir else None

    @property
    def enabled(self) -> bool:
        """Whether a cache directory is configured."""
        return self.cache_dir is not None

    def path_for(self, name: str) -> Path:
        """Get the file path of a cache document."""
        if self.cache_dir is None:
            raise CacheWriteError("No cache directory configured", context=name)
        return self.cache_dir / f"{name}{CACHE_FILE_SUFFIX}"

    def ensure_dirs(self, subdirs: Iterable[str] = ()) -> bool:
        """
        Create the cache directory and the given sub-directories.

        Returns:
            True if every directory exists afterwards
        """
        if self.cache_dir is None:
            return True

        ok = True
        for directory in [self.cache_dir] + [self.cache_dir / s for s in subdirs]:
            try:
                directory.mkdir(mode=CACHE_DIR_MODE, parents=True, exist_ok=True)
            except OSError as e:
                logger.warning(f"Could not create addon cache directory {directory}: {e}")
                ok = False
        return ok

    def read(self, name: str, default: Any = MISSING) -> Any:
        """
        Read a cache document.

        Args:
            name: Document name relative to the cache directory
            default: Value returned when the document is missing or unreadable

        Returns:
            Parsed document or ``default``
        """
        if self.cache_dir is None:
            return default

        path = self.path_for(name)
        if not path.is_file():
            logger.debug(f"Cache miss: {path}")
            return default

        try:
            with open(path, "r", encoding="utf-8") as f:
                return yaml.load(f, Loader=_Loader)
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.debug(f"Unreadable cache file {path}: {e}")
            return default

    def write(self, name: str, data: Any) -> bool:
        """
        Atomically write a cache document.

        A failed write is logged as a warning and never raised, the caller's
        in-memory result stays valid.

        Returns:
            True if the document was published
        """
        try:
            self._write_atomic(self.path_for(name), data)
            return True
        except CacheWriteError as e:
            logger.warning(str(e))
            return False

    def _write_atomic(self, path: Path, data: Any) -> None:
        """Write to a unique temp file next to ``path`` and rename it over ``path``."""
        payload = yaml.dump(data, Dumper=_Dumper, default_flow_style=False, sort_keys=False)

        try:
            path.parent.mkdir(mode=CACHE_DIR_MODE, parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
            )
        except OSError as e:
            raise CacheWriteError(f"Error writing temporary file for '{path}'", context=str(e))

        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())

            try:
                os.replace(temp_path, path)
            except OSError:
                # Some filesystems refuse to replace an open file: delete and rename.
                try:
                    path.unlink(missing_ok=True)
                    os.rename(temp_path, path)
                except OSError as e:
                    raise CacheWriteError(f"Error writing file '{path}'", context=str(e))
        except OSError as e:
            raise CacheWriteError(f"Error writing file '{path}'", context=str(e))
        finally:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug(f"Could not remove temp file {temp_path}: {e}")

        try:
            os.chmod(path, CACHE_FILE_MODE)
        except OSError as e:
            logger.debug(f"Could not chmod {path}: {e}")

    def delete(self, name: str) -> bool:
        """Delete one cache document."""
        if self.cache_dir is None:
            return True
        try:
            self.path_for(name).unlink()
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning(f"Could not delete cache file {name}: {e}")
            return False

    def clear(self) -> bool:
        """
        Delete every cache document.

        Returns:
            True if all files were removed
        """
        if self.cache_dir is None or not self.cache_dir.is_dir():
            return True

        ok = True
        pattern = f"*{CACHE_FILE_SUFFIX}"
        paths = list(self.cache_dir.glob(pattern)) + list(self.cache_dir.glob(f"*/{pattern}"))
        for path in paths:
            try:
                path.unlink()
            except OSError as e:
                logger.warning(f"Could not delete cache file {path}: {e}")
                ok = False
        return ok
