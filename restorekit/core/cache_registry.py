"""
Cache include registry.

Records the directories a later build should restore from its cache. The
registry is a small JSON file shared with other build steps, so every
commit happens under a file lock and is written atomically:

    {
      "version": 1,
      "include_paths": ["/src/app/packages", "/home/ci/.nuget/packages"],
      "updated": "2026-10-19T12:00:00"
    }
"""

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

from filelock import FileLock, Timeout

from restorekit.core.exceptions import CacheRegistryError, CacheRegistryLockTimeout
from restorekit.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

REGISTRY_ENV_VAR = "RESTOREKIT_CACHE_REGISTRY"
REGISTRY_VERSION = 1


def get_default_registry_path(
    environ: Optional[Mapping[str, str]] = None, home: Optional[Path] = None
) -> Path:
    """
    Resolve the registry location.

    RESTOREKIT_CACHE_REGISTRY wins when set, otherwise
    ~/.restorekit/cache_include.json.

    Raises:
        CacheRegistryError: If the home directory cannot be resolved
    """
    environ = os.environ if environ is None else environ
    override = environ.get(REGISTRY_ENV_VAR, "")
    if override:
        return Path(override)
    if home is None:
        try:
            home = Path.home()
        except (RuntimeError, KeyError) as e:
            raise CacheRegistryError(f"Failed to resolve home directory: {e}") from e
    return home / ".restorekit" / "cache_include.json"


class CacheIncludeRegistry:
    """
    Persistent list of cache include paths.

    Example:
        >>> registry = CacheIncludeRegistry(Path('/tmp/cache_include.json'))
        >>> registry.commit(cache_set)
        >>> registry.list_paths()
        ['/src/app/packages', '/home/ci/.nuget/packages']
    """

    def __init__(self, registry_path: Optional[Path] = None, lock_timeout: int = 30):
        """
        Initialize registry.

        Args:
            registry_path: Path to the JSON file (default: see get_default_registry_path)
            lock_timeout: Timeout in seconds for acquiring file lock
        """
        if registry_path is None:
            registry_path = get_default_registry_path()

        self.registry_path = Path(registry_path)
        self.lock_path = self.registry_path.with_name(self.registry_path.name + ".lock")
        self.lock_timeout = lock_timeout

    def _empty(self) -> dict:
        return {"version": REGISTRY_VERSION, "include_paths": [], "updated": None}

    def _load(self) -> dict:
        if not self.registry_path.exists():
            return self._empty()

        try:
            with open(self.registry_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise CacheRegistryError(f"Failed to load cache registry: {e}") from e

        if not isinstance(data, dict) or not isinstance(
            data.get("include_paths"), list
        ):
            logger.warning("Invalid cache registry format, resetting")
            return self._empty()

        return data

    def _save(self, data: dict):
        try:
            atomic_write(self.registry_path, json.dumps(data, indent=2))
        except OSError as e:
            raise CacheRegistryError(f"Failed to save cache registry: {e}") from e

    @contextmanager
    def _lock(self):
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheRegistryError(
                f"Failed to create registry directory {self.lock_path.parent}: {e}"
            ) from e

        lock = FileLock(self.lock_path, timeout=self.lock_timeout)
        try:
            with lock:
                yield
        except Timeout as e:
            raise CacheRegistryLockTimeout(
                f"Could not acquire cache registry lock within "
                f"{self.lock_timeout} seconds"
            ) from e
        except OSError as e:
            raise CacheRegistryError(f"Failed to lock {self.lock_path}: {e}") from e

    def commit(self, paths: Iterable) -> Path:
        """
        Add paths to the registry.

        Existing entries are kept; new ones are appended in order, skipping
        duplicates.

        Args:
            paths: Paths, or CacheEntry objects carrying a ``path``

        Returns:
            Path to the registry file

        Raises:
            CacheRegistryError: If the registry cannot be read, locked or written
        """
        new_paths = [str(getattr(item, "path", item)) for item in paths]

        with self._lock():
            data = self._load()
            include_paths: List[str] = data["include_paths"]

            added = 0
            for path in new_paths:
                if path not in include_paths:
                    include_paths.append(path)
                    added += 1

            data["updated"] = datetime.now().isoformat()
            self._save(data)

        logger.debug(
            f"Committed {added} new cache path(s) to {self.registry_path} "
            f"({len(include_paths)} total)"
        )
        return self.registry_path

    def list_paths(self) -> List[str]:
        """Get the registered include paths."""
        return list(self._load()["include_paths"])
