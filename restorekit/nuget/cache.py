"""
NuGet cache path discovery.

Finds the directories worth keeping between builds, depending on the
cache level:

    none    nothing
    local   first ``packages`` directory in the project tree
    global  the global packages folder (NUGET_PACKAGES or ~/.nuget/packages)
    all     local + global

Usage:
    from restorekit.nuget.cache import CacheLevel, CachePathCollector

    collector = CachePathCollector()
    cache_set = collector.collect(CacheLevel.ALL, Path('/src/app'))
    for entry in cache_set:
        print(f"{entry.category.value}: {entry.path}")
"""

import logging
import os
import platform
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, List, Mapping, Optional, Union

from restorekit.core.exceptions import CacheCollectionError, ConfigurationError
from restorekit.core.filesystem import find_directory, normalize_path

logger = logging.getLogger(__name__)

GLOBAL_PACKAGES_ENV_VAR = "NUGET_PACKAGES"
HTTP_CACHE_ENV_VAR = "NUGET_HTTP_CACHE_PATH"
LOCAL_PACKAGES_DIR_NAME = "packages"


class CacheLevel(Enum):
    """Which cache directories to collect."""

    NONE = "none"
    LOCAL = "local"
    GLOBAL = "global"
    ALL = "all"

    @classmethod
    def parse(cls, value: Union[str, "CacheLevel"]) -> "CacheLevel":
        """
        Parse a cache level, case-insensitively.

        Raises:
            ConfigurationError: If value is not a known level
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(level.value for level in cls)
            raise ConfigurationError(
                f"Invalid cache level: {value!r} (expected one of: {choices})"
            ) from None

    @property
    def includes_local(self) -> bool:
        return self in (CacheLevel.LOCAL, CacheLevel.ALL)

    @property
    def includes_global(self) -> bool:
        return self in (CacheLevel.GLOBAL, CacheLevel.ALL)


class CacheCategory(Enum):
    LOCAL_PACKAGES = "local-package-cache"
    GLOBAL_PACKAGES = "global-package-cache"
    HTTP_CACHE = "http-cache"


@dataclass(frozen=True)
class CacheEntry:
    """A directory to cache, with the kind of cache it is."""

    path: Path
    category: CacheCategory


@dataclass
class CacheSet:
    """
    Cache entries collected for one run.

    No ordering or de-duplication guarantees; the registry de-duplicates
    on commit. ``warnings`` holds the errors of locations left out.
    """

    entries: List[CacheEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add(self, path: Path, category: CacheCategory) -> CacheEntry:
        entry = CacheEntry(Path(path), category)
        self.entries.append(entry)
        return entry

    def extend(self, other: "CacheSet") -> None:
        self.entries.extend(other.entries)
        self.warnings.extend(other.warnings)

    def paths(self) -> List[Path]:
        return [entry.path for entry in self.entries]

    def by_category(self, category: CacheCategory) -> List[Path]:
        return [entry.path for entry in self.entries if entry.category == category]

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class CachePathCollector:
    """
    Collect NuGet cache directories.

    Environment, home directory and OS name are injectable so the global
    locations can be resolved without touching process state.

    Attributes:
        environ: Environment mapping used for NUGET_* overrides
        home: User home directory
        system: OS name as returned by platform.system()
        include_http_cache: Also collect the NuGet HTTP cache
    """

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
        system: Optional[str] = None,
        include_http_cache: bool = False,
    ):
        self.environ = os.environ if environ is None else environ
        self._home = home
        self.system = system or platform.system()
        self.include_http_cache = include_http_cache

    @property
    def home(self) -> Path:
        if self._home is None:
            try:
                self._home = Path.home()
            except (RuntimeError, KeyError) as e:
                raise CacheCollectionError(
                    f"Failed to resolve home directory: {e}"
                ) from e
        return self._home

    def collect(
        self, cache_level: Union[str, CacheLevel], project_root: Union[str, Path]
    ) -> CacheSet:
        """
        Collect cache entries for cache_level.

        Args:
            cache_level: Cache level (enum or its string value)
            project_root: Directory searched for a local packages folder

        Returns:
            CacheSet, possibly empty. A location that could not be resolved
            is left out and its error recorded in ``warnings``; the other
            locations are still collected.
        """
        level = CacheLevel.parse(cache_level)
        cache_set = CacheSet()

        if level is CacheLevel.NONE:
            logger.debug("Cache level is none, nothing to collect")
            return cache_set

        if level.includes_local:
            try:
                local_dir = self.find_local_packages_dir(project_root)
            except CacheCollectionError as e:
                cache_set.warnings.append(str(e))
            else:
                if local_dir is not None:
                    cache_set.add(local_dir, CacheCategory.LOCAL_PACKAGES)
                else:
                    logger.debug(f"No local packages directory in {project_root}")

        if level.includes_global:
            self._add_resolved(
                cache_set, self.global_packages_dir, CacheCategory.GLOBAL_PACKAGES
            )

        if self.include_http_cache and level is not CacheLevel.LOCAL:
            self._add_resolved(cache_set, self.http_cache_dir, CacheCategory.HTTP_CACHE)

        return cache_set

    def _add_resolved(
        self,
        cache_set: CacheSet,
        resolve: Callable[[], Path],
        category: CacheCategory,
    ) -> None:
        try:
            cache_set.add(resolve(), category)
        except CacheCollectionError as e:
            cache_set.warnings.append(str(e))

    def find_local_packages_dir(self, project_root: Union[str, Path]) -> Optional[Path]:
        """
        First directory named ``packages`` in the tree rooted at project_root,
        project_root itself included, or None.

        Raises:
            CacheCollectionError: If project_root cannot be resolved or walked
        """
        try:
            root = normalize_path(project_root)
        except OSError as e:
            raise CacheCollectionError(
                f"Failed to resolve project root {project_root}: {e}"
            ) from e

        try:
            return find_directory(
                root, lambda directory: directory.name == LOCAL_PACKAGES_DIR_NAME
            )
        except OSError as e:
            raise CacheCollectionError(f"Failed to walk {root}: {e}") from e

    def global_packages_dir(self) -> Path:
        """NUGET_PACKAGES if set, else the per-user default. May not exist."""
        override = self.environ.get(GLOBAL_PACKAGES_ENV_VAR, "")
        if override:
            return Path(override)

        if self.system == "Windows":
            user_profile = self.environ.get("USERPROFILE", "")
            base = Path(user_profile) if user_profile else self.home
            return base / ".nuget" / "packages"

        return self.home / ".nuget" / "packages"

    def http_cache_dir(self) -> Path:
        """NUGET_HTTP_CACHE_PATH if set, else the per-user default."""
        override = self.environ.get(HTTP_CACHE_ENV_VAR, "")
        if override:
            return Path(override)

        if self.system == "Windows":
            local_app_data = self.environ.get("LOCALAPPDATA", "")
            base = (
                Path(local_app_data)
                if local_app_data
                else self.home / "AppData" / "Local"
            )
            return base / "NuGet" / "v3-cache"

        return self.home / ".local" / "share" / "NuGet" / "v3-cache"
