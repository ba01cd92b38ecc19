"""
NuGet stages of the restore pipeline.

Modules:
    tool: Resolve or download the NuGet binary
    restore: Run ``nuget restore`` with retry
    cache: Discover package cache directories
"""

from .tool import (
    ToolInvocation,
    ToolResolver,
    ToolSettings,
    build_download_urls,
    LATEST_VERSION,
)
from .restore import RestoreRunner
from .cache import (
    CacheCategory,
    CacheEntry,
    CacheLevel,
    CachePathCollector,
    CacheSet,
)

__all__ = [
    "ToolInvocation",
    "ToolResolver",
    "ToolSettings",
    "build_download_urls",
    "LATEST_VERSION",
    "RestoreRunner",
    "CacheCategory",
    "CacheEntry",
    "CacheLevel",
    "CachePathCollector",
    "CacheSet",
]
