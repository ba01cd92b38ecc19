"""
Core functionality for RestoreKit.

This package contains the foundational modules the NuGet stages depend on.
"""

from .exceptions import (
    RestoreKitError,
    ConfigurationError,
    AcquisitionError,
    ExecutionError,
    CacheCollectionError,
    CacheRegistryError,
    CacheRegistryLockTimeout,
)

from .download import (
    download_file,
    format_progress,
    DownloadProgress,
    DownloadError,
)

from .retry import (
    RetryPolicy,
    retry,
    DOWNLOAD_RETRY_POLICY,
    RESTORE_RETRY_POLICY,
)

from .cache_registry import (
    CacheIncludeRegistry,
    get_default_registry_path,
)

__all__ = [
    "RestoreKitError",
    "ConfigurationError",
    "AcquisitionError",
    "ExecutionError",
    "CacheCollectionError",
    "CacheRegistryError",
    "CacheRegistryLockTimeout",
    "download_file",
    "format_progress",
    "DownloadProgress",
    "DownloadError",
    "RetryPolicy",
    "retry",
    "DOWNLOAD_RETRY_POLICY",
    "RESTORE_RETRY_POLICY",
    "CacheIncludeRegistry",
    "get_default_registry_path",
]
