"""
Centralized exception hierarchy for RestoreKit.

The pipeline orchestrator decides which of these are fatal. Lower layers
only raise them.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class RestoreKitError(Exception):
    """Base exception for all RestoreKit errors."""

    pass


# ============================================================================
# Fatal Pipeline Errors
# ============================================================================


class ConfigurationError(RestoreKitError):
    """Invalid or missing step input (solution path, cache level)."""

    pass


class AcquisitionError(RestoreKitError):
    """Raised when the requested NuGet binary could not be obtained."""

    def __init__(self, version: str, reason: str = ""):
        self.version = version
        msg = f"Failed to acquire NuGet {version}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ExecutionError(RestoreKitError):
    """Raised when the restore command failed on every attempt."""

    def __init__(self, command, reason: str = ""):
        self.command = list(command)
        msg = f"NuGet restore failed: {' '.join(self.command)}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


# ============================================================================
# Non-fatal Cache Errors
# ============================================================================


class CacheCollectionError(RestoreKitError):
    """Error while discovering cache paths. Reported as a warning."""

    pass


class CacheRegistryError(CacheCollectionError):
    """Error while committing cache paths to the include registry."""

    pass


class CacheRegistryLockTimeout(CacheRegistryError):
    """Raised when the registry lock cannot be acquired within timeout."""

    pass
