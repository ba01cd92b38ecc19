"""
RestoreKit - NuGet restore build step.

Resolves the requested NuGet version, restores a solution's packages and
registers the package directories for the build cache.
"""

__version__ = "0.1.0"
