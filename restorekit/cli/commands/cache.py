"""
Cache command implementation.

Lists the paths in the cache include registry.
"""

import logging

from restorekit.core.cache_registry import CacheIncludeRegistry

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the cache command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    if getattr(args, "cache_command", None) != "list":
        logger.error("No cache sub-command specified (available: list)")
        return 1

    registry = CacheIncludeRegistry(args.registry)
    paths = registry.list_paths()

    if not paths:
        print(f"No cache paths registered in {registry.registry_path}")
        return 0

    for path in paths:
        print(path)
    return 0
