"""
Restore command implementation.

Loads the configuration, prints it, and runs the restore pipeline.
"""

import logging
from pathlib import Path
from typing import Optional

from restorekit.config.parser import (
    DEFAULT_CONFIG_FILE,
    describe_request,
    load_request,
)
from restorekit.core.exceptions import AcquisitionError, ExecutionError
from restorekit.pipeline import run_pipeline

logger = logging.getLogger(__name__)


def _config_file(args) -> Optional[Path]:
    if getattr(args, "config", None):
        return Path(args.config)

    default_config = Path.cwd() / DEFAULT_CONFIG_FILE
    return default_config if default_config.exists() else None


def run(args) -> int:
    """
    Run the restore command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, also when only cache registration failed)

    Raises:
        ConfigurationError: If the inputs are invalid
    """
    request = load_request(
        cli_values={
            "solution": args.solution,
            "nuget_version": args.nuget_version,
            "cache_level": args.cache_level,
            "include_http_cache": args.include_http_cache,
            "update_in_place": args.update_in_place,
            "registry": args.registry,
        },
        config_file=_config_file(args),
    )

    for line in describe_request(request):
        logger.info(line)

    try:
        result = run_pipeline(request)
    except AcquisitionError as e:
        logger.error(f"Failed to get NuGet: {e}")
        return 1
    except ExecutionError as e:
        logger.error(f"NuGet restore failed, error: {e}")
        return 1

    if result.warnings:
        logger.warning(
            f"Restore succeeded, cache registration had {len(result.warnings)} issue(s)"
        )
    else:
        logger.info("Done")

    return 0
