"""
The restore pipeline.

    resolve tool -> restore -> collect cache paths -> commit cache paths

Tool acquisition and restore failures are fatal and propagate. Cache
collection only warms up the next build, so its failures are logged and
recorded in the result instead.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from restorekit.config.parser import RestoreRequest
from restorekit.core.cache_registry import CacheIncludeRegistry
from restorekit.core.exceptions import CacheCollectionError
from restorekit.nuget.cache import CachePathCollector, CacheSet
from restorekit.nuget.restore import RestoreRunner
from restorekit.nuget.tool import ToolInvocation, ToolResolver

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of a successful run."""

    invocation: ToolInvocation
    command: List[str]
    cache_set: CacheSet = field(default_factory=CacheSet)
    warnings: List[str] = field(default_factory=list)


def run_pipeline(
    request: RestoreRequest,
    resolver: Optional[ToolResolver] = None,
    runner: Optional[RestoreRunner] = None,
    collector: Optional[CachePathCollector] = None,
    registry: Optional[CacheIncludeRegistry] = None,
) -> PipelineResult:
    """
    Run the whole restore step.

    Args:
        request: Validated request
        resolver: Tool resolver (built from request if None)
        runner: Restore runner (default if None)
        collector: Cache path collector (built from request if None)
        registry: Cache include registry (built from request if None)

    Returns:
        PipelineResult; cache problems are listed in ``warnings``

    Raises:
        AcquisitionError: If the requested NuGet could not be obtained
        ExecutionError: If restore failed on every attempt
    """
    if resolver is None:
        resolver = ToolResolver(
            settings=request.tool_settings,
            update_in_place=request.update_in_place,
        )
    runner = runner or RestoreRunner()
    if collector is None:
        collector = CachePathCollector(include_http_cache=request.include_http_cache)

    invocation = resolver.resolve(request.nuget_version)

    logger.info("Restoring NuGet packages...")
    command = runner.restore(invocation, request.solution_path)
    logger.info("NuGet packages restored")

    result = PipelineResult(invocation=invocation, command=command)

    try:
        result.cache_set = collector.collect(request.cache_level, request.project_root)
    except CacheCollectionError as e:
        logger.warning(f"Failed to collect cache paths: {e}")
        result.warnings.append(str(e))
        return result

    for warning in result.cache_set.warnings:
        logger.warning(f"Failed to collect cache paths: {warning}")
        result.warnings.append(warning)

    if not result.cache_set:
        logger.debug("No cache paths to register")
        return result

    logger.info("Collecting NuGet cache paths...")
    for entry in result.cache_set:
        logger.info(f"- {entry.path} ({entry.category.value})")

    try:
        if registry is None:
            registry = CacheIncludeRegistry(request.registry_path)
        registry_path = registry.commit(result.cache_set)
        logger.info(f"Cache paths registered in {registry_path}")
    except CacheCollectionError as e:
        logger.warning(f"Failed to register cache paths: {e}")
        result.warnings.append(str(e))

    return result
