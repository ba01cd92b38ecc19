"""Configuration loading for RestoreKit.

A run is configured from three sources, highest precedence first:

1. command-line arguments
2. step inputs in the environment (xamarin_solution, nuget_version, cache_level)
3. an optional restorekit.yaml file

Example restorekit.yaml::

    solution: ios/App.sln
    nuget:
      version: "6.9.1"
      mono_path: /usr/bin/mono
    cache:
      level: all
      include_http_cache: false
      registry: .restorekit/cache_include.json
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from restorekit.core.exceptions import ConfigurationError
from restorekit.nuget.cache import CacheLevel
from restorekit.nuget.tool import ToolSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "restorekit.yaml"

SOLUTION_ENV_VAR = "xamarin_solution"
VERSION_ENV_VAR = "nuget_version"
CACHE_LEVEL_ENV_VAR = "cache_level"

DEFAULT_CACHE_LEVEL = CacheLevel.ALL


@dataclass(frozen=True)
class RestoreRequest:
    """Validated input of one restore run."""

    solution_path: Path
    nuget_version: str = ""
    cache_level: CacheLevel = DEFAULT_CACHE_LEVEL
    tool_settings: ToolSettings = field(default_factory=ToolSettings)
    update_in_place: bool = False
    include_http_cache: bool = False
    registry_path: Optional[Path] = None

    @property
    def project_root(self) -> Path:
        """Directory searched for the local packages folder."""
        return self.solution_path.parent


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        ConfigurationError: If the file is required but missing, or is not valid YAML
    """
    if not config_file.exists():
        if required:
            raise ConfigurationError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to read {config_file}: {e}")

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration in {config_file} must be a mapping")
    return config


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' section must be a mapping")
    return section


def _parse_tool_settings(nuget: Dict[str, Any]) -> ToolSettings:
    known = {f.name for f in fields(ToolSettings)}
    overrides = {key: str(value) for key, value in nuget.items() if key in known}
    return ToolSettings(**overrides)


def _first(*values) -> Any:
    """First value that is not None."""
    return next((value for value in values if value is not None), None)


def load_request(
    cli_values: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
) -> RestoreRequest:
    """
    Build and validate a RestoreRequest.

    Args:
        cli_values: Values from the command line; None means "not given".
            Keys: solution, nuget_version, cache_level, include_http_cache,
            update_in_place, registry
        environ: Environment mapping (default: os.environ)
        config_file: Optional YAML file; must exist when given explicitly

    Relative paths from the command line or the environment are taken from
    the working directory, relative paths in the YAML file from its directory.

    Returns:
        Validated request

    Raises:
        ConfigurationError: If the solution is missing or the cache level is invalid
    """
    cli_values = dict(cli_values or {})
    environ = os.environ if environ is None else environ

    config: Dict[str, Any] = {}
    config_dir = Path.cwd()
    if config_file is not None:
        config = load_yaml_config(Path(config_file), required=True)
        config_dir = Path(config_file).resolve().parent

    nuget = _section(config, "nuget")
    cache = _section(config, "cache")

    # Step inputs are set but empty when the user left them blank
    solution = _first(
        cli_values.get("solution"), environ.get(SOLUTION_ENV_VAR) or None
    )
    solution_base = Path.cwd()
    if solution is None:
        solution = config.get("solution")
        solution_base = config_dir

    version = _first(
        cli_values.get("nuget_version"),
        environ.get(VERSION_ENV_VAR) or None,
        nuget.get("version"),
        "",
    )
    level = _first(
        cli_values.get("cache_level"),
        environ.get(CACHE_LEVEL_ENV_VAR) or None,
        cache.get("level"),
        DEFAULT_CACHE_LEVEL,
    )
    registry = cli_values.get("registry")
    registry_base = Path.cwd()
    if registry is None:
        registry = cache.get("registry")
        registry_base = config_dir

    solution_path = _validate_solution(solution, solution_base)

    registry_path = None
    if registry:
        registry_path = Path(registry).expanduser()
        if not registry_path.is_absolute():
            registry_path = registry_base / registry_path

    return RestoreRequest(
        solution_path=solution_path,
        nuget_version=str(version).strip(),
        cache_level=CacheLevel.parse(level),
        tool_settings=_parse_tool_settings(nuget),
        update_in_place=bool(
            _first(cli_values.get("update_in_place"), nuget.get("update_in_place"))
        ),
        include_http_cache=bool(
            _first(
                cli_values.get("include_http_cache"), cache.get("include_http_cache")
            )
        ),
        registry_path=registry_path,
    )


def _validate_solution(solution: Optional[str], base_dir: Path) -> Path:
    if not solution:
        raise ConfigurationError(
            f"no solution specified (set {SOLUTION_ENV_VAR} or pass --solution)"
        )

    path = Path(str(solution)).expanduser()
    if not path.is_absolute():
        path = base_dir / path

    try:
        exists = path.exists()
    except OSError as e:
        raise ConfigurationError(f"failed to check if solution exists at: {path}, error: {e}")

    if not exists:
        raise ConfigurationError(f"solution does not exist at: {path}")
    if not path.is_file():
        raise ConfigurationError(f"solution is not a file: {path}")

    return path.resolve()


def describe_request(request: RestoreRequest) -> List[str]:
    """Human-readable summary printed before the run."""
    return [
        "Configs:",
        f"- Solution: {request.solution_path}",
        f"- NuGet version: {request.nuget_version or '(installed)'}",
        f"- Cache level: {request.cache_level.value}",
    ]
