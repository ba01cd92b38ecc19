"""
Configuration for RestoreKit runs.
"""

from .parser import (
    RestoreRequest,
    load_request,
    load_yaml_config,
    describe_request,
    DEFAULT_CONFIG_FILE,
)

__all__ = [
    "RestoreRequest",
    "load_request",
    "load_yaml_config",
    "describe_request",
    "DEFAULT_CONFIG_FILE",
]
