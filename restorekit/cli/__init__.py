"""
RestoreKit CLI module.

This module provides the command-line interface for RestoreKit.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
