"""
Entry point for running RestoreKit CLI as a module.

Usage: python -m restorekit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
