"""
Entry point for running RestoreKit CLI as a module.

Usage: python -m restorekit [command] [options]
"""

from restorekit.cli.parser import main

if __name__ == "__main__":
    main()
