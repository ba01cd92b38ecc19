"""
RestoreKit CLI argument parser.

This module implements the command-line interface for RestoreKit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from restorekit import __version__
from restorekit.core.exceptions import ConfigurationError
from restorekit.nuget.cache import CacheLevel

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


class CLI:
    """RestoreKit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="restorekit",
            description="RestoreKit - NuGet restore build step",
            epilog='Use "restorekit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        parser.add_argument(
            "--version", action="version", version=f"RestoreKit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./restorekit.yaml)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_restore_command(subparsers)
        self._add_cache_command(subparsers)

        return parser

    def _add_restore_command(self, subparsers):
        """Add 'restore' subcommand."""
        parser = subparsers.add_parser(
            "restore",
            help="Restore NuGet packages of a solution",
            description=(
                "Resolve NuGet, restore the solution's packages and register "
                "cache paths"
            ),
        )
        parser.add_argument(
            "--solution",
            metavar="PATH",
            help="Solution or project file (default: $xamarin_solution)",
        )
        parser.add_argument(
            "--nuget-version",
            metavar="VERSION",
            help='NuGet version: empty for installed, "latest" or e.g. 6.9.1',
        )
        parser.add_argument(
            "--cache-level",
            type=str.lower,
            choices=[level.value for level in CacheLevel],
            metavar="LEVEL",
            help="Cache paths to register (none|local|global|all) [default: all]",
        )
        parser.add_argument(
            "--include-http-cache",
            action="store_true",
            default=None,
            help="Also register the NuGet HTTP cache",
        )
        parser.add_argument(
            "--update-in-place",
            action="store_true",
            default=None,
            help='For "latest", run "nuget update -self" instead of downloading',
        )
        parser.add_argument(
            "--registry",
            type=Path,
            metavar="PATH",
            help="Cache include registry file",
        )

    def _add_cache_command(self, subparsers):
        """Add 'cache' subcommand."""
        parser = subparsers.add_parser(
            "cache",
            help="Inspect the cache include registry",
            description="Inspect the cache include registry",
        )
        cache_subparsers = parser.add_subparsers(
            dest="cache_command", metavar="SUBCOMMAND"
        )
        list_parser = cache_subparsers.add_parser(
            "list", help="List registered cache paths"
        )
        list_parser.add_argument(
            "--registry",
            type=Path,
            metavar="PATH",
            help="Cache include registry file",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return EXIT_FAILURE

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return EXIT_INTERRUPTED
        except ConfigurationError as e:
            logger.error(f"Issue with input: {e}")
            return EXIT_CONFIG_ERROR
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return EXIT_FAILURE

    def _configure_logging(self, args):
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,
        )

    def _dispatch_command(self, args) -> int:
        command_map = {
            "restore": "restorekit.cli.commands.restore",
            "cache": "restorekit.cli.commands.cache",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return EXIT_FAILURE

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
