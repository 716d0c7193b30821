"""
Zircon CLI argument parser.

This module implements the command-line interface for Zircon using argparse.
"""

import argparse
import importlib
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

from ..core.update_check import check_for_updates
from .utils import get_context

try:
    __version__ = version("zircon")
except PackageNotFoundError:
    __version__ = "0.0.0"

logger = logging.getLogger(__name__)

# Commands whose output is parsed by scripts skip the update reminder
QUIET_COMMANDS = {"current"}


class CLI:
    """Zircon command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="zircon",
            description="Zircon - the Zirco toolchain installer and build tool",
            epilog='Use "zircon COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"Zircon {__version__}"
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
            "--root",
            type=Path,
            metavar="PATH",
            help="Zircon root directory (default: $ZIRCON_PREFIX or ~/.zircon)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: <root>/config.yaml)",
        )
        parser.add_argument(
            "--no-update-check",
            action="store_true",
            help="Skip the daily check for a newer Zircon",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_build_command(subparsers)
        self._add_install_command(subparsers)
        self._add_import_command(subparsers)
        self._add_switch_command(subparsers)
        self._add_list_command(subparsers)
        self._add_current_command(subparsers)
        self._add_delete_command(subparsers)
        self._add_prune_command(subparsers)
        self._add_bootstrap_command(subparsers)

        return parser

    def _add_build_command(self, subparsers):
        """Add 'build' subcommand."""
        parser = subparsers.add_parser(
            "build",
            help="Build a specific version of zrc",
            description="Build zrc from a branch, tag or commit and switch to it",
        )
        parser.add_argument(
            "reference", help="The git reference to build (branch, tag, or commit)"
        )
        parser.add_argument(
            "--zrc-repo",
            dest="repo_url",
            metavar="URL",
            help="Custom zrc repository URL",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Rebuild even if the toolchain is already installed",
        )
        parser.add_argument(
            "--no-switch",
            action="store_true",
            help="Don't switch to the toolchain after building it",
        )

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install a pre-built toolchain",
            description="Download a pre-built toolchain from GitHub releases",
        )
        parser.add_argument(
            "tag",
            nargs="?",
            default="nightly",
            help='The release tag to install (e.g., "nightly", "v0.1.0") [default: nightly]',
        )
        parser.add_argument(
            "--switch", action="store_true", help="Switch to the toolchain once installed"
        )
        parser.add_argument(
            "--force", action="store_true", help="Replace an installed toolchain"
        )

    def _add_import_command(self, subparsers):
        """Add 'import' subcommand."""
        parser = subparsers.add_parser(
            "import",
            help="Import a toolchain archive",
            description="Import a toolchain from a .tar.gz, .tgz, .tar or .zip archive",
        )
        parser.add_argument("archive", type=Path, help="Path to the archive")
        parser.add_argument(
            "--name",
            metavar="NAME",
            help="Toolchain name (default: archive file name without its suffix)",
        )
        parser.add_argument(
            "--switch", action="store_true", help="Switch to the toolchain once imported"
        )
        parser.add_argument(
            "--force", action="store_true", help="Replace an installed toolchain"
        )

    def _add_switch_command(self, subparsers):
        """Add 'switch' subcommand."""
        parser = subparsers.add_parser(
            "switch",
            help="Switch to a different installed toolchain",
            description="Make an installed toolchain the active one",
        )
        parser.add_argument("version", help="The version to switch to")

    def _add_list_command(self, subparsers):
        """Add 'list' subcommand."""
        subparsers.add_parser(
            "list",
            help="List installed toolchains",
            description="List installed toolchains, marking the active one",
        )

    def _add_current_command(self, subparsers):
        """Add 'current' subcommand."""
        subparsers.add_parser(
            "current",
            help="Show the active toolchain",
            description="Print the name of the active toolchain",
        )

    def _add_delete_command(self, subparsers):
        """Add 'delete' subcommand."""
        parser = subparsers.add_parser(
            "delete",
            help="Delete an installed toolchain",
            description="Delete an installed toolchain (never the active one)",
        )
        parser.add_argument("version", help="The version to delete")

    def _add_prune_command(self, subparsers):
        """Add 'prune' subcommand."""
        parser = subparsers.add_parser(
            "prune",
            help="Delete all toolchains except the active one",
            description="Delete every installed toolchain except the active one",
        )
        parser.add_argument(
            "--yes", "-y", action="store_true", help="Don't ask for confirmation"
        )

    def _add_bootstrap_command(self, subparsers):
        """Add 'bootstrap' subcommand."""
        subparsers.add_parser(
            "bootstrap",
            help="Set up the Zircon root directory",
            description="Create the Zircon directory layout and check dependencies",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
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

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        try:
            self._maybe_check_for_updates(parsed_args)
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _maybe_check_for_updates(self, args):
        """
        Run the daily update reminder unless disabled.

        Args:
            args: Parsed arguments
        """
        if args.no_update_check or args.command in QUIET_COMMANDS:
            return

        context = get_context(args)
        if not context.config.update_check:
            logger.debug("Update check disabled in configuration")
            return
        check_for_updates(context.paths)

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
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
            force=True,  # Reconfigure if already configured
        )

        # GitPython logs every git invocation at debug
        if not args.verbose:
            logging.getLogger("git").setLevel(logging.WARNING)

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        # Command module mapping
        command_map = {
            "build": "zircon.cli.commands.build",
            "install": "zircon.cli.commands.install",
            "import": "zircon.cli.commands.import_cmd",
            "switch": "zircon.cli.commands.switch",
            "list": "zircon.cli.commands.list_cmd",
            "current": "zircon.cli.commands.current",
            "delete": "zircon.cli.commands.delete",
            "prune": "zircon.cli.commands.prune",
            "bootstrap": "zircon.cli.commands.bootstrap",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
