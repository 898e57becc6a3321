"""
robopm CLI - Replay a package manager run against Robo plugins.

Pacman-style interface that feeds install/update operations for local
package directories through the Robo plugin subscriber, then completes the
run so recorded plugins get installed.

Usage:
    robopm -S <package-dir>...   Replay install operations
    robopm -U <package-dir>...   Replay update operations
    robopm --print-config        Print the default [tool.roboplug] table
    robopm --init-config         Write the default [tool.roboplug] table
"""

import argparse
import logging
import sys

from roboplug.config import ConfigError
from roboplug.plugin.errors import PluginBatchError
from roboplug.plugin.manifest import ManifestError


class RoboPMError(Exception):
    """Base exception for robopm errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="robopm",
        description="Robo plugin installer - replay package operations",
        add_help=False,
    )

    # Operation flags (mutually exclusive)
    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Replay installs")
    ops.add_argument("-U", "--upgrade", action="store_true", help="Replay updates")
    ops.add_argument(
        "--print-config", action="store_true", help="Print default settings"
    )
    ops.add_argument(
        "--init-config", action="store_true", help="Write default settings"
    )
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    # Common options
    parser.add_argument(
        "--project", default=".", help="Root project directory (default: .)"
    )
    parser.add_argument(
        "--noconfirm", action="store_true", help="Skip confirmation prompts"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # Positional arguments
    parser.add_argument("targets", nargs="*", help="Package directories")

    return parser


def print_help():
    """Print help message."""
    help_text = """
robopm - Robo plugin installer

Usage:
    robopm -S <package-dir>...   Replay install operations
    robopm -U <package-dir>...   Replay update operations
    robopm --print-config        Print the default [tool.roboplug] table
    robopm --init-config         Write the default [tool.roboplug] table

Options:
    --project DIR                Root project directory (default: .)
    --noconfirm                  Skip confirmation prompts (runs never prompt)
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def main(argv: list[str] | None = None) -> int:
    """Main entry point for robopm CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.help or not (
            args.sync or args.upgrade or args.print_config or args.init_config
        ):
            print_help()
            return 0

        if args.print_config or args.init_config:
            from robopm.commands.config import config_command

            return config_command(args)

        from robopm.commands.install import install_command

        return install_command(args)

    except (RoboPMError, PluginBatchError, ManifestError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
