"""
robopm install/update commands (-S / -U).

Replay install or update operations for package directories through the
Robo plugin subscriber, then complete the run.
"""

import sys
from pathlib import Path
from typing import Any

from roboplug.config import load_settings
from roboplug.core.events import EventDispatcher
from roboplug.host import (
    ConsoleIO,
    Host,
    InstallOperation,
    Package,
    PackageEvent,
    PackageEvents,
    ScriptEvent,
    ScriptEvents,
    UpdateOperation,
)
from roboplug.plugin.manifest import read_package
from roboplug.plugin.subscriber import RoboPluginSubscriber
from robopm.cli import RoboPMError


def install_command(args: Any) -> int:
    """
    Execute install (-S) or update (-U) command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if not args.targets:
        flag = "-U" if args.upgrade else "-S"
        print("Error: No targets specified", file=sys.stderr)
        print(f"Usage: robopm {flag} <package-dir>...", file=sys.stderr)
        return 1

    project_dir = Path(args.project)
    settings = load_settings(project_dir / "pyproject.toml")
    root = load_root_package(project_dir)

    io = ConsoleIO(verbose=args.verbose)
    host = Host(root_package=root, event_dispatcher=EventDispatcher())

    subscriber = RoboPluginSubscriber(settings)
    subscriber.activate(host, io)

    event_name = (
        PackageEvents.POST_PACKAGE_UPDATE
        if args.upgrade
        else PackageEvents.POST_PACKAGE_INSTALL
    )

    for target in args.targets:
        if not Path(target).is_dir():
            raise RoboPMError(f"Package directory not found: {target}")
        package = read_package(Path(target))
        if args.upgrade:
            operation = UpdateOperation(package, package)
        else:
            operation = InstallOperation(package)

        if args.verbose:
            print(f"{event_name}: {package.name} {package.version}")
        host.event_dispatcher.dispatch(event_name, PackageEvent(event_name, operation))

    results = host.event_dispatcher.dispatch(
        ScriptEvents.POST_UPDATE_CMD, ScriptEvent(ScriptEvents.POST_UPDATE_CMD)
    )
    report = results[0] if results else None

    if report is None:
        if args.verbose:
            print("No Robo plugins to install")
        return 0

    if args.verbose:
        print(
            f"\nInstalled: {len(report.installed)}, "
            f"Skipped: {len(report.skipped)}, Failed: {len(report.failures)}"
        )

    return 0 if report.ok else 1


def load_root_package(project_dir: Path) -> Package:
    """Read the root project, or an empty stand-in if it has no pyproject.toml."""
    if (project_dir / "pyproject.toml").exists():
        return read_package(project_dir)
    return Package(name="__root__", install_path=project_dir.resolve())
