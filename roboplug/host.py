"""
Host Package Manager Interfaces.

This module declares the pieces of the host package manager that the Robo
plugin shim consumes.

Key features:
- Immutable Package records with metadata extras and autoload rules
- Install / update / uninstall operation types
- Package and script event types with their event names
- I/O handle protocol plus a console implementation
"""

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol


class PackageEvents:
    """Event names emitted around a single package operation."""

    POST_PACKAGE_INSTALL = "post-package-install"
    POST_PACKAGE_UPDATE = "post-package-update"
    POST_PACKAGE_UNINSTALL = "post-package-uninstall"


class ScriptEvents:
    """Event names emitted around a whole command run."""

    POST_INSTALL_CMD = "post-install-cmd"
    POST_UPDATE_CMD = "post-update-cmd"


@dataclass(frozen=True)
class Package:
    """
    An installed dependency as resolved by the host.

    Attributes:
        name: Package name
        version: Installed version
        extra: Arbitrary metadata extras read from the package manifest
        autoload: Module prefix -> list of directories (relative to install_path)
        install_path: Directory the package was installed into
    """

    name: str
    version: str = "0.0.0"
    extra: Mapping[str, Any] = field(default_factory=dict)
    autoload: Mapping[str, list[str]] = field(default_factory=dict)
    install_path: Path | None = None


@dataclass(frozen=True)
class InstallOperation:
    """A package being installed for the first time."""

    package: Package


@dataclass(frozen=True)
class UpdateOperation:
    """A package moving from one version to another."""

    initial_package: Package
    target_package: Package


@dataclass(frozen=True)
class UninstallOperation:
    """A package being removed."""

    package: Package


Operation = InstallOperation | UpdateOperation | UninstallOperation


@dataclass(frozen=True)
class PackageEvent:
    """Event carrying the operation that was just executed."""

    name: str
    operation: Operation


@dataclass(frozen=True)
class ScriptEvent:
    """Event emitted once a command run is finished."""

    name: str
    dev_mode: bool = False


class IOInterface(Protocol):
    """Interaction/output handle handed to plugins."""

    def write(self, message: str) -> None: ...

    def write_error(self, message: str) -> None: ...

    def is_verbose(self) -> bool: ...


class ConsoleIO:
    """IOInterface writing to stdout/stderr."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def write(self, message: str) -> None:
        print(message)

    def write_error(self, message: str) -> None:
        print(message, file=sys.stderr)

    def is_verbose(self) -> bool:
        return self.verbose


class BufferIO:
    """IOInterface collecting output in memory."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.output: list[str] = []
        self.errors: list[str] = []

    def write(self, message: str) -> None:
        self.output.append(message)

    def write_error(self, message: str) -> None:
        self.errors.append(message)

    def is_verbose(self) -> bool:
        return self.verbose


@dataclass
class Host:
    """
    The host package manager as seen by a plugin.

    Attributes:
        root_package: The project the command is run for
        event_dispatcher: Dispatcher emitting package and script events
    """

    root_package: Package
    event_dispatcher: Any
