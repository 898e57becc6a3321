"""
Robo Plugin Dispatcher.

This module runs the install callbacks of Robo plugin packages.

Key features:
- Single-plugin install with typed, per-package errors
- Batch dispatch in recorded order, collecting failures
- Root extras handed to every plugin as its own plain dict copy
"""

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from roboplug.host import IOInterface, Package
from roboplug.plugin.errors import (
    DispatchError,
    InvocationError,
    MalformedCallableError,
    PluginBatchError,
)
from roboplug.plugin.manifest import (
    DEFAULT_METADATA_KEY,
    ValidationError,
    get_declaration,
)
from roboplug.plugin.registry import CallableRegistry

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """
    Outcome of dispatching one batch.

    Attributes:
        installed: Names of packages whose install callable ran
        skipped: Names of packages that declared no install callable
        failures: Errors raised while dispatching, in order
    """

    installed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: list[DispatchError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        """
        Raise all collected failures together.

        Raises:
            PluginBatchError: If any plugin failed
        """
        if self.failures:
            raise PluginBatchError(self.failures)


def root_extras(root_package: Package, key: str = DEFAULT_METADATA_KEY) -> dict[str, Any]:
    """
    Get the root project's reserved-key block.

    Returns:
        A deep copy of the block as a plain dict, or an empty dict if the
        root declares none
    """
    block = root_package.extra.get(key)
    if not isinstance(block, Mapping):
        return {}
    return copy.deepcopy(dict(block))


def install_or_update(
    package: Package,
    io: IOInterface,
    extras: Mapping[str, Any],
    registry: CallableRegistry,
    key: str = DEFAULT_METADATA_KEY,
) -> bool:
    """
    Run a plugin package's install callable.

    A package without an operations.install entry is a no-op: nothing is
    loaded and nothing is raised.

    Args:
        package: Plugin package
        io: I/O handle passed to the plugin
        extras: Root extras; the plugin receives its own deep copy
        registry: Registry used to resolve the callable
        key: Reserved extras key

    Returns:
        True if the install callable ran, False for a no-op

    Raises:
        MalformedCallableError: If the declaration or reference is malformed
        ClassNotFoundError: If the class cannot be found
        SourceLoadError: If the class source fails to load
        ResolutionError: If resolution fails for any other reason
        InvocationError: If the install callable raises
    """
    try:
        declaration = get_declaration(package, key)
    except ValidationError as e:
        raise MalformedCallableError(package.name, None, str(e)) from e

    reference = declaration.callable_for("install") if declaration else None
    if reference is None:
        logger.debug("%s declares no install operation, skipping", package.name)
        return False

    func = registry.resolve(package, reference)

    logger.info("Running %s for %s", reference, package.name)
    try:
        func(io, copy.deepcopy(dict(extras)))
    except Exception as e:
        raise InvocationError(
            package.name, reference, f"Install callable raised {type(e).__name__}: {e}"
        ) from e

    return True


def dispatch_batch(
    packages: Iterable[Package],
    io: IOInterface,
    extras: Mapping[str, Any],
    registry: CallableRegistry,
    key: str = DEFAULT_METADATA_KEY,
    fail_fast: bool = False,
) -> DispatchReport:
    """
    Run install callables for every package, in order.

    A failing plugin is recorded and the remaining plugins still run, unless
    fail_fast is set.

    Returns:
        DispatchReport describing the run
    """
    report = DispatchReport()

    for package in packages:
        try:
            ran = install_or_update(package, io, extras, registry, key)
        except DispatchError as e:
            logger.error("Robo plugin %s failed: %s", package.name, e.message)
            report.failures.append(e)
            if fail_fast:
                break
            continue

        if ran:
            report.installed.append(package.name)
            if io.is_verbose():
                io.write(f"Installed Robo plugin {package.name}")
        else:
            report.skipped.append(package.name)

    return report
