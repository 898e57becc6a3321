"""
Robo Plugin Event Subscriber.

This module hooks the shim into the host package manager.

Every package install/update event is classified and Robo plugins are
recorded in a PluginBatch. Once the update command is finished, the batch is
dispatched in recorded order and cleared.

Example:
    subscriber = RoboPluginSubscriber()
    subscriber.activate(host, io)
    host.event_dispatcher.dispatch(PackageEvents.POST_PACKAGE_INSTALL, event)
    ...
    host.event_dispatcher.dispatch(ScriptEvents.POST_UPDATE_CMD, ScriptEvent(...))
"""

import logging
from dataclasses import dataclass, field

from roboplug.config import Settings
from roboplug.host import (
    Host,
    InstallOperation,
    IOInterface,
    Operation,
    Package,
    PackageEvent,
    PackageEvents,
    ScriptEvent,
    ScriptEvents,
    UpdateOperation,
)
from roboplug.plugin.dispatcher import DispatchReport, dispatch_batch, root_extras
from roboplug.plugin.errors import PluginBatchError
from roboplug.plugin.manifest import is_plugin
from roboplug.plugin.registry import CallableRegistry

logger = logging.getLogger(__name__)


class SubscriberError(Exception):
    """Base exception for subscriber errors."""

    pass


@dataclass
class PluginBatch:
    """
    Robo plugins recorded during one update run.

    Entries keep operation order. The same package appears once per
    install/update operation unless deduplication is enabled.
    """

    packages: list[Package] = field(default_factory=list)

    def append(self, package: Package, deduplicate: bool = False) -> None:
        if deduplicate and any(p.name == package.name for p in self.packages):
            logger.debug("%s already recorded, skipping duplicate", package.name)
            return
        self.packages.append(package)

    def drain(self) -> list[Package]:
        """Return all recorded packages and clear the batch."""
        packages, self.packages = self.packages, []
        return packages

    def __len__(self) -> int:
        return len(self.packages)

    def __bool__(self) -> bool:
        return bool(self.packages)


def operation_package(operation: Operation) -> Package | None:
    """Package an operation leaves installed: the new package or the update target."""
    if isinstance(operation, InstallOperation):
        return operation.package
    if isinstance(operation, UpdateOperation):
        return operation.target_package
    return None


def record_operation(
    batch: PluginBatch, operation: Operation, settings: Settings
) -> PluginBatch:
    """
    Record the package of an operation if it is a Robo plugin.

    Non-plugin packages and other operation types are skipped silently.

    Returns:
        The same batch
    """
    package = operation_package(operation)
    if package is not None and is_plugin(package, settings.metadata_key):
        logger.debug("Recording Robo plugin %s", package.name)
        batch.append(package, settings.deduplicate)
    return batch


def run_batch(
    batch: PluginBatch,
    root_package: Package,
    io: IOInterface,
    registry: CallableRegistry,
    settings: Settings,
) -> DispatchReport:
    """
    Dispatch and clear a batch.

    Raises:
        PluginBatchError: If settings.strict is set and any plugin failed
    """
    packages = batch.drain()
    report = dispatch_batch(
        packages,
        io,
        root_extras(root_package, settings.metadata_key),
        registry,
        key=settings.metadata_key,
        fail_fast=settings.fail_fast,
    )

    for failure in report.failures:
        io.write_error(f"Robo plugin {failure.package_name} failed: {failure.message}")

    if settings.strict:
        report.raise_for_failures()

    return report


class RoboPluginSubscriber:
    """
    Host plugin collecting and installing Robo plugins.

    Holds one PluginBatch per activation; the batch is emptied each time
    the update command completes.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        registry: CallableRegistry | None = None,
    ):
        self.settings = settings or Settings()
        self.registry = registry or CallableRegistry()
        self.batch = PluginBatch()
        self.host: Host | None = None
        self.io: IOInterface | None = None

    def activate(self, host: Host, io: IOInterface) -> None:
        """
        Bind to the host and register event listeners.

        Args:
            host: Host package manager
            io: I/O handle passed on to plugins
        """
        self.host = host
        self.io = io
        self.batch = PluginBatch()
        host.event_dispatcher.add_subscriber(self)

    @staticmethod
    def get_subscribed_events() -> dict[str, str]:
        """Event name -> handler method name."""
        return {
            PackageEvents.POST_PACKAGE_INSTALL: "on_post_package_event",
            PackageEvents.POST_PACKAGE_UPDATE: "on_post_package_event",
            ScriptEvents.POST_UPDATE_CMD: "on_post_cmd_event",
        }

    def on_post_package_event(self, event: PackageEvent) -> None:
        """Record the operated package if it is a Robo plugin."""
        record_operation(self.batch, event.operation, self.settings)

    def on_post_cmd_event(self, event: ScriptEvent) -> DispatchReport | None:
        """
        Install every recorded Robo plugin.

        Returns:
            DispatchReport, or None if nothing was recorded

        Raises:
            SubscriberError: If called before activate()
            PluginBatchError: If strict and any plugin failed
        """
        if self.host is None or self.io is None:
            raise SubscriberError("Subscriber used before activate()")

        if not self.batch:
            return None

        logger.info("Installing %d Robo plugin(s)", len(self.batch))
        try:
            return run_batch(
                self.batch, self.host.root_package, self.io, self.registry, self.settings
            )
        except PluginBatchError:
            logger.error("Robo plugin installation finished with failures")
            raise
