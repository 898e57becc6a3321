"""
Tests for the Robo plugin subscriber.

This test suite covers:
1. Operation recording (install, update, uninstall, non-plugins)
2. Batch ordering and duplicate handling
3. End-of-run dispatch through the host event dispatcher
4. Strict and lenient failure reporting
"""

import tempfile
from pathlib import Path

import pytest
from conftest import RecordingIO, make_plugin

from roboplug.config import Settings
from roboplug.core.events import EventDispatcher
from roboplug.host import (
    Host,
    InstallOperation,
    Package,
    PackageEvent,
    PackageEvents,
    ScriptEvent,
    ScriptEvents,
    UninstallOperation,
    UpdateOperation,
)
from roboplug.plugin.errors import PluginBatchError
from roboplug.plugin.subscriber import (
    PluginBatch,
    RoboPluginSubscriber,
    SubscriberError,
    operation_package,
    record_operation,
)


def install_event(package: Package) -> PackageEvent:
    return PackageEvent(PackageEvents.POST_PACKAGE_INSTALL, InstallOperation(package))


def update_event(initial: Package, target: Package) -> PackageEvent:
    return PackageEvent(
        PackageEvents.POST_PACKAGE_UPDATE, UpdateOperation(initial, target)
    )


def finish(host: Host) -> list:
    return host.event_dispatcher.dispatch(
        ScriptEvents.POST_UPDATE_CMD, ScriptEvent(ScriptEvents.POST_UPDATE_CMD)
    )


def activated(root: Package, settings: Settings | None = None):
    host = Host(root_package=root, event_dispatcher=EventDispatcher())
    io = RecordingIO()
    subscriber = RoboPluginSubscriber(settings)
    subscriber.activate(host, io)
    return host, io, subscriber


class TestRecordOperation:
    """Test recording of package operations."""

    def test_install_records_package(self):
        """Should record the installed package."""
        package = Package("robo-foo", extra={"robo": {"operations": {}}})
        batch = record_operation(PluginBatch(), InstallOperation(package), Settings())
        assert batch.packages == [package]

    def test_update_records_target(self):
        """Should record the update target, not the initial package."""
        old = Package("robo-foo", "1.0.0", extra={"robo": {"operations": {}}})
        new = Package("robo-foo", "2.0.0", extra={"robo": {"operations": {}}})
        batch = record_operation(PluginBatch(), UpdateOperation(old, new), Settings())
        assert batch.packages == [new]

    def test_uninstall_ignored(self):
        """Should ignore uninstall operations."""
        package = Package("robo-foo", extra={"robo": {"operations": {}}})
        assert operation_package(UninstallOperation(package)) is None
        batch = record_operation(PluginBatch(), UninstallOperation(package), Settings())
        assert not batch

    def test_non_plugin_skipped(self):
        """Should silently skip non-plugin packages."""
        batch = record_operation(
            PluginBatch(), InstallOperation(Package("plain")), Settings()
        )
        assert len(batch) == 0

    def test_custom_metadata_key(self):
        """Should classify with the configured key."""
        package = Package("p", extra={"runner": {"operations": {}}})
        settings = Settings(metadata_key="runner")
        assert len(record_operation(PluginBatch(), InstallOperation(package), settings)) == 1
        assert len(record_operation(PluginBatch(), InstallOperation(package), Settings())) == 0

    def test_duplicates_preserved_by_default(self):
        """Should record a package once per operation."""
        package = Package("robo-foo", extra={"robo": {"operations": {}}})
        batch = PluginBatch()
        record_operation(batch, InstallOperation(package), Settings())
        record_operation(batch, UpdateOperation(package, package), Settings())
        assert len(batch) == 2

    def test_deduplicate(self):
        """Should keep only the first occurrence when deduplicating."""
        first = Package("robo-foo", "1.0.0", extra={"robo": {"operations": {}}})
        second = Package("robo-foo", "2.0.0", extra={"robo": {"operations": {}}})
        settings = Settings(deduplicate=True)
        batch = PluginBatch()
        record_operation(batch, InstallOperation(first), settings)
        record_operation(batch, UpdateOperation(first, second), settings)
        assert batch.packages == [first]

    def test_drain_clears(self):
        """Should empty the batch when drained."""
        package = Package("robo-foo", extra={"robo": {"operations": {}}})
        batch = PluginBatch([package])
        assert batch.drain() == [package]
        assert batch.drain() == []


class TestSubscriberRun:
    """Test the subscriber wired to the host event dispatcher."""

    def test_subscribed_events(self):
        """Should subscribe to install, update and post-update-cmd."""
        events = RoboPluginSubscriber.get_subscribed_events()
        assert events == {
            PackageEvents.POST_PACKAGE_INSTALL: "on_post_package_event",
            PackageEvents.POST_PACKAGE_UPDATE: "on_post_package_event",
            ScriptEvents.POST_UPDATE_CMD: "on_post_cmd_event",
        }

    def test_plugins_run_after_all_operations_in_order(self):
        """Should install plugins only at run end, in observed order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root_dir = Path(tmpdir)
            first = make_plugin(root_dir, "robo-b")
            second = make_plugin(root_dir, "robo-a")
            host, io, subscriber = activated(
                Package("root", extra={"robo": {"foo": 1}})
            )

            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_INSTALL, install_event(first)
            )
            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_INSTALL, install_event(Package("plain"))
            )
            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_UPDATE, update_event(second, second)
            )

            assert io.calls == []

            [report] = finish(host)

            assert io.calls == [("robo-b", {"foo": 1}), ("robo-a", {"foo": 1})]
            assert report.installed == ["robo-b", "robo-a"]
            assert len(subscriber.batch) == 0

    def test_installed_and_updated_runs_twice(self):
        """Should dispatch a package installed and updated in one run twice."""
        with tempfile.TemporaryDirectory() as tmpdir:
            package = make_plugin(Path(tmpdir), "robo-foo")
            host, io, _ = activated(Package("root"))

            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_INSTALL, install_event(package)
            )
            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_UPDATE, update_event(package, package)
            )
            finish(host)

            assert io.calls == [("robo-foo", {}), ("robo-foo", {})]

    def test_empty_batch(self):
        """Should do nothing when no plugin was recorded."""
        host, io, _ = activated(Package("root"))
        assert finish(host) == [None]
        assert io.calls == []

    def test_second_run_starts_empty(self):
        """Should not replay the previous run's plugins."""
        with tempfile.TemporaryDirectory() as tmpdir:
            package = make_plugin(Path(tmpdir), "robo-foo")
            host, io, _ = activated(Package("root"))

            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_INSTALL, install_event(package)
            )
            finish(host)
            finish(host)

            assert len(io.calls) == 1

    def test_strict_failure_raises_after_all_plugins(self):
        """Should run remaining plugins, then raise all failures together."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root_dir = Path(tmpdir)
            bad = make_plugin(root_dir, "robo-bad", reference="robo_bad::")
            good = make_plugin(root_dir, "robo-good")
            host, io, subscriber = activated(Package("root"))

            for package in (bad, good):
                host.event_dispatcher.dispatch(
                    PackageEvents.POST_PACKAGE_INSTALL, install_event(package)
                )

            with pytest.raises(PluginBatchError) as exc_info:
                finish(host)

            assert io.calls == [("robo-good", {})]
            assert [f.package_name for f in exc_info.value.failures] == ["robo-bad"]
            assert io.errors and "robo-bad" in io.errors[0]
            assert len(subscriber.batch) == 0

    def test_lenient_failure_reports(self):
        """Should return the report without raising when strict is off."""
        with tempfile.TemporaryDirectory() as tmpdir:
            bad = make_plugin(Path(tmpdir), "robo-bad", reference="robo_bad.x.Y::z")
            host, io, _ = activated(Package("root"), Settings(strict=False))

            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_INSTALL, install_event(bad)
            )
            [report] = finish(host)

            assert not report.ok
            assert report.failures[0].callable_ref == "robo_bad.x.Y::z"
            assert len(io.errors) == 1

    def test_not_activated(self):
        """Should refuse to run before activation."""
        subscriber = RoboPluginSubscriber()
        with pytest.raises(SubscriberError, match="before activate"):
            subscriber.on_post_cmd_event(ScriptEvent(ScriptEvents.POST_UPDATE_CMD))

    def test_other_script_events_ignored(self):
        """Should not dispatch on post-install-cmd."""
        with tempfile.TemporaryDirectory() as tmpdir:
            package = make_plugin(Path(tmpdir), "robo-foo")
            host, io, subscriber = activated(Package("root"))

            host.event_dispatcher.dispatch(
                PackageEvents.POST_PACKAGE_INSTALL, install_event(package)
            )
            host.event_dispatcher.dispatch(
                ScriptEvents.POST_INSTALL_CMD, ScriptEvent(ScriptEvents.POST_INSTALL_CMD)
            )

            assert io.calls == []
            assert len(subscriber.batch) == 1
