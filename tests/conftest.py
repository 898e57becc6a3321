"""Shared fixtures for roboplug tests."""

import textwrap
from pathlib import Path

import pytest

from roboplug.host import BufferIO, Package
from roboplug.plugin import loader


class RecordingIO(BufferIO):
    """BufferIO that plugins can append call records to."""

    def __init__(self, verbose: bool = False):
        super().__init__(verbose)
        self.calls: list[tuple[str, dict]] = []


SETUP_SOURCE = """
from roboplug.plugin.interface import RoboPluginInterface


class Installer(RoboPluginInterface):
    @staticmethod
    def install(io, extra):
        io.calls.append(("{name}", dict(extra)))
"""


def make_plugin(
    root: Path,
    name: str,
    reference: str | None = "{mod}.setup.Installer::install",
    source: str | None = None,
    module_file: str = "src/{mod}/setup.py",
) -> Package:
    """Write a plugin package to disk and return its Package record."""
    mod = name.replace("-", "_")
    install_path = root / name
    target = install_path / module_file.format(mod=mod)
    target.parent.mkdir(parents=True, exist_ok=True)
    (target.parent / "__init__.py").write_text("")
    body = source if source is not None else SETUP_SOURCE.replace("{name}", name)
    target.write_text(textwrap.dedent(body))

    operations = {}
    if reference is not None:
        operations["install"] = reference.format(mod=mod)

    return Package(
        name=name,
        version="1.0.0",
        extra={"robo": {"operations": operations} if operations else {"name": name}},
        autoload={"": ["src", "."]},
        install_path=install_path,
    )


@pytest.fixture(autouse=True)
def clean_loader_cache():
    """Drop loaded plugin modules between tests."""
    yield
    loader.clear_cache()


@pytest.fixture
def io():
    return RecordingIO()
