"""
Robo Plugin Manifest.

This module reads Robo plugin declarations out of package metadata.

Key features:
- Plugin classification by reserved extras key
- Declaration parsing ({"robo": {"operations": {...}}})
- Callable reference parsing (Fully.Qualified.Class::method)
- Package records from pyproject.toml package directories
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from roboplug.config.toml_handler import TOMLError, read_toml
from roboplug.host import Package

logger = logging.getLogger(__name__)

# Canonical, case-sensitive reserved key. "Robo" is not recognised.
DEFAULT_METADATA_KEY = "robo"

LIFECYCLE_OPERATIONS = ("install", "update", "uninstall")

DEFAULT_AUTOLOAD = {"": ["src", "."]}

_IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
_CALLABLE_RE = re.compile(
    rf"^(?P<cls>{_IDENTIFIER}(?:\.{_IDENTIFIER})*)::(?P<method>{_IDENTIFIER})$"
)


class ManifestError(Exception):
    """Base exception for manifest-related errors."""

    pass


class ValidationError(ManifestError):
    """Raised when a declaration or callable reference is malformed."""

    pass


@dataclass(frozen=True)
class CallableRef:
    """
    A parsed plugin callable reference.

    Attributes:
        module_path: Dotted module path holding the class ("" for top level)
        class_name: Class name
        method_name: Static or class method name
        raw: Reference string as declared
    """

    module_path: str
    class_name: str
    method_name: str
    raw: str

    @property
    def class_path(self) -> str:
        if self.module_path:
            return f"{self.module_path}.{self.class_name}"
        return self.class_name


@dataclass(frozen=True)
class PluginDeclaration:
    """
    The reserved-key block of a plugin package.

    Attributes:
        operations: Lifecycle name -> callable reference string
        raw_data: Raw declaration block
    """

    operations: dict[str, str]
    raw_data: Mapping[str, Any]

    def callable_for(self, operation: str) -> str | None:
        return self.operations.get(operation)


def is_plugin(package: Package, key: str = DEFAULT_METADATA_KEY) -> bool:
    """
    Determine if a package is a Robo plugin.

    A package must carry a non-empty value under the reserved extras key.
    The value's shape is not checked here.
    """
    extra = package.extra if isinstance(package.extra, Mapping) else {}
    return bool(extra.get(key))


def get_declaration(
    package: Package, key: str = DEFAULT_METADATA_KEY
) -> PluginDeclaration | None:
    """
    Parse the plugin declaration of a package.

    Args:
        package: Package to read
        key: Reserved extras key

    Returns:
        PluginDeclaration, or None if the package is not a plugin

    Raises:
        ValidationError: If the declaration block is malformed
    """
    if not is_plugin(package, key):
        return None

    block = package.extra[key]
    if not isinstance(block, Mapping):
        raise ValidationError(
            f"'{key}' metadata of {package.name} must be a table, "
            f"got {type(block).__name__}"
        )

    operations = block.get("operations", {})
    if not isinstance(operations, Mapping):
        raise ValidationError(f"'{key}.operations' of {package.name} must be a table")

    parsed: dict[str, str] = {}
    for name, ref in operations.items():
        if name not in LIFECYCLE_OPERATIONS:
            logger.warning("Ignoring unknown operation '%s' in %s", name, package.name)
            continue
        if not isinstance(ref, str):
            raise ValidationError(
                f"'{key}.operations.{name}' of {package.name} must be a string"
            )
        parsed[name] = ref

    return PluginDeclaration(operations=parsed, raw_data=block)


def parse_callable(reference: str) -> CallableRef:
    """
    Parse a callable reference string.

    Accepts "pkg.module.Class::method". Backslash namespace separators are
    treated as dots and a leading separator is stripped, so
    "\\Foo\\Bar::setup" parses as module "Foo", class "Bar", method "setup".

    Raises:
        ValidationError: If reference is not in Class::method shape
    """
    if not isinstance(reference, str):
        raise ValidationError(f"Callable reference must be a string: {reference!r}")

    normalized = reference.strip().replace("\\", ".").lstrip(".")
    match = _CALLABLE_RE.match(normalized)
    if not match:
        raise ValidationError(
            f"Malformed callable '{reference}'. "
            f"Expected format: 'package.module.Class::method'"
        )

    module_path, _, class_name = match.group("cls").rpartition(".")
    return CallableRef(
        module_path=module_path,
        class_name=class_name,
        method_name=match.group("method"),
        raw=reference,
    )


def read_package(package_dir: Path) -> Package:
    """
    Build a Package from a directory holding a pyproject.toml.

    [project] provides name and version, the [tool] table provides the
    extras, and [tool.autoload] maps module prefixes to directories.

    Raises:
        ManifestError: If the manifest cannot be read
        ValidationError: If required fields are missing
    """
    manifest_path = package_dir / "pyproject.toml"
    try:
        data = read_toml(manifest_path)
    except TOMLError as e:
        raise ManifestError(str(e)) from e

    project = data.get("project", {})
    if "name" not in project:
        raise ValidationError(f"Missing required field: project.name in {manifest_path}")

    extra = dict(data.get("tool", {}))
    autoload = extra.pop("autoload", None) or DEFAULT_AUTOLOAD
    # Malformed rules are kept as declared and rejected at resolution time
    if isinstance(autoload, Mapping):
        autoload = {
            prefix: [dirs] if isinstance(dirs, str) else dirs
            for prefix, dirs in autoload.items()
        }

    return Package(
        name=project["name"],
        version=project.get("version", "0.0.0"),
        extra=extra,
        autoload=autoload,
        install_path=package_dir.resolve(),
    )
