"""
Plugin Callable Registry.

This module turns declared callable strings into function references. It is
the only place where plugin code is looked up by name.

Key features:
- Resolution through per-package autoload rules
- One-time source loading
- Registry of resolved callables keyed by package install and reference
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from roboplug.host import Package
from roboplug.plugin.autoload import AutoloadError, AutoloadFinder, class_loader_for
from roboplug.plugin.errors import (
    ClassNotFoundError,
    DispatchError,
    MalformedCallableError,
    ResolutionError,
    SourceLoadError,
)
from roboplug.plugin.loader import LoaderError, load_source
from roboplug.plugin.manifest import ValidationError, parse_callable

logger = logging.getLogger(__name__)

RegistryKey = tuple[str, str, str, str]


def registry_key(package: Package, reference: str) -> RegistryKey:
    """Key a reference by the package name, version and install path."""
    return (package.name, package.version, str(package.install_path), reference)


class CallableRegistry:
    """
    Registry of resolved plugin callables.

    Callables are registered at resolution time, after their source has been
    loaded. Resolving the same reference of the same package install again
    returns the registered function without touching the filesystem. Another
    version or install path of the package resolves afresh.
    """

    def __init__(self):
        self._callables: dict[RegistryKey, Callable[..., Any]] = {}

    def register(
        self, package: Package, reference: str, func: Callable[..., Any]
    ) -> None:
        """Register a callable for a package's reference string."""
        self._callables[registry_key(package, reference)] = func

    def get(self, package: Package, reference: str) -> Callable[..., Any] | None:
        return self._callables.get(registry_key(package, reference))

    def __contains__(self, key: RegistryKey) -> bool:
        return key in self._callables

    def __len__(self) -> int:
        return len(self._callables)

    def clear(self) -> None:
        self._callables.clear()

    def resolve(self, package: Package, reference: str) -> Callable[..., Any]:
        """
        Resolve a declared callable string for a package.

        Args:
            package: Package declaring the callable
            reference: Callable string (e.g. "robo_foo.setup.Installer::install")

        Returns:
            The callable

        Raises:
            MalformedCallableError: If reference is malformed or the attribute
                is not callable
            ClassNotFoundError: If the class file or class cannot be found
            SourceLoadError: If the class file fails to load
            ResolutionError: If resolution fails in any other way
        """
        cached = self.get(package, reference)
        if cached is not None:
            return cached

        try:
            func = self._resolve(package, reference)
        except DispatchError:
            raise
        except Exception as e:
            raise ResolutionError(
                package.name, reference, f"{type(e).__name__}: {e}"
            ) from e

        self.register(package, reference, func)
        logger.debug("Registered %s for %s %s", reference, package.name, package.version)
        return func

    def _resolve(self, package: Package, reference: str) -> Callable[..., Any]:
        try:
            ref = parse_callable(reference)
        except ValidationError as e:
            raise MalformedCallableError(package.name, reference, str(e)) from e

        try:
            class_loader = class_loader_for(package)
        except AutoloadError as e:
            raise ClassNotFoundError(package.name, reference, str(e)) from e

        source_path = class_loader.find_file(ref.class_path)
        if source_path is None:
            raise ClassNotFoundError(
                package.name,
                reference,
                f"No source file found for class {ref.class_path}",
            )

        try:
            module = load_source(
                source_path,
                ref.module_path,
                AutoloadFinder(class_loader, ref.module_path),
                package.install_path,
            )
        except LoaderError as e:
            raise SourceLoadError(package.name, reference, str(e)) from e

        cls = getattr(module, ref.class_name, None)
        if not inspect.isclass(cls):
            raise ClassNotFoundError(
                package.name,
                reference,
                f"Class {ref.class_name} not defined in {source_path}",
            )

        func = getattr(cls, ref.method_name, None)
        if func is None or not callable(func):
            raise MalformedCallableError(
                package.name,
                reference,
                f"{ref.class_name} has no callable method {ref.method_name}",
            )

        return func
