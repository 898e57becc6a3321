"""
Per-package Autoload Resolution.

This module locates the source file of a class declared by a plugin package,
looking only at that package's own autoload rules, and lets the import
system find the package's modules under their real dotted names.

Key features:
- Package map building (package -> install path)
- Autoload rule parsing and validation (module prefix -> directories)
- Longest-prefix module lookup (module.py or module/__init__.py)
- Meta path finder scoped to one top-level package
"""

import importlib.util
from collections.abc import Mapping
from dataclasses import dataclass, field
from importlib.machinery import ModuleSpec
from pathlib import Path

from roboplug.host import Package


class AutoloadError(Exception):
    """Base exception for autoload-related errors."""

    pass


def build_package_map(package: Package) -> list[tuple[Package, Path]]:
    """
    Build the package map for a single package.

    Raises:
        AutoloadError: If the package has no install path
    """
    if package.install_path is None:
        raise AutoloadError(f"Package {package.name} has no install path")
    return [(package, Path(package.install_path))]


@dataclass
class AutoloadRules:
    """
    Parsed autoload rules.

    Attributes:
        prefixes: Module prefix -> absolute directories, in declaration order
    """

    prefixes: dict[str, list[Path]] = field(default_factory=dict)

    def sorted_prefixes(self) -> list[str]:
        """Prefixes from most to least specific."""
        return sorted(self.prefixes, key=lambda p: (-len(p), p))


def parse_autoloads(package_map: list[tuple[Package, Path]]) -> AutoloadRules:
    """
    Parse the autoload rules of every package in a package map.

    Prefixes use dots; backslashes and trailing separators are normalised.
    Each prefix maps to a directory or a list of directories.

    Raises:
        AutoloadError: If a package's autoload table is malformed
    """
    rules = AutoloadRules()

    for package, install_path in package_map:
        if not isinstance(package.autoload, Mapping):
            raise AutoloadError(
                f"Autoload rules of {package.name} must be a table, "
                f"got {type(package.autoload).__name__}"
            )

        for prefix, dirs in package.autoload.items():
            if not isinstance(prefix, str):
                raise AutoloadError(
                    f"Autoload prefix {prefix!r} of {package.name} must be a string"
                )
            if isinstance(dirs, str):
                dirs = [dirs]
            if not isinstance(dirs, (list, tuple)) or not all(
                isinstance(d, str) for d in dirs
            ):
                raise AutoloadError(
                    f"Autoload entry '{prefix}' of {package.name} must be a "
                    f"directory or a list of directories, got {dirs!r}"
                )

            normalized = prefix.replace("\\", ".").strip(".")
            paths = rules.prefixes.setdefault(normalized, [])
            paths.extend(install_path / d for d in dirs)

    return rules


class ClassLoader:
    """
    Locates module and class source files from autoload rules.

    Example:
        rules: {"robo_foo": [<pkg>/src/robo_foo]}
        find_file("robo_foo.setup.Installer") -> <pkg>/src/robo_foo/setup.py
    """

    def __init__(self, rules: AutoloadRules):
        self.rules = rules

    def _candidates(self, module_path: str):
        """Yield (base, parts) pairs for every prefix covering module_path."""
        for prefix in self.rules.sorted_prefixes():
            if prefix and module_path != prefix and not module_path.startswith(prefix + "."):
                continue

            remainder = module_path[len(prefix):].lstrip(".") if prefix else module_path
            parts = remainder.split(".") if remainder else []

            for base in self.rules.prefixes[prefix]:
                yield base, parts

    def find_module(self, module_path: str) -> Path | None:
        """
        Find the file defining a dotted module path.

        Returns:
            Path to module.py or module/__init__.py, or None if not found
        """
        if not module_path:
            return None

        for base, parts in self._candidates(module_path):
            found = _module_file(base, parts)
            if found is not None:
                return found

        return None

    def find_package_dirs(self, module_path: str) -> list[Path]:
        """Directories that hold module_path as a package without __init__.py."""
        if not module_path:
            return []

        dirs = []
        for base, parts in self._candidates(module_path):
            candidate = base.joinpath(*parts)
            if parts and candidate.is_dir() and candidate not in dirs:
                dirs.append(candidate)
        return dirs

    def is_prefix_parent(self, module_path: str) -> bool:
        """True if module_path is a leading part of a multi-segment prefix."""
        return any(p.startswith(module_path + ".") for p in self.rules.prefixes)

    def find_file(self, class_path: str) -> Path | None:
        """
        Find the file defining a dotted class path.

        Args:
            class_path: Fully qualified class name (module path + class)

        Returns:
            Path to the source file, or None if not found
        """
        module_path, _, _ = class_path.rpartition(".")
        return self.find_module(module_path)


def _module_file(base: Path, parts: list[str]) -> Path | None:
    """Resolve module parts under base to a .py file or package __init__."""
    if parts:
        candidate = base.joinpath(*parts).with_suffix(".py")
        if candidate.is_file():
            return candidate

    package_init = base.joinpath(*parts, "__init__.py")
    if package_init.is_file():
        return package_init

    return None


class AutoloadFinder:
    """
    Meta path finder serving one package's modules from its autoload rules.

    Only names under the top-level package of the module being loaded are
    answered, so the plugin's own imports of other libraries go through the
    regular finders.
    """

    def __init__(self, class_loader: ClassLoader, module_name: str):
        self.class_loader = class_loader
        self.top_level = module_name.partition(".")[0]

    def find_spec(self, fullname, path=None, target=None) -> ModuleSpec | None:
        if fullname != self.top_level and not fullname.startswith(self.top_level + "."):
            return None

        source = self.class_loader.find_module(fullname)
        if source is not None:
            if source.name == "__init__.py":
                return importlib.util.spec_from_file_location(
                    fullname, source, submodule_search_locations=[str(source.parent)]
                )
            return importlib.util.spec_from_file_location(fullname, source)

        dirs = self.class_loader.find_package_dirs(fullname)
        if dirs or self.class_loader.is_prefix_parent(fullname):
            # Namespace package
            spec = ModuleSpec(fullname, None, is_package=True)
            spec.submodule_search_locations = [str(d) for d in dirs]
            return spec

        return None


def class_loader_for(package: Package) -> ClassLoader:
    """
    Build a ClassLoader from the given package's autoload rules only.

    Raises:
        AutoloadError: If the package cannot be mapped or its rules are malformed
    """
    return ClassLoader(parse_autoloads(build_package_map(package)))


def locate_class(package: Package, class_path: str) -> Path | None:
    """
    Locate a class file using only the given package's autoload rules.

    Raises:
        AutoloadError: If the package cannot be mapped
    """
    return class_loader_for(package).find_file(class_path)
