"""
Plugin Source Loader.

This module loads plugin modules into the running process under their real
dotted names, so relative imports and sibling imports inside a plugin work.

Key features:
- importlib integration through a per-package meta path finder
- Module caching keyed by file, so a file is executed at most once
- Ownership of top-level package names, replaced when another install
  of the same package is loaded
- Unload support for long-lived hosts
"""

import importlib
import logging
import sys
from pathlib import Path
from types import ModuleType

logger = logging.getLogger(__name__)


class LoaderError(Exception):
    """Base exception for loader-related errors."""

    pass


# Module cache: resolved source path -> module
_module_cache: dict[Path, ModuleType] = {}

# Top-level module name -> install path of the package that loaded it
_owners: dict[str, Path] = {}


def _evict(top_level: str) -> None:
    """Drop a top-level package and its submodules from sys.modules and the cache."""
    names = [
        name
        for name in sys.modules
        if name == top_level or name.startswith(top_level + ".")
    ]
    for name in names:
        del sys.modules[name]

    for source_path, module in list(_module_cache.items()):
        if module.__name__ in names:
            del _module_cache[source_path]

    _owners.pop(top_level, None)
    logger.debug("Evicted %s (%d modules)", top_level, len(names))


def load_source(source_path: Path, module_name: str, finder, owner: Path) -> ModuleType:
    """
    Load a plugin module from its source file.

    Loading the same file twice returns the cached module without executing
    it again. Loading a module whose top-level package was loaded from a
    different install first evicts the older modules.

    Args:
        source_path: Path to the .py file defining module_name
        module_name: Dotted module name to import
        finder: Meta path finder serving the owning package's modules
        owner: Install path of the owning package

    Returns:
        Loaded module

    Raises:
        LoaderError: If loading fails or the name belongs to another module
    """
    source_path = source_path.resolve()

    if source_path in _module_cache:
        return _module_cache[source_path]

    if not source_path.is_file():
        raise LoaderError(f"Source file not found: {source_path}")

    top_level = module_name.partition(".")[0]
    current = _owners.get(top_level)
    if current is not None and current != owner:
        _evict(top_level)
    elif current is None and top_level in sys.modules:
        raise LoaderError(
            f"Cannot load {source_path} as {module_name}: "
            f"'{top_level}' is already imported from elsewhere"
        )

    _owners[top_level] = owner
    sys.meta_path.insert(0, finder)
    importlib.invalidate_caches()
    try:
        module = importlib.import_module(module_name)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise LoaderError(f"Failed to load {source_path}: {e}") from e
    finally:
        sys.meta_path.remove(finder)

    loaded_from = getattr(module, "__file__", None)
    if loaded_from is None or Path(loaded_from).resolve() != source_path:
        raise LoaderError(
            f"Module {module_name} resolved to {loaded_from}, expected {source_path}"
        )

    _module_cache[source_path] = module
    logger.debug("Loaded %s as %s", source_path, module_name)
    return module


def unload_source(source_path: Path) -> None:
    """
    Unload a source file and clear it from cache.

    Args:
        source_path: Path the module was loaded from
    """
    module = _module_cache.pop(source_path.resolve(), None)
    if module is not None:
        sys.modules.pop(module.__name__, None)


def is_loaded(source_path: Path) -> bool:
    """Check if a source file is cached."""
    return source_path.resolve() in _module_cache


def clear_cache() -> None:
    """Clear all cached plugin modules and the packages they belong to."""
    for top_level in list(_owners):
        _evict(top_level)
    for source_path in list(_module_cache):
        unload_source(source_path)
