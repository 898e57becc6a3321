"""
roboplug Plugin System - Robo plugin discovery and installation.

This module handles:
- Plugin classification from package metadata
- Per-package autoload resolution and source loading
- Install callable dispatch after an update run
- Host event subscription
"""

__all__ = []
