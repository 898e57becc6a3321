"""
robopm - Robo plugin installer CLI tool.

Command-line driver replaying package operations through roboplug.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
