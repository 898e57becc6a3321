"""
robopm config commands (--print-config / --init-config).
"""

from pathlib import Path
from typing import Any

from roboplug.config import Settings, default_config_text, load_settings, save_settings


def config_command(args: Any) -> int:
    """
    Print or write the [tool.roboplug] settings table.

    --init-config keeps values already present in the project file and fills
    in defaults for the rest.
    """
    if args.print_config:
        print(default_config_text())
        return 0

    pyproject = Path(args.project) / "pyproject.toml"
    settings = load_settings(pyproject) if pyproject.exists() else Settings()
    save_settings(pyproject, settings)
    print(f"Wrote [tool.roboplug] to {pyproject}")
    return 0
