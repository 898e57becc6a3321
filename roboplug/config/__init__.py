"""
roboplug Configuration - TOML-based settings for the Robo plugin shim.

Settings are read from the root project's pyproject.toml:

    [tool.roboplug]
    metadata_key = "robo"
    deduplicate = false
    fail_fast = false
    strict = true

Example usage:
    from roboplug.config import load_settings

    settings = load_settings(Path("pyproject.toml"))
    print(settings.metadata_key)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from roboplug.config.schema import (
    ConfigField,
    ValidationError,
    generate_default_config,
    validate_config,
)
from roboplug.config.toml_handler import (
    generate_toml_from_schema,
    read_toml,
    write_tool_table,
)

TOOL_NAME = "roboplug"

SETTINGS_SCHEMA: dict[str, ConfigField] = {
    "metadata_key": ConfigField(
        str, "robo", "Reserved extras key marking a package as a Robo plugin"
    ),
    "deduplicate": ConfigField(
        bool, False, "Dispatch a package once even if it was operated on twice"
    ),
    "fail_fast": ConfigField(
        bool, False, "Stop dispatching at the first failing plugin"
    ),
    "strict": ConfigField(
        bool, True, "Raise once all plugins ran if any of them failed"
    ),
}


class ConfigError(Exception):
    """Base exception for config API errors."""

    pass


@dataclass(frozen=True)
class Settings:
    """
    Resolved roboplug settings.

    Attributes:
        metadata_key: Reserved extras key (case-sensitive)
        deduplicate: Drop repeated packages from a batch
        fail_fast: Stop dispatch at the first failure
        strict: Raise PluginBatchError at the end of a failed run
    """

    metadata_key: str = "robo"
    deduplicate: bool = False
    fail_fast: bool = False
    strict: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """
        Build settings from a [tool.roboplug] table.

        Raises:
            ValidationError: If the table has unknown keys or wrong types
        """
        validate_config(data, SETTINGS_SCHEMA)
        values = generate_default_config(SETTINGS_SCHEMA)
        values.update(data)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in SETTINGS_SCHEMA}


def load_settings(pyproject_path: Path) -> Settings:
    """
    Load settings from a pyproject.toml file.

    A missing file or a missing [tool.roboplug] table yields defaults.

    Raises:
        ConfigError: If the file cannot be parsed or the table is invalid
    """
    if not pyproject_path.exists():
        return Settings()

    try:
        data = read_toml(pyproject_path)
        table = data.get("tool", {}).get(TOOL_NAME, {})
        return Settings.from_dict(table)
    except ValidationError as e:
        raise ConfigError(f"Invalid [tool.{TOOL_NAME}] in {pyproject_path}: {e}") from e
    except Exception as e:
        raise ConfigError(f"Failed to load settings from {pyproject_path}: {e}") from e


def save_settings(pyproject_path: Path, settings: Settings) -> None:
    """Write settings into the [tool.roboplug] table, keeping the rest of the file."""
    write_tool_table(pyproject_path, TOOL_NAME, settings.to_dict())


def default_config_text() -> str:
    """Render the default [tool.roboplug] table with field descriptions."""
    return generate_toml_from_schema(
        f"tool.{TOOL_NAME}",
        SETTINGS_SCHEMA,
        generate_default_config(SETTINGS_SCHEMA),
    )


__all__ = [
    "ConfigError",
    "SETTINGS_SCHEMA",
    "Settings",
    "default_config_text",
    "load_settings",
    "save_settings",
]
