"""
TOML File I/O Handler.

This module provides TOML parsing and writing with comment preservation.

Key features:
- Parse pyproject.toml files using tomllib
- Update a [tool.*] table using tomlkit (preserves comments and formatting)
- Generate TOML from schema with descriptive comments
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from roboplug.config.schema import ConfigField


class TOMLError(Exception):
    """Base exception for TOML-related errors."""

    pass


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Read and parse a TOML file.

    Args:
        file_path: Path to the TOML file

    Returns:
        Parsed TOML data as dictionary

    Raises:
        TOMLError: If file cannot be read or parsed
    """
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise TOMLError(f"TOML file not found: {file_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise TOMLError(f"Failed to parse TOML file {file_path}: {e}") from e
    except OSError as e:
        raise TOMLError(f"Failed to read TOML file {file_path}: {e}") from e


def write_tool_table(file_path: Path, tool_name: str, data: dict[str, Any]) -> None:
    """
    Write data into the [tool.<tool_name>] table of a TOML file.

    Everything else in the file, comments included, is kept as is. The file
    is created if it does not exist.

    Args:
        file_path: Path to the TOML file
        tool_name: Name of the table under [tool]
        data: Table content

    Raises:
        TOMLError: If file cannot be read, parsed or written
    """
    try:
        if file_path.exists():
            doc = tomlkit.parse(file_path.read_text(encoding="utf-8"))
        else:
            doc = tomlkit.document()

        if "tool" not in doc:
            doc["tool"] = tomlkit.table(is_super_table=True)

        table = tomlkit.table()
        for key, value in data.items():
            table.add(key, value)
        doc["tool"][tool_name] = table

        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    except ParseError as e:
        raise TOMLError(f"Failed to parse TOML file {file_path}: {e}") from e
    except OSError as e:
        raise TOMLError(f"Failed to write TOML file {file_path}: {e}") from e


def generate_toml_from_schema(
    section: str, schema: dict[str, ConfigField], config_data: dict[str, Any]
) -> str:
    """
    Generate TOML content from schema with descriptive comments.

    Args:
        section: Dotted table name (e.g. "tool.roboplug")
        schema: Schema dictionary (field_name -> ConfigField)
        config_data: Configuration data (field_name -> value)

    Returns:
        TOML string with comments
    """
    doc = tomlkit.document()
    doc.add(tomlkit.comment(f"Configuration for {section}"))
    doc.add(tomlkit.nl())

    table = tomlkit.table()

    for field_name, field in schema.items():
        if field.description:
            table.add(tomlkit.comment(field.description))

        table.add(field_name, config_data.get(field_name, field.default))
        table.add(tomlkit.nl())

    # Nest so "tool.roboplug" renders as [tool.roboplug]
    parts = section.split(".")
    outer = table
    for part in reversed(parts[1:]):
        wrapper = tomlkit.table(is_super_table=True)
        wrapper.add(part, outer)
        outer = wrapper
    doc.add(parts[0], outer)

    return tomlkit.dumps(doc)
