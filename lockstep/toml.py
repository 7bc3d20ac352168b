"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying manifest
files, so an update only touches the version strings it rewrites.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.items import InlineTable, Table

from .errors import MalformedManifest


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML manifest.

    Returns a TOMLDocument that preserves formatting when modified and saved.
    """
    return tomlkit.parse(path.read_text(encoding="utf-8"))


def save_toml(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def is_table(item: Any) -> bool:
    """True for both ``[section]`` tables and ``{ inline = "tables" }``."""
    return isinstance(item, (Table, InlineTable, dict))


def get_table(container: Any, *keys: str) -> Any:
    """Walk nested tables, returning None if any key is missing or not a table.

    Example:
        get_table(doc, "tool", "uv", "workspace") → the [tool.uv.workspace] table
    """
    current = container
    for key in keys:
        if not is_table(current) or key not in current:
            return None
        current = current[key]
    return current if is_table(current) else None


def section(container: Any, location: str, *keys: str) -> Any:
    """Like get_table, but a key that exists with a non-table value is an error.

    Raises:
        MalformedManifest: If the value at keys is present but not a table.
    """
    current = container
    for depth, key in enumerate(keys):
        if key not in current:
            return None
        current = current[key]
        if not is_table(current):
            raise MalformedManifest(
                location, f"[{'.'.join(keys[: depth + 1])}] must be a table"
            )
    return current


def string_list(value: Any, location: str, what: str) -> list[str]:
    """Validate an optional array of strings; None reads as empty."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MalformedManifest(location, f"{what} must be an array of strings")
    return [str(v) for v in value]


def as_str(item: Any) -> str | None:
    """Unwrap a tomlkit string item into a plain str, or None if not a string."""
    if isinstance(item, str):
        return str(item)
    return None
