# ABOUTME: Local and global aio configuration store
# ABOUTME: Reads, merges, and writes the JSON .aio files with dotted-key access

"""
Local and global aio configuration.

Two JSON documents make up the configuration the CLI sees:

    global  ~/.config/aio     selections made with the aio console commands
                              ("console" key) and the CLI login ("ims" key)
    local   ./.aio            the imported Console configuration of this
                              app ("project" key)

``get`` looks at the local document first, then the global one; nested
dicts present in both are merged with local values winning.

Writes are staged in memory with ``set`` and only hit the disk on ``save``,
so a command that fails halfway leaves the files as they were.
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any, Literal

import structlog

from app_console.errors import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

logger = structlog.get_logger(__name__)

Source = Literal["global", "local"]


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict with override merged into base (dicts merged recursively)."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _lookup(data: dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _assign(data: dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = value


class ConfigStore:
    """Dotted-key access to the global and local aio configuration files."""

    def __init__(self, global_file: Path, local_file: Path) -> None:
        self._files: dict[Source, Path] = {"global": global_file, "local": local_file}
        self._data: dict[Source, dict[str, Any]] = {
            "global": self._read(global_file),
            "local": self._read(local_file),
        }
        self._dirty: set[Source] = set()

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        if not path.is_file():
            return {}
        text = path.read_text(encoding="utf-8").strip()
        if not text:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Cannot parse configuration file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")
        return data

    def path(self, source: Source) -> Path:
        return self._files[source]

    def get(self, key: str, source: Source | None = None) -> Any:
        """
        Value at a dotted key.

        Args:
            key: e.g. "project.workspace.id"
            source: "global" or "local" to read one file only; None merges both

        Returns:
            A copy of the value, or None when missing
        """
        if source is not None:
            return copy.deepcopy(_lookup(self._data[source], key))

        local_value = _lookup(self._data["local"], key)
        global_value = _lookup(self._data["global"], key)
        if isinstance(local_value, dict) and isinstance(global_value, dict):
            return deep_merge(global_value, local_value)
        if local_value is not None:
            return copy.deepcopy(local_value)
        return copy.deepcopy(global_value)

    def set(self, key: str, value: Any, local: bool = True) -> None:
        """Stage a value at a dotted key; written on save()."""
        source: Source = "local" if local else "global"
        _assign(self._data[source], key, copy.deepcopy(value))
        self._dirty.add(source)

    def replace(self, data: dict[str, Any], local: bool = True) -> None:
        """Stage a whole new document, dropping everything previously in it."""
        source: Source = "local" if local else "global"
        self._data[source] = copy.deepcopy(data)
        self._dirty.add(source)

    def save(self) -> None:
        """Write staged changes to disk."""
        for source in sorted(self._dirty):
            path = self._files[source]
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self._data[source], indent=2) + "\n", encoding="utf-8")
            logger.debug("Configuration written", path=str(path))
        self._dirty.clear()
