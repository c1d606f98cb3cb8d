"""Durable key-value storage for wallet state.

Each logical key is one JSON record. Values are cached in memory after the
first load; every save writes the whole record to disk before the cache is
updated.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import secrets
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class Store:
    """Interface of the durable store used by the registry and ledger."""

    def load(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def save(self, key: str, value: Any) -> None:
        raise NotImplementedError


class MemoryStore(Store):
    """Process-local store. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def load(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return copy.deepcopy(default)
        return copy.deepcopy(self._data[key])

    def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JsonFileStore(Store):
    """Store that keeps one ``<key>.json`` file per key in a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)
        self._cache: dict[str, Any] = {}

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str, default: Any = None) -> Any:
        if key not in self._cache:
            path = self._path(key)
            if not path.exists():
                return copy.deepcopy(default)
            try:
                with open(path) as f:
                    self._cache[key] = json.load(f)
            except json.JSONDecodeError as e:
                logger.error("Corrupt record %s, using default: %s", path, e)
                return copy.deepcopy(default)
        return copy.deepcopy(self._cache[key])

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_name(f".{path.name}.{secrets.token_hex(4)}.tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(value, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        self._cache[key] = copy.deepcopy(value)
