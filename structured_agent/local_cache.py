"""Content-addressable JSON file cache for replaying provider calls."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Tuple

from .utils.hashing import get_ordered_hash

logger = logging.getLogger(__name__)


def cache_key(key: Any) -> str:
    """String keys pass through; anything else is hashed order-independently."""
    if isinstance(key, str):
        return key
    return get_ordered_hash(key)


def resolve_cache_paths(cache_dir: str, environ: Optional[Mapping[str, str]] = None) -> Tuple[str, str]:
    """Pick (read_path, write_path) for the current environment.

    CI replays the committed ``cache.ci.json`` and records misses to
    ``new-cache.ci.json``; ``UPDATE_CI_CACHE=true`` refreshes the CI cache in
    place; anywhere else a developer cache is used for both.
    """
    env = os.environ if environ is None else environ
    if str(env.get("UPDATE_CI_CACHE", "")).lower() == "true":
        path = os.path.join(cache_dir, "cache.ci.json")
        return path, path
    if env.get("ENV") == "ci":
        return os.path.join(cache_dir, "cache.ci.json"), os.path.join(cache_dir, "new-cache.ci.json")
    path = os.path.join(cache_dir, "cache.dev.json")
    return path, path


class LocalCache:
    """Append-only key/value store persisted as a JSON object.

    The read file is a baseline snapshot; new entries go to the write file.
    Both may be the same file.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        *,
        read_path: Optional[str] = None,
        write_path: Optional[str] = None,
    ) -> None:
        read_path = read_path or path
        write_path = write_path or path or read_path
        if not read_path or not write_path:
            raise ValueError("LocalCache requires a path or a read_path/write_path pair")
        self.read_path = os.path.abspath(read_path)
        self.write_path = os.path.abspath(write_path)
        self._files_confirmed = False

    @property
    def path(self) -> str:
        return self.write_path

    def _confirm_files_exist(self) -> None:
        if self._files_confirmed:
            return
        for file_path in {self.read_path, self.write_path}:
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            if not os.path.exists(file_path):
                self._write_document(file_path, {})
        self._files_confirmed = True

    def _read_document(self, file_path: str) -> Dict[str, Any]:
        with open(file_path, "r", encoding="utf-8") as f:
            text = f.read()
        if not text.strip():
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Cache file {file_path} must contain a JSON object")
        return data

    def _write_document(self, file_path: str, data: Dict[str, Any]) -> None:
        tmp = file_path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, file_path)

    def get_by_key(self, key: str) -> Any:
        self._confirm_files_exist()
        data = self._read_document(self.read_path)
        if key in data:
            return data[key]
        if self.write_path != self.read_path:
            return self._read_document(self.write_path).get(key)
        return None

    def set_by_key(self, key: str, value: Any) -> None:
        self._confirm_files_exist()
        data = self._read_document(self.write_path)
        data[key] = value
        self._write_document(self.write_path, data)
        logger.debug("Cache entry %s written to %s", key[:16], self.write_path)

    def get(self, key: Any) -> Any:
        return self.get_by_key(cache_key(key))

    def set(self, key: Any, value: Any) -> None:
        self.set_by_key(cache_key(key), value)
