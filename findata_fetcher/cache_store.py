"""
Flat-file cache keyed by relative path.

A key such as `fundamentals/AAPL/profile.json` is both the cache key and the
physical location under the store root. An entry that exists is trusted as is:
there is no expiry and no checksum.
"""
from __future__ import annotations

import os
from pathlib import PurePosixPath

from .errors import CacheMissError
from .io_utils import write_bytes_atomic


class CacheStore:
    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def _normalize_key(self, key: str) -> str:
        p = PurePosixPath(str(key).replace(os.sep, "/"))
        if not str(key) or p.is_absolute() or ".." in p.parts:
            raise ValueError(f"invalid cache key: {key!r}")
        return str(p)

    def path_for(self, key: str) -> str:
        return os.path.join(self.root, *self._normalize_key(key).split("/"))

    def exists(self, key: str) -> bool:
        """
        True when the key holds a non-empty file.

        Zero-byte files are left behind by interrupted writes of older runs;
        they are treated as absent so the next run fetches them again.
        """
        path = self.path_for(key)
        try:
            return os.path.isfile(path) and os.path.getsize(path) > 0
        except OSError:
            return False

    def read(self, key: str) -> bytes:
        if not self.exists(key):
            raise CacheMissError(key)
        with open(self.path_for(key), "rb") as f:
            return f.read()

    def read_text(self, key: str) -> str:
        return self.read(key).decode("utf-8")

    def write(self, key: str, data: bytes) -> str:
        """Write the full blob under `key` (parents created, replaced atomically)."""
        path = self.path_for(key)
        write_bytes_atomic(data, path)
        return path

    def list_dir(self, key: str) -> list[str]:
        """Sorted entry names directly under a key prefix (empty when missing)."""
        path = self.path_for(key)
        if not os.path.isdir(path):
            return []
        return sorted(name for name in os.listdir(path) if not name.startswith("."))
