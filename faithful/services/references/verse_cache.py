# faithful/services/references/verse_cache.py
"""
Two-tier verse memoization.

- VerseCache: process tier, keyed by (reference, translation), lives for
  the process lifetime. Writes are idempotent so concurrent resolvers
  storing the same key need no lock beyond the dict itself.
- LocalCache: client tier, a small key/value store used by the daily
  verse selector. MemoryLocalCache keeps it in-process,
  FileLocalCache keeps one JSON file per key on disk. NullLocalCache
  is the "no client cache" case and always misses.
"""

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    text: str
    copyright: Optional[str]
    inserted_at: datetime


def cache_key(reference: str, translation: str) -> Tuple[str, str]:
    """Trim only; case and inner spacing variants stay distinct keys."""
    return reference.strip(), translation


class VerseCache:
    """Process-tier cache of resolved passages."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], CacheEntry] = {}

    def get(self, reference: str, translation: str) -> Optional[CacheEntry]:
        entry = self._entries.get(cache_key(reference, translation))
        if entry:
            logger.debug(f"Verse cache hit for {reference} ({translation})")
        return entry

    def put(self, reference: str, translation: str, text: str, copyright: Optional[str]) -> CacheEntry:
        entry = CacheEntry(text=text, copyright=copyright, inserted_at=datetime.now())
        self._entries[cache_key(reference, translation)] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count


class LocalCache:
    """Client-resident key/value cache."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class NullLocalCache(LocalCache):
    """No client cache available; every read misses."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any) -> None:
        return None

    def delete(self, key: str) -> None:
        return None


class MemoryLocalCache(LocalCache):
    def __init__(self):
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileLocalCache(LocalCache):
    """
    One JSON file per key.

    Read and write failures are logged and treated as misses so a broken
    cache directory never breaks a lookup.
    """

    def __init__(self, cache_dir):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Hash the key to create safe filename, keep a readable prefix
        key_hash = hashlib.md5(key.encode()).hexdigest()[:16]
        safe_key = "".join(c if c.isalnum() else "_" for c in key)[:50]
        return self.cache_dir / f"{safe_key}_{key_hash}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Failed to read local cache file {path}: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False)
        except IOError as e:
            logger.warning(f"Failed to write local cache file {path}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete local cache entry {key}: {e}")
