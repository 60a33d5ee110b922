"""
File-backed TTL cache
=====================
One pretty-printed JSON file per key under the cache directory. The file's
modification time is the only freshness signal; no TTL metadata is stored
inside the payload.

  get(key)            - payload, or None when missing / expired / unreadable
  set(key, payload)   - always (over)writes and refreshes the timestamp

Reads never raise: any failure is a cache miss. Writes go through a temp
file and os.replace so a concurrent reader or writer for the same key only
ever sees a complete file (last writer wins).
"""

import asyncio
import json
import logging
import os
import re
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Optional

LOGGER = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 7 * 24 * 60 * 60


def cache_key(namespace: str, location: str) -> str:
    """Builds a cache key like 'pois_Tel_Aviv' from a free-form location."""
    slug = re.sub(r"\s+", "_", location.strip())
    slug = slug.replace("/", "_").replace("\\", "_")
    return f"{namespace}{slug}"


class CacheStore:
    """Durable key → JSON storage with a modification-time TTL."""

    def __init__(
        self,
        cache_dir: Path,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    async def get(self, key: str) -> Optional[Any]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, payload: Any) -> None:
        await asyncio.to_thread(self._write, key, payload)

    def _read(self, key: str) -> Optional[Any]:
        path = self.path_for(key)
        try:
            mtime = path.stat().st_mtime
            if self._clock() - mtime > self.ttl_seconds:
                LOGGER.debug("Cache entry %s expired", key)
                return None
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable cache entry %s: %s", path, exc)
            return None

    def _write(self, key: str, payload: Any) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp_path.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
            )
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        LOGGER.debug("Cache entry %s written to %s", key, path)
