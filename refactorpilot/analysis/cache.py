"""Content-hash cache that makes repeated analysis runs incremental."""

import json
import os
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..constants import CACHE_FILE
from ..models import CacheEntry
from ..utils import content_hash, logger


class AnalysisCache:
    """Per-file analysis results keyed by path and validated by content hash."""

    def __init__(self, cache_file: Optional[Union[str, Path]] = None):
        """Initialize the cache.

        Args:
            cache_file: JSON file the cache is persisted to
        """
        self.cache_file = Path(cache_file or CACHE_FILE)
        self._cache: Dict[str, CacheEntry] = {}
        self._stats = {"hits": 0, "misses": 0}

    @staticmethod
    def content_hash(content: str) -> str:
        return content_hash(content or "")

    def get_cached(self, path: str, content: str, fingerprint: str = "") -> Optional[Any]:
        """Return the stored result only if ``content`` still hashes the same.

        ``fingerprint`` identifies the settings the result was produced
        with; an entry stored under a different fingerprint is a miss.
        """
        entry = self._cache.get(path)
        if (
            entry is None
            or entry.hash != self.content_hash(content)
            or entry.fingerprint != fingerprint
        ):
            self._stats["misses"] += 1
            return None

        self._stats["hits"] += 1
        return entry.result

    def set_cached(self, path: str, content: str, result: Any, fingerprint: str = ""):
        """Store (or overwrite) the result for ``path``."""
        self._cache[path] = CacheEntry(
            hash=self.content_hash(content),
            result=result,
            timestamp=time.time(),
            fingerprint=fingerprint,
        )

    def load(self) -> bool:
        """Merge entries from disk into memory.

        A missing or unreadable file leaves the in-memory cache as it is.

        Returns:
            True if the file was read successfully
        """
        if not self.cache_file.exists():
            logger.debug(f"No analysis cache at {self.cache_file}")
            return False

        try:
            with open(self.cache_file, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError("cache root is not an object")

            loaded = {}
            for path, data in raw.items():
                loaded[path] = CacheEntry(
                    hash=data["hash"],
                    result=data.get("result"),
                    timestamp=data.get("timestamp", 0.0),
                    fingerprint=data.get("fingerprint", ""),
                )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable analysis cache {self.cache_file}: {e}")
            return False

        self._cache.update(loaded)
        logger.debug(f"Loaded {len(loaded)} cache entries")
        return True

    def save(self) -> bool:
        """Persist the cache; failures are logged and swallowed.

        The file on disk is only replaced once the whole cache has serialized.
        """
        try:
            payload = {path: asdict(entry) for path, entry in self._cache.items()}
            text = json.dumps(payload, indent=2)
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            partial = self.cache_file.with_name(self.cache_file.name + ".tmp")
            partial.write_text(text, encoding="utf-8")
            os.replace(partial, self.cache_file)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Could not save analysis cache: {e}")
            return False

    def clear(self):
        """Drop every entry, in memory and on disk."""
        self._cache.clear()
        self._stats = {"hits": 0, "misses": 0}
        try:
            if self.cache_file.exists():
                self.cache_file.unlink()
        except OSError as e:
            logger.warning(f"Could not remove cache file {self.cache_file}: {e}")

    def stats(self) -> Dict[str, Any]:
        total = self._stats["hits"] + self._stats["misses"]
        return {
            **self._stats,
            "size": len(self._cache),
            "hit_rate": self._stats["hits"] / total if total > 0 else 0,
        }

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, path: str) -> bool:
        return path in self._cache
