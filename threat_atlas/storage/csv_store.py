"""Storage module for persisting article records in a flat CSV file."""

import csv
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging

from ..errors import StoreIOFailure
from ..normalization import RECORD_FIELDS
from .cache import TTLCache
from .dedup import DeduplicationIndex

logger = logging.getLogger(__name__)

# Serializes the read-modify-rewrite sequence of every store in the process
_append_lock = threading.Lock()


class ArticleStore:
    """
    Append-only CSV store for article records.

    Every append rewrites the whole file. Reads are served from a TTL cache
    that is dropped after each successful append.
    """

    def __init__(self,
                 path: str,
                 cache_ttl: float = 30,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the store.

        Args:
            path: Path to the articles CSV file
            cache_ttl: Seconds a cached read stays valid
            clock: Monotonic clock used for cache expiry
        """
        self.path = Path(path)
        self._cache = TTLCache(cache_ttl, clock=clock)
        self._index_snapshot = None
        self._index: Optional[DeduplicationIndex] = None

    def all(self) -> List[Dict[str, Any]]:
        """
        Get every stored record.

        Returns:
            Records in file (append) order
        """
        return list(self._snapshot())

    def exists(self, source_url: str) -> bool:
        """Check whether a record with an equivalent source URL is stored."""
        return self.dedup_index().contains(source_url)

    def dedup_index(self) -> DeduplicationIndex:
        snapshot = self._snapshot()
        if self._index is None or self._index_snapshot is not snapshot:
            self._index = DeduplicationIndex(snapshot)
            self._index_snapshot = snapshot
        return self._index

    def append(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Durably append a record.

        Args:
            record: Normalized record dictionary

        Returns:
            The record as written

        Raises:
            StoreIOFailure: If the file cannot be read or rewritten
        """
        row = dict(record)

        with _append_lock:
            records = self._read_file()
            records.append(row)
            self._write_file(records)
            self.invalidate_cache()

        logger.info(f"Stored record for {row.get('source_url')} ({len(records)} total)")
        return row

    def invalidate_cache(self):
        """Drop cached reads so the next call re-parses the file."""
        self._cache.invalidate()
        self._index = None
        self._index_snapshot = None

    def count(self) -> int:
        return len(self._snapshot())

    def _snapshot(self) -> List[Dict[str, Any]]:
        return self._cache.get(self._read_file)

    def _read_file(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r', encoding='utf-8', newline='') as f:
                return [dict(row) for row in csv.DictReader(f)]
        except (OSError, csv.Error) as e:
            raise StoreIOFailure(f"Cannot read {self.path}: {e}") from e

    def _write_file(self, records: List[Dict[str, Any]]):
        fieldnames = list(RECORD_FIELDS)
        for record in records:
            for key in record:
                if key is not None and key not in fieldnames:
                    fieldnames.append(key)

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix='.tmp'
            )
            with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
                writer = csv.DictWriter(f, fieldnames=fieldnames, restval='', extrasaction='ignore')
                writer.writeheader()
                for record in records:
                    writer.writerow({k: ('' if v is None else v) for k, v in record.items()})
            os.replace(tmp_path, self.path)
        except (OSError, csv.Error) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StoreIOFailure(f"Cannot write {self.path}: {e}") from e


# Global store instance
_store = None

def get_store() -> ArticleStore:
    """Get the global store instance built from the global config."""
    global _store
    if _store is None:
        from ..config import get_config
        config = get_config()
        _store = ArticleStore(config.get_articles_path(), cache_ttl=config.get_cache_ttl())
    return _store


def reset_store():
    """Drop the global store; the next get_store() starts with an empty cache."""
    global _store
    _store = None
