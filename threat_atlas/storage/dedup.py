"""Duplicate detection over the stored records."""

from typing import Any, Dict, Iterable

from ..normalization import normalize_url


class DeduplicationIndex:
    """Set of normalized source URLs derived from a record snapshot."""

    def __init__(self, records: Iterable[Dict[str, Any]]):
        self._keys = set()
        for record in records:
            key = normalize_url(record.get('source_url') or '')
            if key:
                self._keys.add(key)

    def contains(self, source_url: str) -> bool:
        """Check whether a record for this source URL already exists."""
        key = normalize_url(source_url or '')
        return bool(key) and key in self._keys

    def __contains__(self, source_url: str) -> bool:
        return self.contains(source_url)

    def __len__(self) -> int:
        return len(self._keys)
