"""Read-only country reference table (name, alpha-2, alpha-3)."""

import csv
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional
import logging

from ..errors import StoreIOFailure
from .cache import TTLCache

logger = logging.getLogger(__name__)

BUNDLED_COUNTRIES_FILE = Path(__file__).parent.parent / "data" / "countries.csv"


class CountryReference:
    """Country lookup table loaded from a semicolon-delimited CSV."""

    def __init__(self,
                 path: Optional[str] = None,
                 cache_ttl: float = 30,
                 clock: Callable[[], float] = time.monotonic):
        self.path = Path(path) if path else BUNDLED_COUNTRIES_FILE
        self._cache = TTLCache(cache_ttl, clock=clock)

    def all(self) -> List[Dict[str, str]]:
        """Rows with the keys Country, Alpha-2 and Alpha-3."""
        return list(self._by_alpha2().values())

    def get(self, alpha2: str) -> Optional[Dict[str, str]]:
        return self._by_alpha2().get((alpha2 or '').strip().upper())

    def name_for(self, alpha2: str) -> str:
        """Country name, or a placeholder label for unknown codes."""
        row = self.get(alpha2)
        if row and row.get('Country'):
            return row['Country']
        return f"Country ({(alpha2 or '').upper()})"

    def alpha3_for(self, alpha2: str) -> Optional[str]:
        row = self.get(alpha2)
        return row.get('Alpha-3') if row else None

    def invalidate_cache(self):
        self._cache.invalidate()

    def _by_alpha2(self) -> Dict[str, Dict[str, str]]:
        return self._cache.get(self._load)

    def _load(self) -> Dict[str, Dict[str, str]]:
        if not self.path.exists():
            logger.warning(f"Country reference file not found: {self.path}")
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8', newline='') as f:
                rows = list(csv.DictReader(f, delimiter=';'))
        except (OSError, csv.Error) as e:
            raise StoreIOFailure(f"Cannot read {self.path}: {e}") from e

        table = {}
        for row in rows:
            code = (row.get('Alpha-2') or '').strip().upper()
            if code:
                table[code] = {
                    'Country': (row.get('Country') or '').strip(),
                    'Alpha-2': code,
                    'Alpha-3': (row.get('Alpha-3') or '').strip().upper(),
                }
        return table


# Global reference instance
_countries = None

def get_countries() -> CountryReference:
    """Get the global country reference built from the global config."""
    global _countries
    if _countries is None:
        from ..config import get_config
        config = get_config()
        _countries = CountryReference(config.get_countries_path(), cache_ttl=config.get_cache_ttl())
    return _countries
