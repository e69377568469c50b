"""Storage package initialization."""

from .cache import TTLCache
from .countries import CountryReference, get_countries
from .csv_store import ArticleStore, get_store, reset_store
from .dedup import DeduplicationIndex

__all__ = [
    'TTLCache', 'CountryReference', 'get_countries', 'ArticleStore',
    'get_store', 'reset_store', 'DeduplicationIndex',
]
