"""Normalization module for standardizing extracted article records."""

import re
from datetime import date, datetime
from typing import Dict, Any, List, Iterable, Optional
import logging

logger = logging.getLogger(__name__)

# Column order of the articles CSV
RECORD_FIELDS = (
    'date',
    'threat_actor',
    'attribution_country',
    'targeted_countries',
    'targeted_sectors',
    'title',
    'summary',
    'risk_score',
    'what',
    'when',
    'where',
    'who',
    'why',
    'how',
    'so_what',
    'what_is_next',
    'source_url',
)

# Fields the model may return either as a JSON list or a delimited string
LIST_FIELDS = ('targeted_countries', 'targeted_sectors')

LIST_DELIMITER = ','

PLACEHOLDER_URL = 'manual-submission'

UNKNOWN_DATE = 'Unknown'

DATE_FORMATS = (
    '%Y-%m-%d',
    '%Y/%m/%d',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M:%SZ',
    '%Y-%m-%dT%H:%M:%S.%fZ',
    '%d %B %Y',
    '%B %d, %Y',
    '%b %d, %Y',
)


class RecordNormalizer:
    """Coerces a model candidate into the flat record stored in the CSV."""

    def normalize(self, candidate: Dict[str, Any], source_url: str) -> Dict[str, Any]:
        """
        Normalize an extracted candidate to the stored record shape.

        Values are kept exactly as the model returned them, except that list
        fields are joined into a delimited string and missing fields become
        empty strings.

        Args:
            candidate: Parsed model output
            source_url: URL (or placeholder) the content came from

        Returns:
            Record dictionary with every column of RECORD_FIELDS
        """
        record = {}

        for field in RECORD_FIELDS:
            value = candidate.get(field)
            if field in LIST_FIELDS:
                value = coerce_list_field(value)
            elif value is None:
                value = ''
            record[field] = value

        record['source_url'] = source_url
        return record

    @staticmethod
    def has_threat_actor(record: Dict[str, Any]) -> bool:
        return bool(str(record.get('threat_actor') or '').strip())


def coerce_list_field(value: Any) -> str:
    """
    Turn a list-or-string field into its canonical delimited string.

    Order is preserved and repeated entries are kept.
    """
    if value is None:
        return ''

    if isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value if item is not None]
        return LIST_DELIMITER.join(item for item in items if item)

    return str(value).strip()


def normalize_url(url: str) -> str:
    """
    Normalize a source URL for duplicate detection.

    Drops the fragment, one trailing slash, lower-cases and trims.
    """
    if not url:
        return ''

    normalized = url.split('#', 1)[0]
    if normalized.endswith('/'):
        normalized = normalized[:-1]
    return normalized.lower().strip()


def split_list(value: Any) -> List[str]:
    """Split a delimited field into trimmed, non-empty tokens."""
    if not value:
        return []
    return [token.strip() for token in str(value).split(LIST_DELIMITER) if token.strip()]


def parse_country_codes(value: Any) -> List[str]:
    """Split a targeted_countries field into cleaned upper-case codes."""
    codes = []
    for token in split_list(value):
        code = re.sub(r'[^A-Z]', '', token.upper())
        if code:
            codes.append(code)
    return codes


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a record date.

    Args:
        value: Raw date cell

    Returns:
        A date, or None when the value is empty or not a recognisable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None

    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def sort_by_date_desc(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Most recent first; records without a parseable date go last, in order."""
    def key(record):
        parsed = parse_date(record.get('date'))
        return (parsed is not None, parsed or date.min)

    return sorted(records, key=key, reverse=True)


def seen_range(records: Iterable[Dict[str, Any]]):
    """
    Get the first and last seen dates of a set of records.

    Returns:
        Tuple of ISO date strings (first_seen, last_seen), or the Unknown
        sentinel for both when no record has a parseable date
    """
    dates = [d for d in (parse_date(r.get('date')) for r in records) if d is not None]
    if not dates:
        return UNKNOWN_DATE, UNKNOWN_DATE
    return min(dates).isoformat(), max(dates).isoformat()


def normalize_record(candidate: Dict[str, Any], source_url: str) -> Dict[str, Any]:
    """
    Normalize a single extracted candidate.

    Args:
        candidate: Parsed model output
        source_url: Source URL or placeholder

    Returns:
        Normalized record
    """
    return RecordNormalizer().normalize(candidate, source_url)
