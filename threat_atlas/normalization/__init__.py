"""Normalization package initialization."""

from .normalizer import (
    RECORD_FIELDS,
    PLACEHOLDER_URL,
    UNKNOWN_DATE,
    RecordNormalizer,
    coerce_list_field,
    normalize_record,
    normalize_url,
    parse_country_codes,
    parse_date,
    seen_range,
    sort_by_date_desc,
    split_list,
)

__all__ = [
    'RECORD_FIELDS', 'PLACEHOLDER_URL', 'UNKNOWN_DATE', 'RecordNormalizer',
    'coerce_list_field', 'normalize_record', 'normalize_url',
    'parse_country_codes', 'parse_date', 'seen_range', 'sort_by_date_desc',
    'split_list',
]
