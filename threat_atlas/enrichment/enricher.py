"""Enrichment module for decorating stored records for presentation."""

import math
import re
from typing import Dict, Any, List, Optional
import logging

logger = logging.getLogger(__name__)

RISK_HIGH = 80
RISK_MEDIUM = 50

RISK_LEVELS = ('high', 'medium', 'low', 'unknown')


def slugify(name: str) -> str:
    """
    Build a URL-safe slug.

    Args:
        name: Display name

    Returns:
        Lower-case slug with runs of other characters collapsed to '-'
    """
    slug = re.sub(r'[^a-z0-9]+', '-', (name or '').lower())
    return slug.strip('-')


def parse_risk_score(value: Any) -> Optional[int]:
    """Read a risk score cell; None when it is empty, not a number or not finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def risk_level(score: Any) -> str:
    """
    Bucket a risk score.

    Args:
        score: Risk score (int or CSV string)

    Returns:
        'high' (>= 80), 'medium' (>= 50), 'low', or 'unknown' when unparsable
    """
    parsed = parse_risk_score(score)
    if parsed is None:
        return 'unknown'
    if parsed >= RISK_HIGH:
        return 'high'
    if parsed >= RISK_MEDIUM:
        return 'medium'
    return 'low'


class ArticleEnricher:
    """Adds a slug and a risk level to a stored record."""

    def enrich(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Enrich a record.

        Args:
            record: Stored record dictionary

        Returns:
            Copy of the record with 'slug' and 'risk_level' added
        """
        enriched = dict(record)
        enriched['slug'] = self.article_slug(record)
        enriched['risk_level'] = risk_level(record.get('risk_score'))
        return enriched

    @staticmethod
    def article_slug(record: Dict[str, Any]) -> str:
        """Date-prefixed slug; falls back to actor and summary without a title."""
        title = record.get('title') or ''
        threat_actor = record.get('threat_actor') or 'unknown-actor'
        summary = record.get('summary') or ''
        base = title or f"{threat_actor}-{summary[:20]}"
        date = record.get('date') or 'no-date'
        return f"{date}-{slugify(base)}"


def enrich_articles(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Enrich a list of records.

    Args:
        records: Stored records

    Returns:
        List of enriched records, same order
    """
    enricher = ArticleEnricher()
    return [enricher.enrich(record) for record in records]
