"""Enrichment package initialization."""

from .enricher import (
    RISK_LEVELS,
    ArticleEnricher,
    enrich_articles,
    parse_risk_score,
    risk_level,
    slugify,
)

__all__ = [
    'RISK_LEVELS', 'ArticleEnricher', 'enrich_articles', 'parse_risk_score',
    'risk_level', 'slugify',
]
