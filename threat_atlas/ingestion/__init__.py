"""Ingestion package initialization."""

from .fetcher import ContentFetcher, FetchedContent, clean_html
from .pipeline import (
    BatchLedger,
    IngestionPipeline,
    IngestResult,
    IngestStatus,
    SourceDescriptor,
)

__all__ = [
    'ContentFetcher', 'FetchedContent', 'clean_html', 'BatchLedger',
    'IngestionPipeline', 'IngestResult', 'IngestStatus', 'SourceDescriptor',
]
