"""Ingestion pipeline: fetch, extract, normalize, dedupe and commit articles."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union
from urllib.parse import urlparse
import logging

from ..errors import (
    DuplicateSource,
    StoreIOFailure,
    ThreatAtlasError,
    UnsupportedFormat,
    ValidationFailure,
)
from ..normalization import PLACEHOLDER_URL, RecordNormalizer

logger = logging.getLogger(__name__)

DEFAULT_UNSUPPORTED_EXTENSIONS = ('.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx')


class IngestStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self not in (IngestStatus.PENDING, IngestStatus.PROCESSING)


@dataclass
class SourceDescriptor:
    """One pipeline input: a URL, or pasted text with an optional URL."""
    url: Optional[str] = None
    text: Optional[str] = None

    @classmethod
    def from_url(cls, url: str) -> "SourceDescriptor":
        return cls(url=url.strip())

    @classmethod
    def from_text(cls, text: str, url: Optional[str] = None) -> "SourceDescriptor":
        return cls(url=(url or '').strip() or None, text=text)

    @classmethod
    def coerce(cls, item: Union[str, "SourceDescriptor"]) -> "SourceDescriptor":
        if isinstance(item, SourceDescriptor):
            return item
        return cls.from_url(str(item))

    @property
    def is_url_mode(self) -> bool:
        return self.text is None


@dataclass
class IngestResult:
    """Outcome of one submitted item."""
    status: IngestStatus
    source: str
    record: Optional[Dict[str, Any]] = None
    error_kind: Optional[str] = None
    error_detail: Optional[str] = None
    used_model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'source': self.source,
            'record': self.record,
            'error_kind': self.error_kind,
            'error_detail': self.error_detail,
            'used_model': self.used_model,
        }


@dataclass
class BatchLedger:
    """Per-item results of a batch, in submission order."""
    entries: List[IngestResult] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def _count(self, *statuses) -> int:
        return sum(1 for entry in self.entries if entry.status in statuses)

    @property
    def counts(self) -> Dict[str, int]:
        """Summary counts; rejected items are also counted as errors."""
        return {
            'total': len(self.entries),
            'success': self._count(IngestStatus.SUCCESS),
            'duplicate': self._count(IngestStatus.DUPLICATE),
            'rejected': self._count(IngestStatus.REJECTED),
            'error': self._count(IngestStatus.ERROR, IngestStatus.REJECTED),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entries': [entry.to_dict() for entry in self.entries],
            'counts': self.counts,
        }


BatchObserver = Callable[[int, IngestResult], None]


class IngestionPipeline:
    """Turns source descriptors into stored records."""

    def __init__(self,
                 store,
                 oracle,
                 fetcher=None,
                 unsupported_extensions: Iterable[str] = DEFAULT_UNSUPPORTED_EXTENSIONS,
                 placeholder_url: str = PLACEHOLDER_URL):
        """
        Initialize the pipeline.

        Args:
            store: ArticleStore (or anything with exists() and append())
            oracle: ExtractionOracle
            fetcher: ContentFetcher, required for URL-mode descriptors
            unsupported_extensions: URL suffixes rejected before any fetch
            placeholder_url: Source URL recorded for text without a URL
        """
        self.store = store
        self.oracle = oracle
        self.fetcher = fetcher
        self.unsupported_extensions = tuple(ext.lower() for ext in unsupported_extensions)
        self.placeholder_url = placeholder_url
        self.normalizer = RecordNormalizer()

    def check_format(self, url: str):
        """
        Reject URLs naming a document format the text pipeline cannot parse.

        Raises:
            UnsupportedFormat: If the URL path ends with an unsupported extension
        """
        path = urlparse(url).path.lower() or url.lower()
        for ext in self.unsupported_extensions:
            if path.endswith(ext):
                raise UnsupportedFormat(
                    f"{ext.lstrip('.').upper()} files are not supported. "
                    f"Please use text content mode for them."
                )

    def ingest(self, descriptor: Union[str, SourceDescriptor]) -> IngestResult:
        """
        Process a single descriptor to a terminal state.

        Args:
            descriptor: SourceDescriptor, or a bare URL string

        Returns:
            IngestResult with status success, duplicate, rejected or error
        """
        descriptor = SourceDescriptor.coerce(descriptor)
        source = descriptor.url or self.placeholder_url

        try:
            return self._ingest(descriptor, source)
        except StoreIOFailure as e:
            logger.error(f"Commit failed for {source}: {e}")
            return IngestResult(
                status=IngestStatus.ERROR,
                source=source,
                error_kind=e.kind,
                error_detail=f"Record was not saved: {e}",
            )
        except ThreatAtlasError as e:
            logger.error(f"Ingestion failed for {source}: {e}")
            return IngestResult(
                status=IngestStatus.ERROR,
                source=source,
                error_kind=e.kind,
                error_detail=str(e),
            )
        except Exception as e:
            logger.exception(f"Unexpected error while ingesting {source}")
            return IngestResult(
                status=IngestStatus.ERROR,
                source=source,
                error_kind='unexpected_error',
                error_detail=str(e) or type(e).__name__,
            )

    def _ingest(self, descriptor: SourceDescriptor, source: str) -> IngestResult:
        if descriptor.is_url_mode:
            if not descriptor.url:
                raise ValidationFailure('URL is required')

            self.check_format(descriptor.url)

            if self.store.exists(descriptor.url):
                logger.info(f"Skipping duplicate source: {descriptor.url}")
                return IngestResult(
                    status=IngestStatus.DUPLICATE,
                    source=source,
                    error_kind=DuplicateSource.kind,
                    error_detail='Article with this URL already exists',
                )

            if self.fetcher is None:
                raise ValidationFailure('No content fetcher configured for URL ingestion')

            content = self.fetcher.fetch(descriptor.url).as_markdown()
        else:
            content = descriptor.text or ''
            if not content.strip():
                raise ValidationFailure('Content is required')

        extraction = self.oracle.extract(content, source)
        record = self.normalizer.normalize(extraction.candidate, source)

        if not self.normalizer.has_threat_actor(record):
            logger.warning(f"Skipping article due to empty threat_actor: {source}")
            return IngestResult(
                status=IngestStatus.REJECTED,
                source=source,
                record=record,
                error_kind=ValidationFailure.kind,
                error_detail='Skipped: No threat actor found',
                used_model=extraction.model,
            )

        stored = self.store.append(record)
        return IngestResult(
            status=IngestStatus.SUCCESS,
            source=source,
            record=stored,
            used_model=extraction.model,
        )

    def iter_batch(self, descriptors: Iterable[Union[str, SourceDescriptor]]) -> Iterator[IngestResult]:
        """
        Process descriptors one at a time, yielding each terminal result.

        A failing item never stops the remaining ones.
        """
        for item in descriptors:
            yield self.ingest(SourceDescriptor.coerce(item))

    def ingest_batch(self,
                     descriptors: Iterable[Union[str, SourceDescriptor]],
                     on_update: Optional[BatchObserver] = None) -> BatchLedger:
        """
        Process a batch sequentially.

        Args:
            descriptors: URLs or SourceDescriptors, in processing order
            on_update: Called with (index, entry) on every status change

        Returns:
            BatchLedger with one entry per descriptor, in input order
        """
        items = [SourceDescriptor.coerce(item) for item in descriptors]
        ledger = BatchLedger(entries=[
            IngestResult(status=IngestStatus.PENDING, source=item.url or self.placeholder_url)
            for item in items
        ])

        def notify(index):
            if on_update is not None:
                on_update(index, ledger.entries[index])

        for index in range(len(items)):
            notify(index)

        for index, item in enumerate(items):
            ledger.entries[index] = replace(ledger.entries[index], status=IngestStatus.PROCESSING)
            notify(index)

            ledger.entries[index] = self.ingest(item)
            notify(index)

        counts = ledger.counts
        logger.info(
            f"Batch complete: {counts['success']} success, {counts['duplicate']} duplicate, "
            f"{counts['error']} error ({counts['rejected']} rejected)"
        )
        return ledger
