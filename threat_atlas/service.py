"""Service facade used by the CLI and any presentation layer."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union
import logging

from .analysis import (
    CountryHit,
    CountryProfile,
    DashboardStats,
    SectorProfile,
    ThreatActorProfile,
    build_dashboard,
    country_profiles,
    find_article,
    find_by_slug,
    find_country,
    find_threat_actor,
    map_heat,
    ranked_countries,
    sector_profiles,
    threat_actor_profiles,
)
from .config import Config, get_config
from .enrichment import enrich_articles
from .extraction import ExtractionOracle, GeminiBackend
from .extraction.gemini import DEFAULT_API_BASE
from .ingestion.fetcher import DEFAULT_USER_AGENT
from .ingestion import (
    BatchLedger,
    ContentFetcher,
    IngestionPipeline,
    IngestResult,
    SourceDescriptor,
)
from .storage import ArticleStore, CountryReference, get_countries, get_store

logger = logging.getLogger(__name__)


@dataclass
class CountryStats:
    hits: List[CountryHit] = field(default_factory=list)
    map_heat: Dict[str, int] = field(default_factory=dict)
    profiles: List[CountryProfile] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ThreatAtlas:
    """Ingestion and read operations over one article store."""

    def __init__(self,
                 store: ArticleStore,
                 pipeline: Optional[IngestionPipeline] = None,
                 countries: Optional[CountryReference] = None):
        self.store = store
        self.pipeline = pipeline
        self.countries = countries or CountryReference()

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "ThreatAtlas":
        """
        Wire the default collaborators from configuration.

        Args:
            config: Config instance; the global one when omitted

        Returns:
            ThreatAtlas using the process-wide store and country table
        """
        config = config or get_config()

        backend = GeminiBackend(
            api_key=config.get('extraction.api_key'),
            api_base=config.get('extraction.api_base') or DEFAULT_API_BASE,
            timeout=config.get('extraction.timeout', 120),
        )
        oracle = ExtractionOracle(
            backend,
            preferred_models=config.get_preferred_models() or None,
            discover_models=bool(config.get('extraction.discover_models', True)),
        )
        fetcher = ContentFetcher(
            timeout=config.get('fetcher.timeout', 15),
            user_agent=config.get('fetcher.user_agent') or DEFAULT_USER_AGENT,
            archive_dir=config.get('fetcher.archive_dir'),
        )

        store = get_store()
        pipeline = IngestionPipeline(
            store,
            oracle,
            fetcher=fetcher,
            unsupported_extensions=config.get_unsupported_extensions(),
            placeholder_url=config.get('ingestion.placeholder_url', 'manual-submission'),
        )
        return cls(store, pipeline=pipeline, countries=get_countries())

    # --- ingestion -------------------------------------------------------

    def _require_pipeline(self) -> IngestionPipeline:
        if self.pipeline is None:
            raise RuntimeError('This ThreatAtlas instance was created without an ingestion pipeline')
        return self.pipeline

    def ingest(self, descriptor: Union[str, SourceDescriptor]) -> IngestResult:
        return self._require_pipeline().ingest(descriptor)

    def ingest_url(self, url: str) -> IngestResult:
        return self.ingest(SourceDescriptor.from_url(url))

    def ingest_text(self, text: str, url: Optional[str] = None) -> IngestResult:
        return self.ingest(SourceDescriptor.from_text(text, url))

    def ingest_batch(self, descriptors: Iterable[Union[str, SourceDescriptor]],
                     on_update=None) -> BatchLedger:
        return self._require_pipeline().ingest_batch(descriptors, on_update=on_update)

    def iter_batch(self, descriptors: Iterable[Union[str, SourceDescriptor]]) -> Iterator[IngestResult]:
        return self._require_pipeline().iter_batch(descriptors)

    # --- reads -----------------------------------------------------------

    def list_records(self) -> List[Dict[str, Any]]:
        """Stored records in append order."""
        return self.store.all()

    def list_articles(self) -> List[Dict[str, Any]]:
        """Stored records with slug and risk level added."""
        return enrich_articles(self.store.all())

    def get_article(self, slug: str) -> Optional[Dict[str, Any]]:
        return find_article(self.list_articles(), slug)

    def get_threat_actor_profiles(self) -> List[ThreatActorProfile]:
        return threat_actor_profiles(self.list_articles())

    def get_threat_actor(self, name_or_slug: str) -> Optional[ThreatActorProfile]:
        return find_threat_actor(self.get_threat_actor_profiles(), name_or_slug)

    def get_sector_profiles(self) -> List[SectorProfile]:
        return sector_profiles(self.list_articles())

    def get_sector(self, slug: str) -> Optional[SectorProfile]:
        return find_by_slug(self.get_sector_profiles(), slug)

    def get_country_stats(self) -> CountryStats:
        articles = self.list_articles()
        return CountryStats(
            hits=ranked_countries(articles, self.countries),
            map_heat=map_heat(articles, self.countries),
            profiles=country_profiles(articles, self.countries),
        )

    def get_country(self, alpha2: str) -> Optional[CountryProfile]:
        return find_country(country_profiles(self.list_articles(), self.countries), alpha2)

    def get_dashboard(self,
                      date_from: Optional[str] = None,
                      date_to: Optional[str] = None,
                      year: Optional[str] = None,
                      query: Optional[str] = None) -> DashboardStats:
        return build_dashboard(
            self.list_articles(),
            self.countries,
            date_from=date_from,
            date_to=date_to,
            year=year,
            query=query,
        )

    def list_countries(self) -> List[Dict[str, str]]:
        return self.countries.all()
