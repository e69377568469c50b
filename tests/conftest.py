import pytest

from threat_atlas.extraction import ExtractionOracle
from threat_atlas.ingestion import IngestionPipeline
from threat_atlas.storage import ArticleStore

from tests.fakes import FakeBackend, FakeClock, FakeFetcher


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock):
    return ArticleStore(str(tmp_path / 'data' / 'articles.csv'), cache_ttl=30, clock=clock)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def pipeline(store, backend, fetcher):
    oracle = ExtractionOracle(backend, preferred_models=['model-a'], discover_models=False)
    return IngestionPipeline(store, oracle, fetcher=fetcher)
