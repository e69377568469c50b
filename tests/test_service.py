import pytest

from threat_atlas.extraction import ExtractionOracle
from threat_atlas.ingestion import IngestionPipeline, IngestStatus, SourceDescriptor
from threat_atlas.service import ThreatAtlas

from tests.fakes import FakeBackend, candidate_json


@pytest.fixture
def atlas(store, pipeline):
    return ThreatAtlas(store, pipeline=pipeline)


def test_ingested_article_is_visible_to_every_read(atlas):
    result = atlas.ingest_url('https://example.com/apt28')
    assert result.status is IngestStatus.SUCCESS

    article = atlas.list_articles()[0]
    assert article['slug'] == '2024-03-01-apt28-targets-european-ministries'
    assert article['risk_level'] == 'medium'
    assert atlas.get_article(article['slug'])['threat_actor'] == 'APT28'

    assert atlas.get_threat_actor('apt28').event_count == 1
    assert atlas.get_sector('diplomacy').event_count == 1

    stats = atlas.get_country_stats()
    assert [(h.alpha2, h.name) for h in stats.hits] == [('DE', 'Germany'), ('FR', 'France')]
    assert stats.map_heat == {'DEU': 1, 'FRA': 1}
    assert atlas.get_country('fr').threat_actors == ['APT28']

    assert atlas.get_dashboard(query='ministries').events == 1
    assert atlas.get_dashboard(year='2020').events == 0


def test_iter_batch_and_text_ingest(atlas):
    results = list(atlas.iter_batch([
        'https://example.com/1',
        SourceDescriptor.from_text('pasted text'),
    ]))

    assert [r.source for r in results] == ['https://example.com/1', 'manual-submission']
    assert len(atlas.list_records()) == 2


def test_read_only_atlas_refuses_ingestion(store):
    atlas = ThreatAtlas(store)

    assert atlas.list_records() == []
    assert len(atlas.list_countries()) > 150
    with pytest.raises(RuntimeError):
        atlas.ingest_url('https://example.com/1')


def test_infinite_risk_score_does_not_break_reads(store, fetcher):
    backend = FakeBackend(answer=candidate_json(risk_score=float('inf')))
    oracle = ExtractionOracle(backend, ['model-a'], discover_models=False)
    atlas = ThreatAtlas(store, pipeline=IngestionPipeline(store, oracle, fetcher=fetcher))

    assert atlas.ingest_text('APT28 report').status is IngestStatus.SUCCESS

    assert atlas.list_articles()[0]['risk_level'] == 'unknown'
    assert atlas.get_threat_actor('APT28').event_count == 1
    assert atlas.get_sector_profiles()[0].event_count == 1
    assert atlas.get_country_stats().map_heat == {'DEU': 1, 'FRA': 1}
    assert atlas.get_dashboard().risk_distribution['unknown'] == 1
