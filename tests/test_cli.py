import json

import pytest
from click.testing import CliRunner

from threat_atlas.cli import cli
from threat_atlas.config import reset_config
from threat_atlas.extraction import ExtractionOracle
from threat_atlas.ingestion import IngestionPipeline
from threat_atlas.service import ThreatAtlas
from threat_atlas.storage import CountryReference

from tests.fakes import FakeBackend, FakeFetcher, candidate_json


@pytest.fixture
def atlas(store):
    def answer(model, prompt):
        if 'case-lz' in prompt:
            return candidate_json(threat_actor='Lazarus Group', targeted_countries=['KR'],
                                  targeted_sectors=['Finance'], date='2023-02-01',
                                  title='Lazarus hits exchanges', risk_score=90)
        return candidate_json()

    oracle = ExtractionOracle(FakeBackend(answer=answer), ['model-a'], discover_models=False)
    fetcher = FakeFetcher(fail_urls={'https://example.com/broken'})
    pipeline = IngestionPipeline(store, oracle, fetcher=fetcher)
    return ThreatAtlas(store, pipeline=pipeline, countries=CountryReference())


@pytest.fixture
def run(atlas):
    reset_config()
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, list(args), obj={'atlas': atlas})

    yield invoke
    reset_config()


def test_ingest_url_then_duplicate(run):
    first = run('ingest', 'https://example.com/report')
    assert first.exit_code == 0
    assert 'SUCCESS' in first.output
    assert 'APT28' in first.output

    second = run('ingest', 'https://example.com/report/')
    assert second.exit_code == 0
    assert 'DUPLICATE' in second.output


def test_ingest_unsupported_format_exits_non_zero(run):
    result = run('ingest', 'https://example.com/report.pdf')
    assert result.exit_code == 1
    assert 'PDF files are not supported' in result.output


def test_ingest_text(run, tmp_path):
    article = tmp_path / 'article.txt'
    article.write_text('case-lz: Lazarus drained a crypto exchange.', encoding='utf-8')

    result = run('ingest-text', '--file', str(article))

    assert result.exit_code == 0
    assert 'Lazarus Group' in result.output
    assert 'manual-submission' in result.output


def test_ingest_text_requires_content(run):
    assert run('ingest-text').exit_code == 2


def test_batch_reports_each_url_and_counts(run, tmp_path):
    url_file = tmp_path / 'urls.txt'
    url_file.write_text(
        '# weekly reading list\n'
        'https://example.com/1\n'
        '\n'
        'https://example.com/broken\n'
        'https://example.com/1/\n',
        encoding='utf-8',
    )

    result = run('batch', str(url_file), '--format', 'json')

    assert result.exit_code == 0
    assert '[2/3]' in result.output
    payload = json.loads(result.output[result.output.index('{'):result.output.rindex('}') + 1])
    assert [e['status'] for e in payload['entries']] == ['success', 'error', 'duplicate']
    assert payload['counts']['error'] == 1


def test_read_commands(run, atlas):
    atlas.ingest_url('https://example.com/1')
    atlas.ingest_text('case-lz: Lazarus drained a crypto exchange.', url='https://example.com/2')

    records = run('records', '--format', 'json')
    assert [r['threat_actor'] for r in json.loads(records.output)] == ['APT28', 'Lazarus Group']

    actors = run('actors')
    assert 'Lazarus Group' in actors.output

    actor = run('actors', 'lazarus-group', '--format', 'json')
    assert json.loads(actor.output)['event_count'] == 1

    assert run('actors', 'Nobody').exit_code == 1

    sectors = run('sectors', 'finance', '--format', 'json')
    assert json.loads(sectors.output)['top_threat_actors'][0]['name'] == 'Lazarus Group'

    countries = run('countries')
    assert 'Germany' in countries.output

    korea = run('countries', 'kr', '--format', 'json')
    assert json.loads(korea.output)['alpha3'] == 'KOR'

    dashboard = run('dashboard', '--year', '2024')
    assert 'Events: 1' in dashboard.output

    stats = run('stats')
    assert 'Total records: 2' in stats.output


def test_export(run, atlas, tmp_path):
    atlas.ingest_url('https://example.com/1')
    output = tmp_path / 'out' / 'records.csv'

    result = run('export', '--output', str(output), '--format', 'csv')

    assert result.exit_code == 0
    lines = output.read_text(encoding='utf-8').splitlines()
    assert lines[0].startswith('date,threat_actor,attribution_country')
    assert len(lines) == 2


def test_empty_store(run):
    assert 'No records found' in run('records').output
    assert 'No articles stored yet' in run('stats').output
