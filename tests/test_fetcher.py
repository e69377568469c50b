import pytest
import requests

from threat_atlas.errors import FetchFailure
from threat_atlas.ingestion import ContentFetcher
from threat_atlas.ingestion.fetcher import clean_html

PAGE = """
<html>
  <head><title> Volt Typhoon targets Guam </title><style>p {color: red}</style></head>
  <body>
    <nav>Home | About</nav>
    <h1>Report</h1>
    <p>Volt Typhoon   compromised
       telecom routers.</p>
    <script>track();</script>
    <footer>Copyright</footer>
  </body>
</html>
"""


class FakeResponse:
    def __init__(self, text='', status=200):
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, headers, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def test_clean_html_strips_boilerplate():
    title, text = clean_html(PAGE)

    assert title == 'Volt Typhoon targets Guam'
    assert text == 'Report Volt Typhoon compromised telecom routers.'


def test_clean_html_without_title():
    assert clean_html('<p>hello</p>') == ('Untitled Article', 'hello')


def test_fetch_sends_user_agent_and_timeout():
    session = FakeSession(FakeResponse(PAGE))
    fetcher = ContentFetcher(timeout=5, user_agent='atlas-test', session=session)

    content = fetcher.fetch('https://example.com/volt')

    assert content.title == 'Volt Typhoon targets Guam'
    assert content.content_locator == 'https://example.com/volt'
    assert session.calls == [('https://example.com/volt', {'User-Agent': 'atlas-test'}, 5)]
    assert content.as_markdown().startswith(
        '# Volt Typhoon targets Guam\n\nURL: https://example.com/volt\n\n')


@pytest.mark.parametrize('session', [
    FakeSession(FakeResponse('', status=404)),
    FakeSession(error=requests.Timeout('read timed out')),
    FakeSession(error=requests.ConnectionError('refused')),
])
def test_fetch_failures_are_wrapped(session):
    with pytest.raises(FetchFailure):
        ContentFetcher(session=session).fetch('https://example.com/missing')


def test_fetch_archives_markdown_copy(tmp_path):
    fetcher = ContentFetcher(archive_dir=str(tmp_path / 'articles'),
                             session=FakeSession(FakeResponse(PAGE)))

    content = fetcher.fetch('https://example.com/volt')

    assert content.content_locator.endswith('_volt_typhoon_targets_guam.md')
    with open(content.content_locator, encoding='utf-8') as f:
        assert f.read() == content.as_markdown()
