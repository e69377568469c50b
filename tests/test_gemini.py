import pytest
import requests

from threat_atlas.errors import InvocationError, ModelDiscoveryError
from threat_atlas.extraction import GeminiBackend


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.payload is None:
            raise ValueError('No JSON object could be decoded')
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def get(self, url, **kwargs):
        self.requests.append(('GET', url, kwargs))
        return self.response

    def post(self, url, **kwargs):
        self.requests.append(('POST', url, kwargs))
        return self.response


def test_list_models_keeps_generation_capable_models():
    session = FakeSession(FakeResponse({'models': [
        {'name': 'models/gemini-2.5-flash', 'supportedGenerationMethods': ['generateContent']},
        {'name': 'models/text-embedding-004', 'supportedGenerationMethods': ['embedContent']},
        {'name': 'models/gemini-2.0-flash', 'supportedGenerationMethods': ['countTokens', 'generateContent']},
    ]}))
    backend = GeminiBackend('secret', session=session)

    assert backend.list_models() == ['gemini-2.5-flash', 'gemini-2.0-flash']
    method, url, kwargs = session.requests[0]
    assert url.endswith('/models')
    assert kwargs['params'] == {'key': 'secret'}


def test_list_models_wraps_http_errors():
    backend = GeminiBackend('secret', session=FakeSession(FakeResponse({}, status=503)))
    with pytest.raises(ModelDiscoveryError):
        backend.list_models()


def test_missing_api_key():
    backend = GeminiBackend(None, session=FakeSession(FakeResponse({})))
    with pytest.raises(ModelDiscoveryError):
        backend.list_models()
    with pytest.raises(InvocationError):
        backend.invoke('gemini-2.5-flash', 'prompt')


def test_invoke_returns_response_text():
    session = FakeSession(FakeResponse({'candidates': [
        {'content': {'parts': [{'text': '{"threat_actor": '}, {'text': '"APT1"}'}]}},
    ]}))
    backend = GeminiBackend('secret', api_base='https://api.test/v1/', session=session)

    assert backend.invoke('gemini-2.5-flash', 'prompt') == '{"threat_actor": "APT1"}'

    method, url, kwargs = session.requests[0]
    assert method == 'POST'
    assert url == 'https://api.test/v1/models/gemini-2.5-flash:generateContent'
    assert kwargs['json']['generationConfig']['responseMimeType'] == 'application/json'
    assert kwargs['json']['contents'][0]['parts'][0]['text'] == 'prompt'


def test_invoke_rejects_empty_answers_and_errors():
    empty = GeminiBackend('secret', session=FakeSession(FakeResponse({'candidates': []})))
    with pytest.raises(InvocationError, match='empty response'):
        empty.invoke('gemini-2.5-flash', 'prompt')

    failing = GeminiBackend('secret', session=FakeSession(FakeResponse(None, status=500)))
    with pytest.raises(InvocationError, match='gemini-2.5-flash'):
        failing.invoke('gemini-2.5-flash', 'prompt')
