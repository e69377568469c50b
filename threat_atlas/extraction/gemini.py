"""Gemini REST backend for the extraction oracle."""

from typing import Any, Dict, List, Optional
import logging

import requests

from ..errors import InvocationError, ModelDiscoveryError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = 'https://generativelanguage.googleapis.com/v1beta'


class GeminiBackend:
    """Calls the Generative Language API over plain HTTP."""

    def __init__(self,
                 api_key: Optional[str],
                 api_base: str = DEFAULT_API_BASE,
                 timeout: float = 120,
                 session: Optional[requests.Session] = None):
        """
        Initialize the backend.

        Args:
            api_key: Gemini API key
            api_base: Base URL of the REST API
            timeout: Per-request timeout in seconds
            session: Optional requests session (tests inject one)
        """
        self.api_key = api_key
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_models(self) -> List[str]:
        """
        List models that support content generation.

        Raises:
            ModelDiscoveryError: If the listing cannot be retrieved
        """
        if not self.api_key:
            raise ModelDiscoveryError('GEMINI_API_KEY not configured')

        try:
            resp = self.session.get(
                f"{self.api_base}/models",
                params={'key': self.api_key},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ModelDiscoveryError(f"Model listing failed: {e}") from e

        models = []
        for model in payload.get('models', []):
            if 'generateContent' in model.get('supportedGenerationMethods', []):
                models.append(model.get('name', '').replace('models/', '', 1))
        return [m for m in models if m]

    def invoke(self, model_id: str, prompt: str) -> str:
        """
        Run one generation request.

        Args:
            model_id: Model identifier, e.g. gemini-2.5-flash
            prompt: Full prompt text

        Returns:
            The response text (expected to be JSON)

        Raises:
            InvocationError: On HTTP/network failure or an empty answer
        """
        if not self.api_key:
            raise InvocationError('GEMINI_API_KEY not configured')

        body = {
            'contents': [{'parts': [{'text': prompt}]}],
            'generationConfig': {'responseMimeType': 'application/json'},
        }

        try:
            resp = self.session.post(
                f"{self.api_base}/models/{model_id}:generateContent",
                params={'key': self.api_key},
                json=body,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise InvocationError(f"{model_id}: {e}") from e

        text = self._response_text(payload)
        if not text:
            raise InvocationError(f"{model_id}: empty response")
        return text

    @staticmethod
    def _response_text(payload: Dict[str, Any]) -> str:
        parts = []
        for candidate in payload.get('candidates', [])[:1]:
            for part in candidate.get('content', {}).get('parts', []):
                parts.append(part.get('text', ''))
        return ''.join(parts).strip()
