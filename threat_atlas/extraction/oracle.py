"""Model-fallback orchestration around the extraction backend."""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple
import logging

from ..errors import ExtractionFailure, InvocationError, ModelDiscoveryError, ParseFailure
from .prompt import build_prompt

logger = logging.getLogger(__name__)

DEFAULT_MODELS = [
    'gemini-2.5-flash',
    'gemini-2.5-pro',
    'gemini-2.0-flash',
    'gemini-1.5-flash',
    'gemini-1.5-pro',
]

_FENCE_RE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.DOTALL)


class ExtractionBackend(Protocol):
    """
    invoke() is required. list_models() is optional; backends without it
    always use the static model list.
    """

    def invoke(self, model_id: str, prompt: str) -> str: ...


@dataclass
class ExtractionResult:
    """Parsed candidate plus the model that produced it."""
    candidate: Dict[str, Any]
    model: str
    attempted: List[str] = field(default_factory=list)
    candidate_source: str = 'static'


def rank_candidates(preferred: List[str], available: Optional[List[str]]) -> List[str]:
    """
    Order model candidates.

    Available preferred models keep the preferred order and go first, then the
    remaining available models in backend order. Without an availability list
    the preferred list is used as-is.

    Args:
        preferred: Static preferred ordering
        available: Models reported by the backend, or None

    Returns:
        Deduplicated candidate list
    """
    if not available:
        ranked = list(preferred)
    else:
        ranked = [m for m in preferred if m in available]
        ranked += [m for m in available if m not in preferred]

    seen = set()
    unique = []
    for model in ranked:
        if model not in seen:
            seen.add(model)
            unique.append(model)
    return unique


def parse_response(text: str) -> Dict[str, Any]:
    """
    Parse a model answer into a candidate dict.

    Raises:
        ParseFailure: If the text is not a JSON object
    """
    cleaned = (text or '').strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        cleaned = match.group(1)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParseFailure('Failed to parse LLM response', detail=str(e), raw_text=text) from e

    # Some models wrap the object in a one-element list
    if isinstance(data, list) and len(data) == 1 and isinstance(data[0], dict):
        data = data[0]

    if not isinstance(data, dict):
        raise ParseFailure('LLM response is not a JSON object',
                           detail=f"got {type(data).__name__}", raw_text=text)
    return data


class ExtractionOracle:
    """Tries ranked models in turn; the first one that answers wins."""

    def __init__(self,
                 backend: ExtractionBackend,
                 preferred_models: Optional[List[str]] = None,
                 discover_models: bool = True):
        """
        Initialize the oracle.

        Args:
            backend: Object with invoke() and, optionally, list_models()
            preferred_models: Static model ordering
            discover_models: Ask the backend which models are available
        """
        self.backend = backend
        self.preferred_models = list(preferred_models or DEFAULT_MODELS)
        self.discover_models = discover_models

    def candidates(self) -> Tuple[List[str], str]:
        """
        Resolve the model ladder for one extraction.

        Returns:
            Tuple of (ranked models, 'discovered' or 'static')
        """
        if not self.discover_models:
            return rank_candidates(self.preferred_models, None), 'static'

        list_models = getattr(self.backend, 'list_models', None)
        if list_models is None:
            logger.warning("Backend does not support model discovery, using static model list")
            return rank_candidates(self.preferred_models, None), 'static'

        try:
            available = list_models()
        except ModelDiscoveryError as e:
            logger.warning(f"Model discovery failed, using static model list: {e}")
            return rank_candidates(self.preferred_models, None), 'static'

        if not available:
            logger.warning("Model discovery returned no models, using static model list")
            return rank_candidates(self.preferred_models, None), 'static'

        ranked = rank_candidates(self.preferred_models, available)
        logger.info(f"Dynamically found models: {ranked}")
        return ranked, 'discovered'

    def extract(self, text: str, source_url: str) -> ExtractionResult:
        """
        Extract a structured candidate from article text.

        Args:
            text: Article content
            source_url: Source URL or placeholder (for logging)

        Returns:
            ExtractionResult with the parsed candidate

        Raises:
            ExtractionFailure: If every candidate model failed
            ParseFailure: If the answering model returned unusable JSON
        """
        models, source = self.candidates()
        prompt = build_prompt(text)

        attempted = []
        last_error = ''
        response_text = None
        used_model = None

        for model in models:
            attempted.append(model)
            try:
                logger.info(f"Attempting to use model: {model}")
                response_text = self.backend.invoke(model, prompt)
            except InvocationError as e:
                logger.error(f"Model {model} failed: {e}")
                last_error = str(e)
                continue

            if response_text:
                used_model = model
                break

            last_error = f"{model}: empty response"
            logger.error(f"Model {model} returned an empty response")

        if used_model is None:
            raise ExtractionFailure(
                f"All models failed. Last error: {last_error}",
                detail=last_error,
                attempted=attempted,
            )

        logger.info(f"Extracted {source_url} with {used_model}")
        candidate = parse_response(response_text)
        return ExtractionResult(candidate=candidate, model=used_model,
                                attempted=attempted, candidate_source=source)
