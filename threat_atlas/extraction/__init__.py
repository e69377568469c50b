"""Extraction package initialization."""

from .gemini import GeminiBackend
from .oracle import ExtractionOracle, ExtractionResult, parse_response, rank_candidates
from .prompt import SECTOR_NAMES, build_prompt

__all__ = [
    'GeminiBackend', 'ExtractionOracle', 'ExtractionResult', 'parse_response',
    'rank_candidates', 'SECTOR_NAMES', 'build_prompt',
]
