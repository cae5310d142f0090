"""Rule-based language processing: intents, entities and sentiment."""

from .entities import EntityExtractor, resolve_relative_date
from .intent_matcher import PatternIntentMatcher, pattern_confidence
from .models import DetectedIntent, UNKNOWN_INTENT
from .sentiment import Sentiment, SentimentScorer
from .text import normalize, tokenize
from .triage import Triage, triage

__all__ = [
    "DetectedIntent",
    "EntityExtractor",
    "PatternIntentMatcher",
    "Sentiment",
    "SentimentScorer",
    "UNKNOWN_INTENT",
    "normalize",
    "pattern_confidence",
    "resolve_relative_date",
    "tokenize",
    "Triage",
    "triage",
]
