"""Lexicon-based sentiment scoring."""

from enum import Enum
from typing import AbstractSet

from .patterns import NEGATIVE_WORDS, POSITIVE_WORDS
from .text import tokenize


class Sentiment(str, Enum):
    """Polarity of an utterance."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class SentimentScorer:
    """Sums +1 per positive token and -1 per negative token."""

    def __init__(
        self,
        positive: AbstractSet[str] = POSITIVE_WORDS,
        negative: AbstractSet[str] = NEGATIVE_WORDS,
    ):
        self.positive = frozenset(positive)
        self.negative = frozenset(negative)

    def score(self, text: str) -> int:
        """Raw polarity score of the text."""
        total = 0
        for token in tokenize(text):
            if token in self.positive:
                total += 1
            if token in self.negative:
                total -= 1
        return total

    def classify(self, text: str) -> Sentiment:
        """Map the score sign to a Sentiment."""
        total = self.score(text)
        if total > 0:
            return Sentiment.POSITIVE
        if total < 0:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL
