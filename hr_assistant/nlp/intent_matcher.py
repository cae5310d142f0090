"""
Pattern-based intent matcher.

Scores every rule in the static intent table against a normalized
utterance and keeps the single best match.
"""

import logging
from typing import Sequence

from .models import DetectedIntent
from .patterns import INTENT_RULES, IntentRule

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.6
MAX_LENGTH_BONUS = 0.3
MAX_PATTERN_CONFIDENCE = 0.95


def pattern_confidence(match_length: int, message_length: int) -> float:
    """
    Confidence for a rule match.

    Longer matches relative to the utterance score higher, up to 0.95.

    Args:
        match_length: Length of the matched span
        message_length: Length of the normalized utterance

    Returns:
        Confidence in [0.6, 0.95], or 0.0 for an empty utterance
    """
    if message_length <= 0:
        return 0.0
    length_bonus = min(MAX_LENGTH_BONUS, (match_length / message_length) * 0.5)
    return min(MAX_PATTERN_CONFIDENCE, BASE_CONFIDENCE + length_bonus)


class PatternIntentMatcher:
    """
    Matches utterances against the ordered intent rule table.

    Replacement is strictly-greater, so on equal confidence the intent
    that appears first in the table wins.
    """

    def __init__(self, rules: Sequence[IntentRule] = INTENT_RULES):
        self.rules = tuple(rules)

    def match(self, normalized: str) -> DetectedIntent:
        """
        Find the best intent for a normalized utterance.

        Args:
            normalized: Lower-cased, trimmed utterance

        Returns:
            Best DetectedIntent, or ``unknown`` with confidence 0
        """
        best = DetectedIntent.unknown()

        for rule in self.rules:
            for pattern in rule.patterns:
                found = pattern.search(normalized)
                if not found:
                    continue
                confidence = pattern_confidence(len(found.group(0)), len(normalized))
                if confidence > best.confidence:
                    best = DetectedIntent(
                        name=rule.intent,
                        confidence=confidence,
                        source="pattern",
                    )

        logger.debug(f"Pattern match: {best.name} ({best.confidence:.2f})")
        return best
