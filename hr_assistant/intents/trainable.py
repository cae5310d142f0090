"""
Trainable intent matcher.

Scores an utterance against every training phrase of the tenant's active
intents using token-set (Jaccard) similarity.
"""

import logging
from typing import Optional

from hr_assistant.nlp import DetectedIntent, tokenize

from .store import IntentStore

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.5
MAX_TRAINED_CONFIDENCE = 0.95


def jaccard_similarity(first: str, second: str) -> float:
    """
    Intersection over union of the lower-cased word sets.

    Returns:
        Similarity in [0, 1]; 0 when both texts are empty
    """
    words1 = set(tokenize(first))
    words2 = set(tokenize(second))
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


class TrainableIntentMatcher:
    """Matches utterances to tenant-defined intents by phrase similarity."""

    def __init__(self, store: IntentStore):
        self.store = store

    async def best_similarity(
        self,
        tenant_id: str,
        message: str,
    ) -> Optional[tuple[str, float]]:
        """
        Best (intent name, similarity) above the threshold.

        Only a strictly higher similarity replaces the current best, so
        the first phrase reaching a score keeps it.
        """
        intents = await self.store.list_active(tenant_id)

        best: Optional[tuple[str, float]] = None
        highest = 0.0
        for intent in intents:
            for phrase in intent.training_phrases:
                similarity = jaccard_similarity(message, phrase)
                if similarity > highest and similarity > SIMILARITY_THRESHOLD:
                    highest = similarity
                    best = (intent.name, similarity)
        return best

    async def match(self, tenant_id: str, message: str) -> Optional[DetectedIntent]:
        """
        Find the closest tenant intent.

        Store failures are logged and produce no candidate.

        Args:
            tenant_id: Owning tenant
            message: Normalized utterance

        Returns:
            Candidate with confidence capped at 0.95, or None
        """
        try:
            best = await self.best_similarity(tenant_id, message)
        except Exception as e:
            logger.warning(f"Intent store lookup failed for tenant {tenant_id}: {e}")
            return None

        if best is None:
            return None

        name, similarity = best
        logger.debug(f"Trained intent candidate: {name} ({similarity:.2f})")
        return DetectedIntent(
            name=name,
            confidence=min(MAX_TRAINED_CONFIDENCE, similarity),
            source="trained",
        )
