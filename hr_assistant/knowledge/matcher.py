"""
Knowledge fallback matcher.

Turns the top published article for an utterance into an intent
candidate when the rule table is not confident.
"""

import asyncio
import logging
from typing import Optional

from hr_assistant.nlp import DetectedIntent

from .retriever import KnowledgeStore

logger = logging.getLogger(__name__)

# Only consulted when the pattern confidence is below this value
CONSULT_BELOW = 0.5
MAX_KNOWLEDGE_CONFIDENCE = 0.9


def knowledge_confidence(score: float) -> float:
    """Map a relevance score onto [0, 0.9]."""
    return min(MAX_KNOWLEDGE_CONFIDENCE, max(0.0, score / 10))


class KnowledgeFallbackMatcher:
    """
    Looks up the tenant's knowledge base for a fallback intent.

    Search failures are logged and produce no candidate.
    """

    def __init__(self, store: KnowledgeStore, timeout: float = 3.0):
        self.store = store
        self.timeout = timeout

    @staticmethod
    def should_consult(current_confidence: float) -> bool:
        """Whether the current best candidate is weak enough to look up articles."""
        return current_confidence < CONSULT_BELOW

    async def match(self, tenant_id: str, query: str) -> Optional[DetectedIntent]:
        """
        Find an intent from the best matching published article.

        Args:
            tenant_id: Owning tenant
            query: Normalized utterance

        Returns:
            Candidate intent, or None when nothing matched or search failed
        """
        try:
            hits = await asyncio.wait_for(
                self.store.search_published(tenant_id, query, top=1),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"Knowledge search failed for tenant {tenant_id}: {e}")
            return None

        if not hits:
            return None

        top = hits[0]
        candidate = DetectedIntent(
            name=top.intent,
            confidence=knowledge_confidence(top.score),
            source="knowledge",
        )
        logger.debug(f"Knowledge candidate: {top}")
        return candidate
