"""
Intent recognition pipeline.

Runs the pattern matcher, then lets the knowledge base, trained intents
and conversation context compete for the final intent. Fusion is a
strict-greater fold: a later source replaces the current best only when
its confidence is strictly higher, so ties keep the earlier source.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Optional

from hr_assistant.intents import TrainableIntentMatcher
from hr_assistant.knowledge import KnowledgeFallbackMatcher
from hr_assistant.nlp import (
    DetectedIntent,
    EntityExtractor,
    PatternIntentMatcher,
    Sentiment,
    SentimentScorer,
    normalize,
    tokenize,
)
from hr_assistant.nlp.patterns import CONFIRMATION_WORDS, NEGATION_WORDS

logger = logging.getLogger(__name__)

CONTEXT_CONFIDENCE = 0.85
CONTEXT_BELOW = 0.7

# Open multi-step flow -> intent that confirms it
CONFIRMABLE_FLOWS: dict[str, str] = {
    "leave.apply": "leave.confirm",
}


def fuse(best: DetectedIntent, candidate: Optional[DetectedIntent]) -> DetectedIntent:
    """Keep ``best`` unless ``candidate`` is strictly more confident."""
    if candidate is not None and candidate.confidence > best.confidence:
        return candidate
    return best


def fuse_all(candidates: Iterable[Optional[DetectedIntent]]) -> DetectedIntent:
    """Fold candidates in order, starting from the unknown intent."""
    best = DetectedIntent.unknown()
    for candidate in candidates:
        best = fuse(best, candidate)
    return best


class ContextResolver:
    """
    Resolves short confirmations against the previous turn.
    
    "yes" on its own means nothing to the pattern table, but right after
    a leave application it confirms that application. A confirmation word
    within two words of a negation ("not sure", "don't submit") does not
    count.
    """
    
    def __init__(
        self,
        flows: Optional[dict[str, str]] = None,
        confirmations: frozenset = CONFIRMATION_WORDS,
        negations: frozenset = NEGATION_WORDS,
    ):
        self.flows = flows if flows is not None else CONFIRMABLE_FLOWS
        self.confirmations = confirmations
        self.negations = negations
    
    def is_confirmation(self, message: str) -> bool:
        tokens = tokenize(message)
        return any(
            token in self.confirmations
            and not self.negations.intersection(tokens[max(0, i - 2):i])
            for i, token in enumerate(tokens)
        )
    
    def resolve(
        self,
        best: DetectedIntent,
        message: str,
        previous_intent: Optional[str],
    ) -> Optional[DetectedIntent]:
        """
        Produce a confirm candidate for an open flow.
        
        Args:
            best: Fused intent so far
            message: Raw user utterance
            previous_intent: ``current_intent`` carried from the prior turn
            
        Returns:
            The confirm intent, or None when the context does not apply
        """
        if best.confidence >= CONTEXT_BELOW or previous_intent not in self.flows:
            return None
        if not self.is_confirmation(message):
            return None
        
        logger.debug(f"Confirmation resolved against open flow {previous_intent}")
        return DetectedIntent(
            name=self.flows[previous_intent],
            confidence=CONTEXT_CONFIDENCE,
            entities=dict(best.entities),
            source="context",
        )


@dataclass
class Analysis:
    """Everything the recognizer learned about one utterance."""
    
    intent: DetectedIntent
    entities: dict[str, Any] = field(default_factory=dict)
    sentiment: Sentiment = Sentiment.NEUTRAL
    tokens: list[str] = field(default_factory=list)


class IntentRecognizer:
    """
    Turns an utterance into an Analysis.
    
    Order of sources:
    1. Pattern rules (always)
    2. Knowledge base (only below the knowledge threshold)
    3. Trained intents
    4. Conversation context
    """
    
    def __init__(
        self,
        knowledge: Optional[KnowledgeFallbackMatcher] = None,
        trainable: Optional[TrainableIntentMatcher] = None,
        patterns: Optional[PatternIntentMatcher] = None,
        extractor: Optional[EntityExtractor] = None,
        sentiment: Optional[SentimentScorer] = None,
        context_resolver: Optional[ContextResolver] = None,
    ):
        self.knowledge = knowledge
        self.trainable = trainable
        self.patterns = patterns or PatternIntentMatcher()
        self.extractor = extractor or EntityExtractor()
        self.sentiment = sentiment or SentimentScorer()
        self.context_resolver = context_resolver or ContextResolver()
    
    async def _no_candidate(self) -> Optional[DetectedIntent]:
        return None
    
    async def analyze(
        self,
        message: str,
        tenant_id: str,
        previous_intent: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Analysis:
        """
        Analyze a user message.
        
        Args:
            message: Raw user utterance
            tenant_id: Tenant whose knowledge base and intents apply
            previous_intent: Intent of the prior turn, if any
            today: Reference day for relative dates
            
        Returns:
            Analysis with the fused intent, entities, sentiment and tokens
        """
        normalized = normalize(message)
        entities = self.extractor.extract(message, today=today)
        sentiment = self.sentiment.classify(message)
        
        best = self.patterns.match(normalized)
        
        consult_knowledge = (
            self.knowledge is not None
            and KnowledgeFallbackMatcher.should_consult(best.confidence)
        )
        knowledge_lookup = (
            self.knowledge.match(tenant_id, normalized)
            if consult_knowledge else self._no_candidate()
        )
        trainable_lookup = (
            self.trainable.match(tenant_id, normalized)
            if self.trainable is not None else self._no_candidate()
        )
        # Both lookups are read-only, so they run together; fusion order is fixed below.
        from_knowledge, from_training = await asyncio.gather(
            knowledge_lookup, trainable_lookup
        )
        
        best = fuse_all([best, from_knowledge, from_training])
        best = fuse(best, self.context_resolver.resolve(best, message, previous_intent))
        
        logger.debug(
            f"Recognized {best.name} ({best.confidence:.2f}) from {best.source} "
            f"for tenant {tenant_id}"
        )
        return Analysis(
            intent=best,
            entities=entities,
            sentiment=sentiment,
            tokens=tokenize(normalized),
        )
