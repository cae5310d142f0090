"""Tests for intent fusion and context resolution."""

import pytest

from hr_assistant.agents import ContextResolver, IntentRecognizer, fuse, fuse_all
from hr_assistant.intents import TrainableIntentMatcher
from hr_assistant.knowledge import KnowledgeFallbackMatcher, KnowledgeStore
from hr_assistant.nlp import DetectedIntent, Sentiment

from tests.conftest import NOW, TENANT


class SpyKnowledgeStore(KnowledgeStore):
    def __init__(self, inner):
        self.inner = inner
        self.queries = []

    async def search_published(self, tenant_id, query, top=1):
        self.queries.append(query)
        return await self.inner.search_published(tenant_id, query, top)


def candidate(name, confidence, source="pattern"):
    return DetectedIntent(name=name, confidence=confidence, source=source)


# ===========================
# Fusion
# ===========================

def test_fuse_replaces_only_on_strictly_higher_confidence():
    best = candidate("a", 0.7)

    assert fuse(best, candidate("b", 0.7)) is best
    assert fuse(best, candidate("c", 0.71)).name == "c"
    assert fuse(best, None) is best


def test_fuse_all_starts_from_unknown():
    assert fuse_all([]).name == "unknown"
    assert fuse_all([None, candidate("a", 0.4), candidate("b", 0.3)]).name == "a"


# ===========================
# Context resolver
# ===========================

def test_confirmation_after_leave_application():
    resolved = ContextResolver().resolve(candidate("unknown", 0.0), "Yes, please", "leave.apply")

    assert resolved.name == "leave.confirm"
    assert resolved.confidence == 0.85
    assert resolved.source == "context"


@pytest.mark.parametrize(
    "best, message, previous",
    [
        (candidate("unknown", 0.0), "yes", "payroll.salary"),
        (candidate("unknown", 0.0), "yes", None),
        (candidate("unknown", 0.0), "maybe later", "leave.apply"),
        (candidate("greeting", 0.7), "yes", "leave.apply"),
        (candidate("unknown", 0.0), "yesterday", "leave.apply"),
        (candidate("unknown", 0.0), "I'm not sure", "leave.apply"),
        (candidate("unknown", 0.0), "don't submit it", "leave.apply"),
        (candidate("unknown", 0.0), "no, not really sure", "leave.apply"),
    ],
)
def test_context_does_not_apply(best, message, previous):
    assert ContextResolver().resolve(best, message, previous) is None


# ===========================
# Recognizer
# ===========================

@pytest.mark.asyncio
async def test_analysis_carries_entities_and_sentiment():
    analysis = await IntentRecognizer().analyze(
        "Thanks, great help! Book annual leave on Friday", TENANT, today=NOW.date()
    )

    assert analysis.sentiment == Sentiment.POSITIVE
    assert analysis.entities["leave_type"] == "annual"
    assert analysis.entities["parsed_date"].isoformat() == "2026-10-23"
    assert "friday" in analysis.tokens


@pytest.mark.asyncio
async def test_knowledge_skipped_when_pattern_is_confident(knowledge_store):
    spy = SpyKnowledgeStore(knowledge_store)
    recognizer = IntentRecognizer(knowledge=KnowledgeFallbackMatcher(spy))

    analysis = await recognizer.analyze("How many leave days do I have left?", TENANT)

    assert analysis.intent.name == "leave.check_balance"
    assert spy.queries == []


@pytest.mark.asyncio
async def test_knowledge_fills_in_for_unmatched_utterance(knowledge_store):
    spy = SpyKnowledgeStore(knowledge_store)
    recognizer = IntentRecognizer(knowledge=KnowledgeFallbackMatcher(spy))

    analysis = await recognizer.analyze("Remote work from home rules", TENANT)

    assert spy.queries == ["remote work from home rules"]
    assert analysis.intent.name == "policy.general"
    assert analysis.intent.source == "knowledge"
    assert analysis.intent.confidence <= 0.9


@pytest.mark.asyncio
async def test_trained_phrase_beats_weaker_pattern(intent_store):
    recognizer = IntentRecognizer(trainable=TrainableIntentMatcher(intent_store))

    analysis = await recognizer.analyze("Show my payslip", TENANT)

    assert analysis.intent.name == "payroll.payslip"
    assert analysis.intent.source == "trained"
    assert analysis.intent.confidence == 0.95


@pytest.mark.asyncio
async def test_context_confirms_open_leave_flow():
    analysis = await IntentRecognizer().analyze("sure", TENANT, previous_intent="leave.apply")

    assert analysis.intent.name == "leave.confirm"
    assert analysis.intent.confidence == 0.85


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    ["hi", "How many leave days do I have left?", "qwzx", "check in", "Show me my salary please"],
)
async def test_fused_confidence_stays_in_bounds(message, knowledge_store, intent_store):
    recognizer = IntentRecognizer(
        knowledge=KnowledgeFallbackMatcher(knowledge_store),
        trainable=TrainableIntentMatcher(intent_store),
    )

    analysis = await recognizer.analyze(message, TENANT)

    assert 0.0 <= analysis.intent.confidence <= 0.95
