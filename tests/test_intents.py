"""Tests for tenant-trained intent matching."""

import pytest

from hr_assistant.intents import (
    InMemoryIntentStore,
    IntentDefinition,
    IntentStore,
    TrainableIntentMatcher,
    jaccard_similarity,
)

from tests.conftest import TENANT


class BrokenIntentStore(IntentStore):
    async def list_active(self, tenant_id):
        raise ConnectionError("intent store offline")


def test_exact_phrase_has_similarity_one():
    assert jaccard_similarity("Show my payslip!", "show my payslip") == 1.0


def test_similarity_is_intersection_over_union():
    assert jaccard_similarity("show my payslip", "show my salary") == pytest.approx(2 / 4)
    assert jaccard_similarity("", "") == 0.0


@pytest.mark.asyncio
async def test_exact_phrase_matches_with_capped_confidence(intent_store):
    candidate = await TrainableIntentMatcher(intent_store).match(TENANT, "show my payslip")

    assert candidate.name == "payroll.payslip"
    assert candidate.confidence == 0.95
    assert candidate.source == "trained"


@pytest.mark.asyncio
async def test_similarity_must_exceed_half():
    store = InMemoryIntentStore([
        IntentDefinition(tenant_id=TENANT, name="x.half", training_phrases=["alpha beta"]),
    ])
    matcher = TrainableIntentMatcher(store)

    assert await matcher.match(TENANT, "alpha") is None
    assert (await matcher.match(TENANT, "alpha beta gamma")).confidence == pytest.approx(2 / 3)


@pytest.mark.asyncio
async def test_inactive_and_foreign_intents_are_ignored(intent_store):
    matcher = TrainableIntentMatcher(intent_store)

    assert await matcher.match(TENANT, "gym membership reimbursement") is None
    assert (await matcher.match("globex", "show my payslip")).name == "globex.only"


@pytest.mark.asyncio
async def test_active_intents_sorted_by_priority():
    store = InMemoryIntentStore([
        IntentDefinition(tenant_id=TENANT, name="b", priority=1),
        IntentDefinition(tenant_id=TENANT, name="a", priority=5),
        IntentDefinition(tenant_id=TENANT, name="c", priority=1),
    ])

    assert [i.name for i in await store.list_active(TENANT)] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_store_failure_produces_no_candidate():
    assert await TrainableIntentMatcher(BrokenIntentStore()).match(TENANT, "anything") is None
