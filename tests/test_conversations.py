"""Tests for conversation state, lifecycle and analytics."""

import asyncio
from datetime import timedelta

import pytest

from hr_assistant.conversations import (
    Analytics,
    Channel,
    Conversation,
    ConversationStateManager,
    ConversationStatus,
    ExecutedAction,
    InMemoryRepository,
    Message,
    MessageRole,
    ResolutionStatus,
)
from hr_assistant.errors import NotFound, PersistenceFailure, ValidationFailure
from hr_assistant.nlp import DetectedIntent

from tests.conftest import EMPLOYEE, TENANT


class FailingRepository(InMemoryRepository):
    async def save(self, conversation):
        raise OSError("disk full")


async def start_conversation(state, session_id="s-1", employee_id=EMPLOYEE, channel=Channel.WEB):
    conversation = await state.load_or_start(TENANT, session_id, employee_id, channel)
    state.record_turn(
        conversation,
        Message(role=MessageRole.USER, content="hello"),
        Message(role=MessageRole.ASSISTANT, content="Hi there"),
        DetectedIntent(name="greeting", confidence=0.9),
        latency_ms=12.0,
    )
    await state.save(conversation)
    return conversation


# ===========================
# Models
# ===========================

def test_status_transitions_are_monotonic():
    assert ConversationStatus.ACTIVE.can_transition_to(ConversationStatus.ESCALATED)
    assert ConversationStatus.ACTIVE.can_transition_to(ConversationStatus.CLOSED)
    assert ConversationStatus.ESCALATED.can_transition_to(ConversationStatus.CLOSED)
    assert not ConversationStatus.ESCALATED.can_transition_to(ConversationStatus.ACTIVE)
    assert not ConversationStatus.CLOSED.can_transition_to(ConversationStatus.ACTIVE)
    assert not ConversationStatus.CLOSED.can_transition_to(ConversationStatus.ESCALATED)


def test_append_rejects_out_of_order_messages():
    conversation = Conversation(session_id="s", tenant_id=TENANT)
    later = Message(role=MessageRole.USER, content="second")
    earlier = Message(
        role=MessageRole.USER,
        content="first",
        timestamp=later.timestamp - timedelta(seconds=1),
    )
    conversation.append(later)

    with pytest.raises(ValueError):
        conversation.append(earlier)


def test_rolling_average_is_mean_of_turns():
    analytics = Analytics()

    analytics.record_turn(100.0, "greeting")
    assert analytics.avg_response_time == 100.0
    assert analytics.message_count == 2

    analytics.record_turn(300.0, "greeting")
    assert analytics.avg_response_time == 200.0
    assert analytics.message_count == 4
    assert analytics.intents_detected == ["greeting"]

    analytics.record_system_message()
    assert analytics.message_count == 5
    assert analytics.turn_count == 2


def test_history_skips_system_messages():
    conversation = Conversation(session_id="s", tenant_id=TENANT)
    for role in (MessageRole.USER, MessageRole.ASSISTANT, MessageRole.SYSTEM, MessageRole.USER):
        conversation.append(Message(role=role, content=role.value))

    history = conversation.history(2)

    assert [m.role for m in history] == [MessageRole.ASSISTANT, MessageRole.USER]


# ===========================
# Turn bookkeeping
# ===========================

@pytest.mark.asyncio
async def test_record_turn_updates_context_and_slots(state):
    conversation = await state.load_or_start(TENANT, "s-slots")

    state.record_turn(
        conversation,
        Message(
            role=MessageRole.USER,
            content="sick leave tomorrow",
            entities={"leave_type": "sick", "parsed_date": None},
        ),
        Message(role=MessageRole.ASSISTANT, content="ok"),
        DetectedIntent(name="leave.apply", confidence=0.65),
        latency_ms=5.0,
    )

    assert conversation.context.current_intent == "leave.apply"
    assert conversation.context.last_topic == "leave"
    assert conversation.context.slots == {"leave_type": "sick"}
    assert [m.role for m in conversation.messages] == [MessageRole.USER, MessageRole.ASSISTANT]


@pytest.mark.asyncio
async def test_dispatched_action_clears_slots(state):
    conversation = await state.load_or_start(TENANT, "s-clear")
    conversation.context.slots = {"leave_type": "sick", "month": "may"}

    state.record_turn(
        conversation,
        Message(role=MessageRole.USER, content="payslip for june", entities={"month": "june"}),
        Message(
            role=MessageRole.ASSISTANT,
            content="Your payslip is ready",
            actions=[ExecutedAction(type="payroll.payslip", executed=True, outcome="synthetic")],
        ),
        DetectedIntent(name="payroll.payslip", confidence=0.9),
        latency_ms=5.0,
    )

    assert conversation.context.slots == {}


@pytest.mark.asyncio
async def test_load_rejects_foreign_and_closed_sessions(state):
    await start_conversation(state)

    with pytest.raises(ValidationFailure):
        await state.load_or_start("globex", "s-1")

    await state.end("s-1")
    with pytest.raises(ValidationFailure):
        await state.load_or_start(TENANT, "s-1")


@pytest.mark.asyncio
async def test_save_failure_is_persistence_failure():
    state = ConversationStateManager(FailingRepository())
    conversation = await state.load_or_start(TENANT, "s-x")

    with pytest.raises(PersistenceFailure):
        await state.save(conversation)


# ===========================
# Escalation
# ===========================

@pytest.mark.asyncio
async def test_escalation_appends_one_system_message(state):
    await start_conversation(state)

    escalation = await state.escalate("s-1", "Payroll mismatch")

    conversation = await state.get("s-1")
    assert conversation.status == ConversationStatus.ESCALATED
    assert escalation.resolved is False
    assert escalation.escalated_to == "hr_team"
    assert escalation.priority == "normal"
    assert len(conversation.messages) == 3
    assert conversation.messages[-1].role == MessageRole.SYSTEM
    assert "Payroll mismatch" in conversation.messages[-1].content
    assert conversation.analytics.message_count == 3
    assert conversation.analytics.turn_count == 1


@pytest.mark.asyncio
async def test_sensitive_escalation_routes_to_hr_manager(state):
    await start_conversation(state)

    escalation = await state.escalate("s-1", "I want to file a harassment complaint")

    assert escalation.escalated_to == "hr_manager"
    assert escalation.priority == "high"


@pytest.mark.asyncio
async def test_explicit_escalation_target_wins(state):
    await start_conversation(state)

    escalation = await state.escalate("s-1", "urgent", escalate_to="payroll_desk")

    assert escalation.escalated_to == "payroll_desk"
    assert escalation.priority == "high"


@pytest.mark.asyncio
async def test_escalating_twice_is_idempotent(state):
    await start_conversation(state)
    first = await state.escalate("s-1", "help")

    second = await state.escalate("s-1", "help again")

    conversation = await state.get("s-1")
    assert second == first
    assert len(conversation.messages) == 3


@pytest.mark.asyncio
async def test_escalating_closed_or_unknown_session_fails(state):
    await start_conversation(state)
    await state.end("s-1")

    with pytest.raises(ValidationFailure):
        await state.escalate("s-1", "too late")
    with pytest.raises(NotFound):
        await state.escalate("missing", "anyone?")


# ===========================
# Ending
# ===========================

@pytest.mark.asyncio
async def test_end_is_idempotent(state):
    await start_conversation(state)

    first = await state.end("s-1")
    second = await state.end("s-1")

    assert first.status == ConversationStatus.CLOSED
    assert first.ended_at is not None
    assert second.ended_at == first.ended_at


@pytest.mark.asyncio
async def test_end_closes_escalated_conversation(state):
    await start_conversation(state)
    await state.escalate("s-1", "help")

    closed = await state.end("s-1")

    assert closed.status == ConversationStatus.CLOSED


@pytest.mark.asyncio
async def test_end_unknown_session_is_not_found(state):
    with pytest.raises(NotFound):
        await state.end("missing")


# ===========================
# Feedback
# ===========================

@pytest.mark.asyncio
async def test_feedback_updates_message_and_analytics(state):
    conversation = await start_conversation(state)
    reply_id = conversation.messages[1].id

    updated = await state.submit_feedback("s-1", reply_id, helpful=True, rating=4, comment="thanks")

    stored = await state.get("s-1")
    assert updated.feedback.rating == 4
    assert stored.messages[1].feedback.comment == "thanks"
    assert stored.analytics.satisfaction_score == 4
    assert stored.analytics.resolution_status == ResolutionStatus.RESOLVED


@pytest.mark.asyncio
async def test_feedback_validation(state):
    conversation = await start_conversation(state)

    with pytest.raises(ValidationFailure):
        await state.submit_feedback("s-1", conversation.messages[1].id, rating=6)
    with pytest.raises(NotFound):
        await state.submit_feedback("s-1", "no-such-message", helpful=False)
    with pytest.raises(NotFound):
        await state.submit_feedback("missing", "m", helpful=True)


# ===========================
# History and analytics
# ===========================

@pytest.mark.asyncio
async def test_list_conversations_paginates(state):
    for index in range(3):
        await start_conversation(state, session_id=f"s-{index}")
        await asyncio.sleep(0.002)
    await start_conversation(state, session_id="other", employee_id="EMP999")

    page = await state.list_conversations(TENANT, EMPLOYEE, page=1, limit=2)

    assert page.total == 3
    assert page.pages == 2
    assert [item.session_id for item in page.items] == ["s-2", "s-1"]
    assert page.items[0].message_count == 2


@pytest.mark.asyncio
async def test_summarize_analytics(state):
    first = await start_conversation(state, session_id="a")
    await start_conversation(state, session_id="b", channel=Channel.SLACK)
    await state.escalate("a", "help")
    await state.submit_feedback("b", (await state.get("b")).messages[1].id, helpful=True, rating=5)

    summary = await state.summarize_analytics(TENANT)

    assert first.analytics.avg_response_time == 12.0
    assert summary.total_conversations == 2
    assert summary.total_messages == 5
    assert summary.avg_response_time == 12.0
    assert summary.avg_satisfaction == 5.0
    assert summary.resolution_rate == 50.0
    assert summary.escalation_rate == 50.0
    assert summary.top_intents[0].intent == "greeting"
    assert summary.top_intents[0].count == 2
    assert {c.channel: c.count for c in summary.channel_distribution} == {"web": 1, "slack": 1}


@pytest.mark.asyncio
async def test_summary_for_empty_tenant():
    summary = await ConversationStateManager(InMemoryRepository()).summarize_analytics("nobody")

    assert summary.total_conversations == 0
    assert summary.top_intents == []


@pytest.mark.asyncio
async def test_serialized_blocks_same_session_only(state):
    order = []

    async def hold(session_id, label, delay):
        async with state.serialized(session_id):
            order.append(f"{label}-start")
            await asyncio.sleep(delay)
            order.append(f"{label}-end")

    await asyncio.gather(hold("s", "a", 0.02), hold("s", "b", 0))

    assert order == ["a-start", "a-end", "b-start", "b-end"]
