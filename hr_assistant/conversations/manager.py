"""
Conversation state manager.

Owns the session lifecycle, turn bookkeeping and rolling analytics.
All read-modify-write sequences for a session run under that session's
lock so concurrent turns cannot lose updates.
"""

import asyncio
import logging
import math
import weakref
from collections import Counter
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from hr_assistant.errors import NotFound, PersistenceFailure, ValidationFailure
from hr_assistant.nlp import DetectedIntent, triage

from .models import (
    AnalyticsSummary,
    Channel,
    ChannelCount,
    Conversation,
    ConversationMetadata,
    ConversationPage,
    ConversationStatus,
    ConversationSummary,
    Escalation,
    Feedback,
    IntentCount,
    Message,
    MessageRole,
    ResolutionStatus,
    utcnow,
)
from .repository import ConversationRepository

logger = logging.getLogger(__name__)

DEFAULT_ESCALATION_TARGET = "hr_team"


class ConversationStateManager:
    """
    Manages conversations on top of a repository.

    Status moves active -> escalated -> closed or active -> closed;
    closed is terminal.
    """

    def __init__(self, repository: ConversationRepository):
        self.repository = repository
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    @asynccontextmanager
    async def serialized(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock for the duration of the block."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        async with lock:
            yield

    # =========================================================================
    # Persistence
    # =========================================================================

    async def get(self, session_id: str) -> Conversation:
        """
        Load a conversation.

        Raises:
            NotFound: If the session does not exist
        """
        try:
            conversation = await self.repository.get(session_id)
        except Exception as e:
            logger.error(f"Failed to load conversation {session_id}: {e}")
            raise PersistenceFailure(f"Failed to load conversation {session_id}") from e

        if conversation is None:
            raise NotFound("Conversation", session_id)
        return conversation

    async def save(self, conversation: Conversation) -> None:
        """
        Persist a conversation.

        Raises:
            PersistenceFailure: If the write fails
        """
        try:
            await self.repository.save(conversation)
        except Exception as e:
            logger.error(f"Failed to save conversation {conversation.session_id}: {e}")
            raise PersistenceFailure(
                f"Failed to save conversation {conversation.session_id}"
            ) from e

    async def load_or_start(
        self,
        tenant_id: str,
        session_id: str,
        employee_id: Optional[str] = None,
        channel: Channel = Channel.WEB,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Conversation:
        """
        Load the session for a new turn, creating it on first use.

        Raises:
            ValidationFailure: If the session belongs to another tenant or is closed
        """
        try:
            conversation = await self.get(session_id)
        except NotFound:
            logger.info(f"Starting conversation {session_id} for tenant {tenant_id}")
            return Conversation(
                session_id=session_id,
                tenant_id=tenant_id,
                employee_id=employee_id,
                channel=channel,
                metadata=ConversationMetadata(**(metadata or {})),
            )

        if conversation.tenant_id != tenant_id:
            raise ValidationFailure(f"Session {session_id} belongs to another tenant")
        if conversation.status == ConversationStatus.CLOSED:
            raise ValidationFailure(f"Conversation {session_id} is closed")
        return conversation

    # =========================================================================
    # Turn bookkeeping
    # =========================================================================

    def record_turn(
        self,
        conversation: Conversation,
        user_message: Message,
        assistant_message: Message,
        intent: DetectedIntent,
        latency_ms: float,
    ) -> None:
        """
        Append a processed turn and update context and analytics.

        The user message is appended before the assistant message. Slots
        collect entities for the open flow and are cleared once the turn
        dispatched an action.
        """
        conversation.append(user_message)
        conversation.append(assistant_message)

        context = conversation.context
        context.current_intent = intent.name
        context.last_topic = intent.domain
        if assistant_message.actions:
            context.slots.clear()
        else:
            slots = {k: v for k, v in user_message.entities.items() if v is not None}
            context.slots.update(slots)

        conversation.analytics.record_turn(latency_ms, intent.name)

    # =========================================================================
    # Lifecycle operations
    # =========================================================================

    async def escalate(
        self,
        session_id: str,
        reason: str,
        escalate_to: Optional[str] = None,
    ) -> Escalation:
        """
        Hand a conversation over to a human.

        Escalating an already escalated conversation returns the existing
        record unchanged.

        Raises:
            NotFound: If the session does not exist
            ValidationFailure: If the conversation is closed
        """
        async with self.serialized(session_id):
            conversation = await self.get(session_id)

            if conversation.status == ConversationStatus.ESCALATED:
                return conversation.escalation
            if not conversation.status.can_transition_to(ConversationStatus.ESCALATED):
                raise ValidationFailure(f"Conversation {session_id} is closed")

            routing = triage(reason)
            escalation = Escalation(
                reason=reason,
                escalated_to=escalate_to or routing.suggested_assignee or DEFAULT_ESCALATION_TARGET,
                priority=routing.priority,
            )
            conversation.transition_to(ConversationStatus.ESCALATED)
            conversation.escalation = escalation
            conversation.append(
                Message(
                    role=MessageRole.SYSTEM,
                    content=(
                        f"Conversation escalated to HR team. Reason: {reason}. "
                        "A human representative will respond shortly."
                    ),
                )
            )
            conversation.analytics.record_system_message()

            await self.save(conversation)
            logger.info(
                f"Escalated conversation {session_id} to {escalation.escalated_to} "
                f"(priority: {escalation.priority})"
            )
            return escalation

    async def end(self, session_id: str) -> Conversation:
        """
        Close a conversation.

        Ending a closed conversation is a no-op that keeps the first
        ``ended_at``, so the end timestamp records when the conversation
        actually closed rather than the latest repeated request.

        Raises:
            NotFound: If the session does not exist
        """
        async with self.serialized(session_id):
            conversation = await self.get(session_id)
            if conversation.status == ConversationStatus.CLOSED:
                return conversation

            conversation.transition_to(ConversationStatus.CLOSED)
            conversation.ended_at = utcnow()
            conversation.updated_at = conversation.ended_at
            await self.save(conversation)

            logger.info(f"Closed conversation {session_id}")
            return conversation

    async def submit_feedback(
        self,
        session_id: str,
        message_id: str,
        helpful: Optional[bool] = None,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Message:
        """
        Attach feedback to a message.

        A rating becomes the conversation's satisfaction score and
        ``helpful=True`` marks it resolved.

        Raises:
            NotFound: If the session or message does not exist
            ValidationFailure: If the rating is outside 1-5
        """
        if rating is not None and not 1 <= rating <= 5:
            raise ValidationFailure("Rating must be between 1 and 5")

        async with self.serialized(session_id):
            conversation = await self.get(session_id)
            index = conversation.find_message(message_id)
            if index is None:
                raise NotFound("Message", message_id)

            updated = conversation.messages[index].model_copy(
                update={"feedback": Feedback(helpful=helpful, rating=rating, comment=comment)}
            )
            conversation.messages[index] = updated

            if rating:
                conversation.analytics.satisfaction_score = rating
            if helpful:
                conversation.analytics.resolution_status = ResolutionStatus.RESOLVED

            await self.save(conversation)
            return updated

    # =========================================================================
    # History and analytics
    # =========================================================================

    async def list_conversations(
        self,
        tenant_id: str,
        employee_id: str,
        page: int = 1,
        limit: int = 20,
    ) -> ConversationPage:
        """Page through an employee's conversations, most recent first."""
        if page < 1 or limit < 1:
            raise ValidationFailure("page and limit must be positive")

        conversations, total = await self.repository.list_for_employee(
            tenant_id, employee_id, offset=(page - 1) * limit, limit=limit
        )
        return ConversationPage(
            items=[ConversationSummary.from_conversation(c) for c in conversations],
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit),
        )

    async def summarize_analytics(
        self,
        tenant_id: str,
        started_from: Optional[datetime] = None,
        started_to: Optional[datetime] = None,
    ) -> AnalyticsSummary:
        """Aggregate analytics across a tenant's conversations."""
        conversations = await self.repository.list_for_tenant(
            tenant_id, started_from, started_to
        )
        total = len(conversations)
        if total == 0:
            return AnalyticsSummary()

        ratings = [
            c.analytics.satisfaction_score
            for c in conversations
            if c.analytics.satisfaction_score is not None
        ]
        resolved = sum(
            1 for c in conversations
            if c.analytics.resolution_status == ResolutionStatus.RESOLVED
        )
        escalated = sum(1 for c in conversations if c.escalation is not None)
        intents = Counter(i for c in conversations for i in c.analytics.intents_detected)
        channels = Counter(c.channel.value for c in conversations)

        return AnalyticsSummary(
            total_conversations=total,
            total_messages=sum(c.analytics.message_count for c in conversations),
            avg_response_time=round(
                sum(c.analytics.avg_response_time for c in conversations) / total
            ),
            avg_satisfaction=round(sum(ratings) / len(ratings), 1) if ratings else None,
            resolution_rate=round(resolved / total * 100, 1),
            escalation_rate=round(escalated / total * 100, 1),
            top_intents=[
                IntentCount(intent=name, count=count)
                for name, count in intents.most_common(10)
            ],
            channel_distribution=[
                ChannelCount(channel=name, count=count)
                for name, count in channels.items()
            ],
        )
