"""
Pydantic models for conversation state.

A Conversation is the unit of persistence: its messages are append-only
and its status only moves forward (active -> escalated -> closed).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """Author of a message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationStatus(str, Enum):
    """Lifecycle state of a conversation."""
    ACTIVE = "active"
    ESCALATED = "escalated"
    CLOSED = "closed"

    def can_transition_to(self, target: "ConversationStatus") -> bool:
        """Whether moving from this status to ``target`` is allowed."""
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[ConversationStatus, frozenset] = {
    ConversationStatus.ACTIVE: frozenset({ConversationStatus.ESCALATED, ConversationStatus.CLOSED}),
    ConversationStatus.ESCALATED: frozenset({ConversationStatus.CLOSED}),
    ConversationStatus.CLOSED: frozenset(),
}


class Channel(str, Enum):
    """Client channel a conversation was started from."""
    WEB = "web"
    MOBILE = "mobile"
    SLACK = "slack"
    TEAMS = "teams"
    API = "api"


class ResolutionStatus(str, Enum):
    """Whether the user's need was met."""
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    PARTIAL = "partial"


class ExecutedAction(BaseModel):
    """A downstream action run for an assistant message."""

    model_config = ConfigDict(frozen=True)

    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    executed: bool
    outcome: str  # "live" or "synthetic"
    result: Any = None


class Feedback(BaseModel):
    """User feedback on a single message."""

    model_config = ConfigDict(frozen=True)

    helpful: Optional[bool] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None


class Message(BaseModel):
    """
    One message in a conversation.

    Messages are frozen; attaching feedback replaces the message in place
    with an updated copy so ordering is never disturbed.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: MessageRole
    content: str
    intent: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    entities: dict[str, Any] = Field(default_factory=dict)
    actions: list[ExecutedAction] = Field(default_factory=list)
    feedback: Optional[Feedback] = None
    response_time_ms: Optional[float] = None
    timestamp: datetime = Field(default_factory=utcnow)


class ConversationContext(BaseModel):
    """Dialogue context carried between turns."""

    current_intent: Optional[str] = None
    slots: dict[str, Any] = Field(default_factory=dict)
    last_topic: Optional[str] = None
    employee_data: dict[str, Any] = Field(default_factory=dict)


class ConversationMetadata(BaseModel):
    """Client metadata supplied when the session started."""

    model_config = ConfigDict(extra="allow")

    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    language: Optional[str] = None
    timezone: Optional[str] = None


class Escalation(BaseModel):
    """Hand-off of a conversation to a human."""

    reason: str
    escalated_to: str
    escalated_at: datetime = Field(default_factory=utcnow)
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    priority: str = "normal"


class Analytics(BaseModel):
    """Rolling per-conversation analytics."""

    message_count: int = 0
    turn_count: int = 0
    avg_response_time: float = 0.0
    satisfaction_score: Optional[float] = None
    intents_detected: list[str] = Field(default_factory=list)
    resolution_status: ResolutionStatus = ResolutionStatus.UNRESOLVED

    def record_turn(self, latency_ms: float, intent: str) -> None:
        """Account for one user + assistant message pair."""
        self.message_count += 2
        self.turn_count += 1
        self.avg_response_time = (
            self.avg_response_time * (self.turn_count - 1) + latency_ms
        ) / self.turn_count
        if intent not in self.intents_detected:
            self.intents_detected.append(intent)

    def record_system_message(self) -> None:
        """Account for an injected system message."""
        self.message_count += 1


class Conversation(BaseModel):
    """A chat session between one employee and the assistant."""

    session_id: str
    tenant_id: str
    employee_id: Optional[str] = None
    channel: Channel = Channel.WEB
    status: ConversationStatus = ConversationStatus.ACTIVE
    messages: list[Message] = Field(default_factory=list)
    context: ConversationContext = Field(default_factory=ConversationContext)
    metadata: ConversationMetadata = Field(default_factory=ConversationMetadata)
    escalation: Optional[Escalation] = None
    analytics: Analytics = Field(default_factory=Analytics)
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=utcnow)

    def append(self, message: Message) -> None:
        """
        Append a message, keeping timestamps non-decreasing.

        Raises:
            ValueError: If the message is older than the last one
        """
        if self.messages and message.timestamp < self.messages[-1].timestamp:
            raise ValueError("Messages must be appended in chronological order")
        self.messages.append(message)
        self.updated_at = message.timestamp

    def transition_to(self, target: ConversationStatus) -> None:
        """
        Move to a new status.

        Raises:
            ValueError: If the transition is not allowed
        """
        if not self.status.can_transition_to(target):
            raise ValueError(
                f"Cannot move conversation from {self.status.value} to {target.value}"
            )
        self.status = target

    def find_message(self, message_id: str) -> Optional[int]:
        """Index of a message by id."""
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        return None

    def history(self, limit: int) -> list[Message]:
        """The most recent user and assistant messages."""
        dialogue = [m for m in self.messages if m.role != MessageRole.SYSTEM]
        return dialogue[-limit:] if len(dialogue) > limit else dialogue


class ConversationSummary(BaseModel):
    """Listing view of a conversation."""

    session_id: str
    status: ConversationStatus
    started_at: datetime
    ended_at: Optional[datetime] = None
    message_count: int
    resolution_status: ResolutionStatus

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationSummary":
        return cls(
            session_id=conversation.session_id,
            status=conversation.status,
            started_at=conversation.started_at,
            ended_at=conversation.ended_at,
            message_count=conversation.analytics.message_count,
            resolution_status=conversation.analytics.resolution_status,
        )


class ConversationPage(BaseModel):
    """A page of conversation summaries."""

    items: list[ConversationSummary]
    page: int
    limit: int
    total: int
    pages: int


class IntentCount(BaseModel):
    intent: str
    count: int


class ChannelCount(BaseModel):
    channel: str
    count: int


class AnalyticsSummary(BaseModel):
    """Tenant-wide assistant analytics."""

    total_conversations: int = 0
    total_messages: int = 0
    avg_response_time: float = 0.0
    avg_satisfaction: Optional[float] = None
    resolution_rate: float = 0.0
    escalation_rate: float = 0.0
    top_intents: list[IntentCount] = Field(default_factory=list)
    channel_distribution: list[ChannelCount] = Field(default_factory=list)
