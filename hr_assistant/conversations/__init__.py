"""Conversation state, persistence and analytics."""

from .manager import ConversationStateManager
from .models import (
    Analytics,
    AnalyticsSummary,
    Channel,
    Conversation,
    ConversationContext,
    ConversationPage,
    ConversationStatus,
    Escalation,
    ExecutedAction,
    Feedback,
    Message,
    MessageRole,
    ResolutionStatus,
)
from .repository import ConversationRepository, InMemoryRepository

__all__ = [
    "Analytics",
    "AnalyticsSummary",
    "Channel",
    "Conversation",
    "ConversationContext",
    "ConversationPage",
    "ConversationRepository",
    "ConversationStateManager",
    "ConversationStatus",
    "Escalation",
    "ExecutedAction",
    "Feedback",
    "InMemoryRepository",
    "Message",
    "MessageRole",
    "ResolutionStatus",
]
