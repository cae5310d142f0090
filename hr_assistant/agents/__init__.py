"""Dialogue agent for the HR assistant."""

from .hr_agent import HRAssistantAgent, TurnContext, TurnReply, TurnRequest, TurnResponse
from .recognizer import Analysis, ContextResolver, IntentRecognizer, fuse, fuse_all
from .responders import (
    FallbackResponder,
    GenerativeResponder,
    Reply,
    RuleBasedResponder,
    SuggestedAction,
    TemplateResponder,
)

__all__ = [
    "Analysis",
    "ContextResolver",
    "FallbackResponder",
    "GenerativeResponder",
    "HRAssistantAgent",
    "IntentRecognizer",
    "Reply",
    "RuleBasedResponder",
    "SuggestedAction",
    "TemplateResponder",
    "TurnContext",
    "TurnReply",
    "TurnRequest",
    "TurnResponse",
    "fuse",
    "fuse_all",
]
