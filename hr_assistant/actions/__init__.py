"""Actions against the leave, attendance, payroll and employee services."""

from .base import (
    ActionContext,
    ActionOutcome,
    ActionRegistry,
    ActionRequest,
    ActionResult,
    RegisteredAction,
)
from .client import HRServicesClient
from .dispatcher import ACTIONABLE_INTENTS, HRActionDispatcher, is_actionable

__all__ = [
    "ACTIONABLE_INTENTS",
    "ActionContext",
    "ActionOutcome",
    "ActionRegistry",
    "ActionRequest",
    "ActionResult",
    "HRActionDispatcher",
    "HRServicesClient",
    "RegisteredAction",
    "is_actionable",
]
