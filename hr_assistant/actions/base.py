"""
Action registry with degrade-on-failure dispatch.

Every action pairs a live handler, which calls a collaborator service,
with a synthetic handler that produces a deterministic stand-in when the
live call fails or times out. Results are tagged so callers can tell the
two apart.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class ActionOutcome(Enum):
    """Where an action result came from."""
    LIVE = "live"
    SYNTHETIC = "synthetic"
    UNSUPPORTED = "unsupported"


@dataclass
class ActionResult:
    """Result from an action dispatch."""
    
    outcome: ActionOutcome
    message: str
    data: Any = None
    error: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    
    @property
    def is_success(self) -> bool:
        """Live and synthetic results both count as executed."""
        return self.outcome != ActionOutcome.UNSUPPORTED
    
    @property
    def is_synthetic(self) -> bool:
        """Whether this result masks a failed live call."""
        return self.outcome == ActionOutcome.SYNTHETIC
    
    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "outcome": self.outcome.value,
            "message": self.message,
            "data": self.data,
            "error": self.error,
            "metadata": self.metadata,
        }
    
    @classmethod
    def live(cls, data: Any, message: str, **metadata) -> "ActionResult":
        """Create a result backed by a live collaborator response."""
        return cls(
            outcome=ActionOutcome.LIVE,
            data=data,
            message=message,
            metadata=metadata,
        )
    
    @classmethod
    def synthetic(cls, data: Any, message: str, error: Optional[str] = None, **metadata) -> "ActionResult":
        """Create a stand-in result for a failed live call."""
        return cls(
            outcome=ActionOutcome.SYNTHETIC,
            data=data,
            message=message,
            error=error,
            metadata=metadata,
        )
    
    @classmethod
    def unsupported(cls, action_type: str) -> "ActionResult":
        """Create a result for an action nobody registered."""
        return cls(
            outcome=ActionOutcome.UNSUPPORTED,
            message="Unknown action type",
            error=f"Action type '{action_type}' is not supported",
        )


@dataclass
class ActionContext:
    """Who an action runs for."""
    
    tenant_id: str
    employee_id: str
    token: Optional[str] = None
    
    @property
    def headers(self) -> dict[str, str]:
        """Authorization headers to forward to collaborators."""
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}


@dataclass
class ActionRequest:
    """Input an action derives its parameters from."""
    
    intent: str
    entities: dict[str, Any] = field(default_factory=dict)
    utterance: str = ""


LiveHandler = Callable[[ActionRequest, ActionContext], Awaitable[ActionResult]]
SyntheticHandler = Callable[[ActionRequest, ActionContext], ActionResult]


@dataclass
class RegisteredAction:
    """An action with its live and synthetic handlers."""
    
    name: str
    description: str
    live: LiveHandler
    synthetic: SyntheticHandler


class ActionRegistry(ABC):
    """
    Base class for action dispatchers.
    
    Subclasses implement ``_register_actions`` and call
    ``register_action`` once per supported intent.
    """
    
    def __init__(self, timeout: float = 5.0):
        """
        Initialize the registry.
        
        Args:
            timeout: Upper bound in seconds for one live call
        """
        self.timeout = timeout
        self.actions: dict[str, RegisteredAction] = {}
        self._register_actions()
    
    @abstractmethod
    def _register_actions(self) -> None:
        """Register the actions this dispatcher supports."""
        pass
    
    def register_action(
        self,
        name: str,
        description: str,
        live: LiveHandler,
        synthetic: SyntheticHandler,
    ) -> None:
        """
        Register an action.
        
        Args:
            name: Intent name the action serves
            description: Human-readable description
            live: Async handler calling the collaborator
            synthetic: Handler building the stand-in result
        """
        self.actions[name] = RegisteredAction(
            name=name,
            description=description,
            live=live,
            synthetic=synthetic,
        )
        logger.debug(f"Registered action: {name}")
    
    def get_action(self, name: str) -> Optional[RegisteredAction]:
        """Get an action by intent name."""
        return self.actions.get(name)
    
    def list_actions(self) -> list[str]:
        """Names of all registered actions."""
        return list(self.actions)
    
    async def dispatch(self, request: ActionRequest, context: ActionContext) -> ActionResult:
        """
        Run the action for an intent.
        
        The live call is bounded by ``timeout`` and never retried. Any
        failure is replaced by the action's synthetic result.
        
        Args:
            request: Intent, entities and utterance
            context: Tenant and employee scope
            
        Returns:
            ActionResult tagged live, synthetic or unsupported
        """
        action = self.get_action(request.intent)
        if not action:
            logger.error(f"No action registered for intent: {request.intent}")
            return ActionResult.unsupported(request.intent)
        
        try:
            logger.debug(f"Executing action: {action.name}")
            return await asyncio.wait_for(
                action.live(request, context), timeout=self.timeout
            )
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning(
                f"Action {action.name} failed for tenant {context.tenant_id}, "
                f"serving synthetic result: {reason}"
            )
            result = action.synthetic(request, context)
            result.error = reason
            return result
