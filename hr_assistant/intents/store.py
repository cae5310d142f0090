"""
Intent definition store.

Intent definitions are administered elsewhere; the dialogue engine only
reads the active ones for a tenant.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, Field


class EntitySlot(BaseModel):
    """A slot an intent expects to be filled."""

    name: str
    type: str = "text"
    required: bool = False
    prompts: list[str] = Field(default_factory=list)


class IntentDefinition(BaseModel):
    """A tenant-configured intent with its training phrases."""

    tenant_id: str
    name: str
    display_name: str = ""
    category: str = "general"
    training_phrases: list[str] = Field(default_factory=list)
    entities: list[EntitySlot] = Field(default_factory=list)
    responses: list[str] = Field(default_factory=list)
    priority: int = 0
    is_active: bool = True


class IntentStore(ABC):
    """Read-only access to tenant intent definitions."""

    @abstractmethod
    async def list_active(self, tenant_id: str) -> list[IntentDefinition]:
        """Return the tenant's active intents."""
        pass


class InMemoryIntentStore(IntentStore):
    """Intent store kept in memory, for development and tests."""

    def __init__(self, intents: Optional[list[IntentDefinition]] = None):
        self._intents: list[IntentDefinition] = list(intents or [])

    def add(self, intent: IntentDefinition) -> None:
        """Register an intent definition."""
        self._intents.append(intent)

    async def list_active(self, tenant_id: str) -> list[IntentDefinition]:
        """Active intents for the tenant, highest priority first."""
        active = [
            i for i in self._intents if i.tenant_id == tenant_id and i.is_active
        ]
        return sorted(active, key=lambda i: (-i.priority, i.name))
