"""
Conversation repositories.

Persistence is owned by the platform's document store; the dialogue
engine talks to it through this interface.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .models import Conversation

logger = logging.getLogger(__name__)


class ConversationRepository(ABC):
    """Abstract base class for conversation persistence."""

    @abstractmethod
    async def get(self, session_id: str) -> Optional[Conversation]:
        """Retrieve a conversation by session id."""
        pass

    @abstractmethod
    async def save(self, conversation: Conversation) -> None:
        """Insert or replace a conversation."""
        pass

    @abstractmethod
    async def list_for_employee(
        self,
        tenant_id: str,
        employee_id: str,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Conversation], int]:
        """Conversations of one employee, most recently updated first, plus the total."""
        pass

    @abstractmethod
    async def list_for_tenant(
        self,
        tenant_id: str,
        started_from: Optional[datetime] = None,
        started_to: Optional[datetime] = None,
    ) -> list[Conversation]:
        """All tenant conversations started within the optional window."""
        pass


class InMemoryRepository(ConversationRepository):
    """
    Conversation repository kept in process memory.

    Stored documents are copied on the way in and out, so callers never
    share mutable state with the store.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._lock = asyncio.Lock()

    async def get(self, session_id: str) -> Optional[Conversation]:
        async with self._lock:
            conversation = self._conversations.get(session_id)
            if conversation is None:
                return None
            return conversation.model_copy(deep=True)

    async def save(self, conversation: Conversation) -> None:
        async with self._lock:
            self._conversations[conversation.session_id] = conversation.model_copy(deep=True)
        logger.debug(
            f"Saved conversation {conversation.session_id} "
            f"({len(conversation.messages)} messages)"
        )

    async def list_for_employee(
        self,
        tenant_id: str,
        employee_id: str,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Conversation], int]:
        async with self._lock:
            matching = sorted(
                (
                    c for c in self._conversations.values()
                    if c.tenant_id == tenant_id and c.employee_id == employee_id
                ),
                key=lambda c: c.updated_at,
                reverse=True,
            )
            page = [c.model_copy(deep=True) for c in matching[offset : offset + limit]]
            return page, len(matching)

    async def list_for_tenant(
        self,
        tenant_id: str,
        started_from: Optional[datetime] = None,
        started_to: Optional[datetime] = None,
    ) -> list[Conversation]:
        async with self._lock:
            return [
                c.model_copy(deep=True)
                for c in self._conversations.values()
                if c.tenant_id == tenant_id
                and (started_from is None or c.started_at >= started_from)
                and (started_to is None or c.started_at <= started_to)
            ]
