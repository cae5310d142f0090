"""
Pytest configuration and shared fixtures.

Provides settings, fake HR services, in-memory stores and a wired agent.
"""

from datetime import datetime
from typing import Callable

import httpx
import pytest

from hr_assistant.actions import HRActionDispatcher, HRServicesClient
from hr_assistant.agents import HRAssistantAgent
from hr_assistant.config import Settings
from hr_assistant.conversations import ConversationStateManager, InMemoryRepository
from hr_assistant.intents import InMemoryIntentStore, IntentDefinition
from hr_assistant.knowledge import InMemoryKnowledgeStore, KnowledgeArticle

TENANT = "acme"
EMPLOYEE = "EMP001"

# A Monday
NOW = datetime(2026, 10, 19, 9, 30)


# ===========================
# Settings Fixtures
# ===========================

@pytest.fixture
def settings() -> Settings:
    """Settings with every optional backend switched off."""
    return Settings(
        _env_file=None,
        openai_api_key=None,
        azure_search_endpoint=None,
        azure_search_api_key=None,
        action_timeout_seconds=0.5,
        environment="development",
    )


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: NOW


# ===========================
# HR Service Fakes
# ===========================

def unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def down_transport() -> httpx.MockTransport:
    """Every HR service refuses connections."""
    return httpx.MockTransport(unreachable)


def make_dispatcher(settings, transport, clock) -> HRActionDispatcher:
    client = HRServicesClient(settings, transport=transport)
    return HRActionDispatcher(client=client, settings=settings, clock=clock)


@pytest.fixture
def down_dispatcher(settings, down_transport, clock) -> HRActionDispatcher:
    return make_dispatcher(settings, down_transport, clock)


# ===========================
# Store Fixtures
# ===========================

@pytest.fixture
def knowledge_store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore([
        KnowledgeArticle(
            id="kb-remote",
            tenant_id=TENANT,
            category="policy",
            title="Remote work policy",
            content="Employees may work remotely two days a week.",
            keywords=["remote", "wfh"],
            variations=["work from home"],
            intent="policy.general",
            status="published",
        ),
        KnowledgeArticle(
            id="kb-draft",
            tenant_id=TENANT,
            title="Sabbatical rules",
            content="Draft sabbatical guidance.",
            keywords=["sabbatical"],
            intent="policy.sabbatical",
            status="draft",
        ),
    ])


@pytest.fixture
def intent_store() -> InMemoryIntentStore:
    return InMemoryIntentStore([
        IntentDefinition(
            tenant_id=TENANT,
            name="payroll.payslip",
            training_phrases=["show my payslip", "download my payslip"],
        ),
        IntentDefinition(
            tenant_id=TENANT,
            name="benefits.gym",
            training_phrases=["gym membership reimbursement"],
            is_active=False,
        ),
        IntentDefinition(
            tenant_id="globex",
            name="globex.only",
            training_phrases=["show my payslip"],
        ),
    ])


@pytest.fixture
def state() -> ConversationStateManager:
    return ConversationStateManager(InMemoryRepository())


# ===========================
# Agent Fixtures
# ===========================

@pytest.fixture
def agent(settings, down_dispatcher, knowledge_store, intent_store, clock) -> HRAssistantAgent:
    """Agent whose HR services are all unreachable."""
    return HRAssistantAgent(
        settings=settings,
        knowledge_store=knowledge_store,
        intent_store=intent_store,
        dispatcher=down_dispatcher,
        clock=clock,
    )
