"""
Script to chat with the HR assistant from a terminal.

Runs the dialogue engine against in-memory stores seeded with a few
sample knowledge articles and tenant intents. HR services are called at
the configured URLs; when they are not running, synthetic results are
served instead.

Usage:
    python scripts/chat_console.py [tenant_id] [employee_id]

Commands:
    /escalate <reason>   Hand the conversation to the HR team
    /end                 Close the conversation and exit
    /stats               Show tenant analytics
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hr_assistant.agents import HRAssistantAgent, TurnRequest
from hr_assistant.config import get_settings
from hr_assistant.errors import AssistantError
from hr_assistant.intents import InMemoryIntentStore, IntentDefinition
from hr_assistant.knowledge import InMemoryKnowledgeStore, KnowledgeArticle

logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_sample_stores(tenant_id: str) -> tuple[InMemoryKnowledgeStore, InMemoryIntentStore]:
    """Knowledge and intent stores with demo content for one tenant."""
    knowledge = InMemoryKnowledgeStore([
        KnowledgeArticle(
            id="kb-remote-work",
            tenant_id=tenant_id,
            category="policy",
            title="Remote work policy",
            content="Employees may work remotely up to two days a week with manager approval.",
            keywords=["remote", "wfh", "home"],
            variations=["work from home", "working remotely"],
            intent="policy.general",
            status="published",
        ),
        KnowledgeArticle(
            id="kb-health-plan",
            tenant_id=tenant_id,
            category="benefits",
            title="Health insurance enrollment",
            content="Enroll in the health plan within 30 days of joining.",
            keywords=["medical", "dental", "enrollment"],
            intent="benefits.info",
            status="published",
        ),
    ])
    intents = InMemoryIntentStore([
        IntentDefinition(
            tenant_id=tenant_id,
            name="payroll.payslip",
            display_name="Payslip",
            category="payroll",
            training_phrases=[
                "show my payslip",
                "download my payslip",
                "payslip for last month",
            ],
            priority=1,
        ),
        IntentDefinition(
            tenant_id=tenant_id,
            name="employee.search",
            display_name="Employee search",
            category="employee",
            training_phrases=["look up a colleague", "search employee directory"],
        ),
    ])
    return knowledge, intents


async def main():
    """Main chat loop."""
    tenant_id = sys.argv[1] if len(sys.argv) > 1 else "demo-tenant"
    employee_id = sys.argv[2] if len(sys.argv) > 2 else "EMP001"
    
    settings = get_settings()
    logging.getLogger("hr_assistant").setLevel(settings.log_level)
    
    knowledge, intents = build_sample_stores(tenant_id)
    agent = HRAssistantAgent(
        settings=settings,
        knowledge_store=knowledge,
        intent_store=intents,
    )
    session_id = None
    
    print("=" * 50)
    print(f"HR Assistant ({tenant_id} / {employee_id}). Type /end to quit.")
    print("=" * 50)
    
    try:
        while True:
            try:
                line = input("\nyou> ").strip()
            except EOFError:
                break
            if not line:
                continue
            
            try:
                if line == "/end":
                    if session_id:
                        await agent.end(session_id)
                    break
                
                if line == "/stats":
                    summary = await agent.summarize_analytics(tenant_id)
                    print(summary.model_dump_json(indent=2))
                    continue
                
                if line.startswith("/escalate"):
                    if not session_id:
                        print("Nothing to escalate yet.")
                        continue
                    reason = line[len("/escalate"):].strip() or "Requested from console"
                    escalation = await agent.escalate(session_id, reason)
                    print(f"Escalated to {escalation.escalated_to} (priority: {escalation.priority})")
                    continue
                
                turn = await agent.chat(
                    TurnRequest(
                        tenant_id=tenant_id,
                        session_id=session_id,
                        employee_id=employee_id,
                        message=line,
                    )
                )
            except AssistantError as e:
                print(f"[error] {e}")
                continue
            
            session_id = turn.session_id
            reply = turn.response
            print(f"\nassistant> {reply.text}")
            print(f"  [{reply.intent} {reply.confidence:.2f} | {reply.sentiment}"
                  f"{' | action' if reply.action_executed else ''}]")
            for action in reply.suggested_actions:
                print(f"  -> {action.label}")
    
    except Exception as e:
        logger.error(f"Console failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await agent.close()


if __name__ == "__main__":
    asyncio.run(main())
