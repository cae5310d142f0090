"""
Response strategies below the action band.

The template responder answers confidently recognized intents with
canned text. Everything else goes to the fallback chain: the generative
backend when configured, then ordered rule groups, then a clarifying
prompt with quick replies.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from hr_assistant.config import Settings, get_settings
from hr_assistant.conversations import ConversationContext, Message, MessageRole
from hr_assistant.errors import CollaboratorUnavailable

from .prompts import EMPLOYEE_CONTEXT_PROMPT, HR_ASSISTANT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)

GENERATIVE_CONFIDENCE = 0.9
RULE_CONFIDENCE = 0.75
CLARIFY_CONFIDENCE = 0.3


class SuggestedAction(BaseModel):
    """A follow-up the client can offer as a button."""
    
    type: str
    label: str
    data: dict[str, Any] = Field(default_factory=dict)


@dataclass
class Reply:
    """Text produced by a responder."""
    
    text: str
    suggested_actions: list[SuggestedAction] = field(default_factory=list)
    confidence: float = CLARIFY_CONFIDENCE
    source: str = "clarify"


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


# =============================================================================
# Templates
# =============================================================================

UNKNOWN_TEMPLATE = (
    "I'm not sure I understand. Could you please rephrase your question? "
    "You can ask me about leaves, attendance, payroll, or company policies."
)

TEMPLATES: dict[str, str] = {
    "greeting": (
        "Hello! I'm your HR Assistant. I can help you with leave requests, "
        "attendance, payroll queries, company policies, and more. "
        "How can I assist you today?"
    ),
    "farewell": "Goodbye! Feel free to reach out anytime you need help. Have a great day!",
    "help.general": (
        "I can help you with:\n"
        "• Leave management (check balance, apply for leave)\n"
        "• Attendance (check-in/out, view records)\n"
        "• Payroll queries (salary, tax details)\n"
        "• Company policies and benefits\n"
        "• Employee directory\n\n"
        "Just ask me anything!"
    ),
    "leave.check_balance": (
        "Let me check your leave balance. I'll fetch the details from the "
        "leave management system."
    ),
    "leave.status": "I'll check the status of your recent leave requests.",
    "attendance.check_in": "I'll mark your attendance check-in for today.",
    "attendance.check_out": "I'll mark your attendance check-out. Have a great evening!",
    "attendance.status": "Let me fetch your attendance records.",
    "payroll.salary": "I'll retrieve your salary details and payslip information.",
    "payroll.payslip": "I'll pull up your payslip.",
    "payroll.tax": "Let me get your tax deduction details.",
    "employee.profile": "I'll show you your profile information.",
    "employee.directory": (
        "I can help you find employee contact information. Who are you looking for?"
    ),
    "employee.search": "Who would you like me to look up in the employee directory?",
    "policy.general": (
        "I can provide information about company policies. "
        "Which policy would you like to know about?"
    ),
    "benefits.info": "Let me share information about employee benefits and perks.",
}


class TemplateResponder:
    """Canned responses keyed by intent name."""
    
    def __init__(self, templates: Optional[dict[str, str]] = None):
        self.templates = templates if templates is not None else TEMPLATES
    
    def render(
        self,
        intent: str,
        entities: dict[str, Any],
        context: Optional[ConversationContext] = None,
    ) -> str:
        """
        Render the response for an intent.
        
        Args:
            intent: Fused intent name
            entities: Entities extracted from this turn
            context: Conversation context (slots from earlier turns)
            
        Returns:
            Response text; unknown intents get a rephrase prompt
        """
        if intent == "leave.apply":
            return self._leave_apply(entities)
        if intent == "leave.confirm":
            return self._leave_confirm(entities, context)
        return self.templates.get(intent, UNKNOWN_TEMPLATE)
    
    def _leave_apply(self, entities: dict[str, Any]) -> str:
        leave_type = _first(entities.get("leave_type"))
        mentioned = _first(entities.get("date"))
        return (
            "I can help you apply for leave"
            f"{f' ({leave_type})' if leave_type else ''}"
            f"{f' starting {mentioned}' if mentioned else ''}. "
            "Please provide the leave type, start date, and end date."
        )
    
    def _leave_confirm(self, entities: dict[str, Any], context: Optional[ConversationContext]) -> str:
        slots = dict(context.slots) if context else {}
        slots.update({k: v for k, v in entities.items() if v is not None})
        
        leave_type = _first(slots.get("leave_type")) or "annual"
        start = slots.get("parsed_date")
        details = f"**Leave Type**: {leave_type}"
        if start:
            details += f"\n**From**: {start}"
        
        return (
            "Thanks for confirming! ✅\n\n"
            f"{details}\n\n"
            "I'll pass this on for submission and your manager will be notified for approval."
        )


# =============================================================================
# Rule-based fallback
# =============================================================================

@dataclass(frozen=True)
class RuleGroup:
    """Patterns sharing one canned answer."""
    
    patterns: tuple[re.Pattern, ...]
    text: str
    actions: tuple[SuggestedAction, ...] = ()


def _group(patterns: Sequence[str], text: str, actions: Sequence[SuggestedAction] = ()) -> RuleGroup:
    return RuleGroup(
        patterns=tuple(re.compile(p, re.IGNORECASE) for p in patterns),
        text=text,
        actions=tuple(actions),
    )


RULE_GROUPS: tuple[RuleGroup, ...] = (
    _group(
        [r"leave.*balance", r"how many.*leave", r"remaining.*leave"],
        "To check your leave balance, I can fetch it from the leave management "
        "system. Your current balance shows:\n\n"
        "• Annual Leave: Available\n"
        "• Sick Leave: Available\n"
        "• Casual Leave: Available\n\n"
        "Would you like to apply for leave or see detailed balance?",
        [
            SuggestedAction(type="api_call", label="View Leave Balance", data={"endpoint": "/leaves/balance"}),
            SuggestedAction(type="navigate", label="Apply for Leave", data={"route": "/leave/apply"}),
        ],
    ),
    _group(
        [r"apply.*leave", r"request.*leave", r"take.*leave"],
        "I can help you apply for leave. Please provide:\n\n"
        "1. Type of leave (Annual, Sick, Casual, etc.)\n"
        "2. Start date\n"
        "3. End date\n"
        "4. Reason (optional)\n\n"
        "Or you can use the quick leave application form.",
        [
            SuggestedAction(type="form", label="Quick Leave Form", data={"formType": "leave_application"}),
        ],
    ),
    _group(
        [r"salary|payslip|pay.*slip"],
        "I can help you access your salary information:\n\n"
        "• View latest payslip\n"
        "• Download salary statement\n"
        "• Check tax deductions\n"
        "• View salary history\n\n"
        "What would you like to see?",
        [
            SuggestedAction(type="api_call", label="View Payslip", data={"endpoint": "/payroll/payslip"}),
            SuggestedAction(type="navigate", label="Salary History", data={"route": "/payroll/history"}),
        ],
    ),
    _group(
        [r"check.?in|clock.?in|punch.?in"],
        "I'll mark your attendance check-in. Would you like me to proceed with "
        "recording your check-in time now?",
        [
            SuggestedAction(
                type="api_call",
                label="Confirm Check-In",
                data={"endpoint": "/attendance/check-in", "method": "POST"},
            ),
        ],
    ),
    _group(
        [r"check.?out|clock.?out|punch.?out"],
        "I'll mark your attendance check-out. Would you like me to proceed with "
        "recording your check-out time now?",
        [
            SuggestedAction(
                type="api_call",
                label="Confirm Check-Out",
                data={"endpoint": "/attendance/check-out", "method": "POST"},
            ),
        ],
    ),
    _group(
        [r"policy|policies|guideline"],
        "I can provide information about various company policies:\n\n"
        "• Leave Policy\n"
        "• Attendance Policy\n"
        "• Code of Conduct\n"
        "• Remote Work Policy\n"
        "• Expense Policy\n"
        "• IT Security Policy\n\n"
        "Which policy would you like to learn about?",
    ),
    _group(
        [r"benefit|insurance|perk"],
        "Here are the employee benefits available:\n\n"
        "• Health Insurance\n"
        "• Life Insurance\n"
        "• Retirement Plans\n"
        "• Wellness Programs\n"
        "• Learning & Development\n"
        "• Employee Discounts\n\n"
        "Would you like details on any specific benefit?",
    ),
    _group(
        [r"holiday|public.*holiday|company.*holiday"],
        "I can show you the list of upcoming holidays. Would you like to see:\n\n"
        "• This month's holidays\n"
        "• All holidays for the year\n"
        "• Regional holidays\n\n"
        "Please let me know your preference.",
    ),
    _group(
        [r"help|what can you do|assist"],
        "I'm your HR Assistant! I can help you with:\n\n"
        "📋 **Leave Management**\n"
        "• Check leave balance\n"
        "• Apply for leave\n"
        "• Track leave status\n\n"
        "⏰ **Attendance**\n"
        "• Check-in/Check-out\n"
        "• View attendance records\n\n"
        "💰 **Payroll**\n"
        "• View payslips\n"
        "• Tax information\n\n"
        "📖 **Policies & Benefits**\n"
        "• Company policies\n"
        "• Employee benefits\n\n"
        "Just ask me anything!",
    ),
    _group(
        [r"\b(hi|hello|hey|good morning|good afternoon)\b"],
        "Hello! 👋 I'm your HR Assistant. How can I help you today?\n\n"
        "You can ask me about:\n"
        "• Leave balance & applications\n"
        "• Attendance\n"
        "• Payroll & salary\n"
        "• Company policies\n"
        "• Employee benefits",
    ),
)

CLARIFYING_TEXT = (
    "I'm not sure I understand your request. I can help you with:\n\n"
    "• Leave management\n"
    "• Attendance tracking\n"
    "• Payroll queries\n"
    "• Company policies\n"
    "• Employee benefits\n\n"
    "Could you please rephrase your question or select one of these topics?"
)

QUICK_REPLIES: tuple[SuggestedAction, ...] = (
    SuggestedAction(type="quick_reply", label="Check Leave Balance", data={"message": "Check my leave balance"}),
    SuggestedAction(type="quick_reply", label="View Attendance", data={"message": "Show my attendance"}),
    SuggestedAction(type="quick_reply", label="View Payslip", data={"message": "Show my payslip"}),
    SuggestedAction(type="quick_reply", label="Talk to HR", data={"message": "Connect me to HR"}),
)


class RuleBasedResponder:
    """First matching rule group wins; otherwise ask the user to rephrase."""
    
    def __init__(self, groups: Sequence[RuleGroup] = RULE_GROUPS):
        self.groups = tuple(groups)
    
    def respond(self, message: str) -> Reply:
        lowered = message.lower()
        for group in self.groups:
            if any(pattern.search(lowered) for pattern in group.patterns):
                return Reply(
                    text=group.text,
                    suggested_actions=[a.model_copy() for a in group.actions],
                    confidence=RULE_CONFIDENCE,
                    source="rules",
                )
        
        return Reply(
            text=CLARIFYING_TEXT,
            suggested_actions=[a.model_copy() for a in QUICK_REPLIES],
            confidence=CLARIFY_CONFIDENCE,
            source="clarify",
        )


# =============================================================================
# Generative backend
# =============================================================================

def suggest_from_content(content: str) -> list[SuggestedAction]:
    """Navigation shortcuts for topics the generated answer mentions."""
    lowered = content.lower()
    actions = []
    if "leave" in lowered:
        actions.append(SuggestedAction(type="navigate", label="Go to Leaves", data={"route": "/leaves"}))
    if "payslip" in lowered or "salary" in lowered:
        actions.append(SuggestedAction(type="navigate", label="View Payslip", data={"route": "/payroll"}))
    if "attendance" in lowered:
        actions.append(SuggestedAction(type="navigate", label="View Attendance", data={"route": "/attendance"}))
    return actions


class GenerativeResponder:
    """
    Chat model fallback.
    
    Sends the system prompt, optional employee context, recent history
    and the current message to the chat model.
    """
    
    def __init__(self, settings: Optional[Settings] = None, llm: Optional[Any] = None):
        """
        Initialize the generative responder.
        
        Args:
            settings: Application settings
            llm: Chat model; built from settings when omitted
        """
        self.settings = settings or get_settings()
        self.llm = llm or ChatOpenAI(
            api_key=self.settings.openai_api_key.get_secret_value(),
            model=self.settings.openai_model,
            temperature=self.settings.openai_temperature,
            max_tokens=self.settings.openai_max_tokens,
        )
    
    def build_messages(
        self,
        message: str,
        history: Sequence[Message],
        employee: Optional[dict[str, Any]] = None,
    ) -> list:
        """Assemble the chat model input."""
        messages: list = [SystemMessage(content=HR_ASSISTANT_SYSTEM_PROMPT)]
        
        if employee:
            messages.append(
                SystemMessage(
                    content=EMPLOYEE_CONTEXT_PROMPT.format(
                        employee_id=employee.get("id", "Unknown"),
                        department=employee.get("department", "Unknown"),
                        role=employee.get("role", "Unknown"),
                    )
                )
            )
        
        for past in history[-self.settings.history_limit:]:
            if past.role == MessageRole.USER:
                messages.append(HumanMessage(content=past.content))
            elif past.role == MessageRole.ASSISTANT:
                messages.append(AIMessage(content=past.content))
        
        messages.append(HumanMessage(content=message))
        return messages
    
    async def respond(
        self,
        message: str,
        history: Sequence[Message],
        employee: Optional[dict[str, Any]] = None,
    ) -> Reply:
        """
        Generate a reply.
        
        Raises:
            CollaboratorUnavailable: If the model fails, times out or returns nothing
        """
        messages = self.build_messages(message, history, employee)
        
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke(messages),
                timeout=self.settings.generative_timeout_seconds,
            )
        except Exception as e:
            raise CollaboratorUnavailable("generative backend", str(e) or type(e).__name__) from e
        
        content = (response.content or "").strip() if isinstance(response.content, str) else ""
        if not content:
            raise CollaboratorUnavailable("generative backend", "empty completion")
        
        return Reply(
            text=content,
            suggested_actions=suggest_from_content(content),
            confidence=GENERATIVE_CONFIDENCE,
            source="generative",
        )


class FallbackResponder:
    """Generative backend first, rules when it is missing or fails."""
    
    def __init__(
        self,
        generative: Optional[GenerativeResponder] = None,
        rules: Optional[RuleBasedResponder] = None,
    ):
        self.generative = generative
        self.rules = rules or RuleBasedResponder()
    
    async def respond(
        self,
        message: str,
        history: Sequence[Message],
        employee: Optional[dict[str, Any]] = None,
    ) -> Reply:
        if self.generative is not None:
            try:
                return await self.generative.respond(message, history, employee)
            except CollaboratorUnavailable as e:
                logger.warning(f"Falling back to rule-based response: {e}")
        
        return self.rules.respond(message)
