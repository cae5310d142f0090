"""
Main HR Assistant dialogue agent.

Orchestrates recognition, response selection, action dispatch and
conversation bookkeeping for one turn at a time.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hr_assistant.actions import (
    ActionContext,
    ActionRequest,
    ActionResult,
    HRActionDispatcher,
    is_actionable,
)
from hr_assistant.config import Settings, get_settings
from hr_assistant.conversations import (
    AnalyticsSummary,
    Channel,
    Conversation,
    ConversationPage,
    ConversationRepository,
    ConversationStateManager,
    Escalation,
    ExecutedAction,
    InMemoryRepository,
    Message,
    MessageRole,
)
from hr_assistant.errors import ValidationFailure
from hr_assistant.intents import InMemoryIntentStore, IntentStore, TrainableIntentMatcher
from hr_assistant.knowledge import (
    AzureSearchKnowledgeStore,
    KnowledgeFallbackMatcher,
    KnowledgeStore,
)

from .recognizer import Analysis, IntentRecognizer
from .responders import (
    FallbackResponder,
    GenerativeResponder,
    RuleBasedResponder,
    SuggestedAction,
    TemplateResponder,
)

logger = logging.getLogger(__name__)

ACTION_ABOVE = 0.7
TEMPLATE_ABOVE = 0.6


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TurnRequest(_CamelModel):
    """One inbound user utterance."""
    
    tenant_id: str
    message: Optional[str] = None
    session_id: Optional[str] = None
    employee_id: Optional[str] = None
    channel: Channel = Channel.WEB
    metadata: Optional[dict[str, Any]] = None
    auth_token: Optional[str] = None


class TurnReply(_CamelModel):
    """The assistant's answer to one turn."""
    
    text: str
    intent: str
    confidence: float
    entities: dict[str, Any] = Field(default_factory=dict)
    sentiment: str
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)
    action_executed: bool = False


class TurnContext(_CamelModel):
    """Context carried into the next turn."""
    
    current_intent: Optional[str] = None
    last_topic: Optional[str] = None


class TurnResponse(_CamelModel):
    """Result of the turn operation."""
    
    session_id: str
    response: TurnReply
    context: TurnContext


class HRAssistantAgent:
    """
    Main HR Assistant agent.
    
    Handles each turn by:
    1. Recognizing intent, entities and sentiment
    2. Picking a response path by confidence band
    3. Executing actions against the HR services
    4. Recording the turn and its analytics
    """
    
    def __init__(
        self,
        settings: Optional[Settings] = None,
        repository: Optional[ConversationRepository] = None,
        knowledge_store: Optional[KnowledgeStore] = None,
        intent_store: Optional[IntentStore] = None,
        dispatcher: Optional[HRActionDispatcher] = None,
        llm: Optional[Any] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the HR Assistant agent.
        
        Collaborators not passed in are built from settings: Azure AI Search
        when configured, the chat model when an OpenAI key is set.
        
        Args:
            settings: Application settings
            repository: Conversation persistence, in-memory by default
            knowledge_store: Published knowledge article search
            intent_store: Tenant-defined intents
            dispatcher: Action dispatcher for the HR services
            llm: Chat model for the generative fallback
            clock: Returns the current local time
        """
        self.settings = settings or get_settings()
        self.clock = clock or datetime.now
        
        self.state = ConversationStateManager(repository or InMemoryRepository())
        
        if knowledge_store is None and self.settings.knowledge_search_enabled:
            knowledge_store = AzureSearchKnowledgeStore(self.settings)
        knowledge = (
            KnowledgeFallbackMatcher(
                knowledge_store, timeout=self.settings.knowledge_search_timeout_seconds
            )
            if knowledge_store is not None else None
        )
        
        self.recognizer = IntentRecognizer(
            knowledge=knowledge,
            trainable=TrainableIntentMatcher(intent_store or InMemoryIntentStore()),
        )
        self.dispatcher = dispatcher or HRActionDispatcher(settings=self.settings, clock=self.clock)
        self.templates = TemplateResponder()
        
        generative = None
        if llm is not None or self.settings.generative_enabled:
            generative = GenerativeResponder(self.settings, llm=llm)
        self.fallback = FallbackResponder(generative=generative, rules=RuleBasedResponder())
        
        logger.info(
            f"HR Assistant ready (knowledge search: {knowledge is not None}, "
            f"generative: {generative is not None}, actions: {len(self.dispatcher.list_actions())})"
        )
    
    async def close(self) -> None:
        """Release collaborator connections."""
        await self.dispatcher.client.close()
    
    # =========================================================================
    # Turn
    # =========================================================================
    
    async def chat(self, request: TurnRequest) -> TurnResponse:
        """
        Process one user turn.
        
        Args:
            request: The inbound utterance and its session
            
        Returns:
            TurnResponse with the reply and the carried context
            
        Raises:
            ValidationFailure: Empty message, closed session or foreign session
            PersistenceFailure: If the conversation cannot be stored
        """
        if not request.message or not request.message.strip():
            raise ValidationFailure("Message is required")
        
        message = request.message
        session_id = request.session_id or str(uuid4())
        
        async with self.state.serialized(session_id):
            conversation = await self.state.load_or_start(
                tenant_id=request.tenant_id,
                session_id=session_id,
                employee_id=request.employee_id,
                channel=request.channel,
                metadata=request.metadata,
            )
            
            started = time.perf_counter()
            
            analysis = await self.recognizer.analyze(
                message,
                request.tenant_id,
                previous_intent=conversation.context.current_intent,
                today=self.clock().date(),
            )
            intent = analysis.intent
            
            user_message = Message(
                role=MessageRole.USER,
                content=message,
                intent=intent.name,
                confidence=intent.confidence,
                entities=analysis.entities,
            )
            
            text, suggested, executed = await self._respond(
                conversation, analysis, message, request
            )
            
            latency_ms = (time.perf_counter() - started) * 1000
            
            assistant_message = Message(
                role=MessageRole.ASSISTANT,
                content=text,
                intent=intent.name,
                confidence=intent.confidence,
                actions=executed,
                response_time_ms=latency_ms,
            )
            
            self.state.record_turn(conversation, user_message, assistant_message, intent, latency_ms)
            await self.state.save(conversation)
            
            logger.info(
                f"Turn for session {session_id}: {intent.name} "
                f"({intent.confidence:.2f}, {intent.source}) in {latency_ms:.1f}ms"
            )
            
            return TurnResponse(
                session_id=session_id,
                response=TurnReply(
                    text=text,
                    intent=intent.name,
                    confidence=intent.confidence,
                    entities=analysis.entities,
                    sentiment=analysis.sentiment.value,
                    suggested_actions=suggested,
                    action_executed=any(a.executed for a in executed),
                ),
                context=TurnContext(
                    current_intent=conversation.context.current_intent,
                    last_topic=conversation.context.last_topic,
                ),
            )
    
    async def _respond(
        self,
        conversation: Conversation,
        analysis: Analysis,
        message: str,
        request: TurnRequest,
    ) -> tuple[str, list[SuggestedAction], list[ExecutedAction]]:
        """Pick the response path for the fused intent."""
        intent = analysis.intent
        
        if intent.confidence > ACTION_ABOVE and is_actionable(intent.name):
            entities = dict(analysis.entities)
            # Slots only fill in a flow that is still open for this intent.
            if conversation.context.current_intent == intent.name:
                entities = {**conversation.context.slots, **entities}
            result = await self.dispatcher.dispatch(
                ActionRequest(intent=intent.name, entities=entities, utterance=message),
                ActionContext(
                    tenant_id=request.tenant_id,
                    employee_id=request.employee_id or conversation.employee_id or "",
                    token=request.auth_token,
                ),
            )
            return result.message, [], [self._executed(intent.name, entities, result)]
        
        if intent.confidence > TEMPLATE_ABOVE:
            logger.debug(f"Template response for {intent.name}")
            text = self.templates.render(intent.name, analysis.entities, conversation.context)
            return text, [], []
        
        # History excludes the current message, which is sent separately.
        history = conversation.history(self.settings.history_limit)
        reply = await self.fallback.respond(message, history, self._employee_context(conversation))
        logger.debug(f"Fallback response from {reply.source}")
        return reply.text, reply.suggested_actions, []
    
    def _executed(self, name: str, entities: dict[str, Any], result: ActionResult) -> ExecutedAction:
        return ExecutedAction(
            type=name,
            data=entities,
            executed=result.is_success,
            outcome=result.outcome.value,
            result=result.data,
        )
    
    def _employee_context(self, conversation: Conversation) -> Optional[dict[str, Any]]:
        employee = dict(conversation.context.employee_data)
        if conversation.employee_id:
            employee.setdefault("id", conversation.employee_id)
        return employee or None
    
    # =========================================================================
    # Session operations
    # =========================================================================
    
    async def submit_feedback(
        self,
        session_id: str,
        message_id: str,
        helpful: Optional[bool] = None,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Message:
        """Attach feedback to a message of a conversation."""
        return await self.state.submit_feedback(session_id, message_id, helpful, rating, comment)
    
    async def escalate(
        self,
        session_id: str,
        reason: str,
        escalate_to: Optional[str] = None,
    ) -> Escalation:
        """Hand a conversation over to the HR team."""
        return await self.state.escalate(session_id, reason, escalate_to)
    
    async def end(self, session_id: str) -> Conversation:
        """Close a conversation."""
        return await self.state.end(session_id)
    
    async def get_conversation(self, session_id: str) -> Conversation:
        """Full conversation document, raising NotFound for unknown sessions."""
        return await self.state.get(session_id)
    
    async def list_conversations(
        self,
        tenant_id: str,
        employee_id: str,
        page: int = 1,
        limit: int = 20,
    ) -> ConversationPage:
        """An employee's conversations, most recent first."""
        return await self.state.list_conversations(tenant_id, employee_id, page, limit)
    
    async def summarize_analytics(
        self,
        tenant_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> AnalyticsSummary:
        """Tenant-wide conversation analytics."""
        return await self.state.summarize_analytics(tenant_id, start, end)
