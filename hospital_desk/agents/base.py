"""Shared agent plumbing: context/response models, LLM access, escalation."""
from typing import Any, Dict, List, Literal, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import Field

from hospital_desk import config
from hospital_desk.circuit_breaker import CircuitBreaker
from hospital_desk.domain import CamelModel
from hospital_desk.intent import EmergencyDetector
from hospital_desk.logging_config import get_logger

logger = get_logger(__name__)

TECHNICAL_DIFFICULTIES = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Please try again or contact our staff directly."
)
EMPTY_COMPLETION = "I apologize, but I could not generate a response."


class ChatTurn(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class AgentContext(CamelModel):
    """Per-request conversation context supplied by the caller."""
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    previous_messages: List[ChatTurn] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AgentResponse(CamelModel):
    content: str
    confidence: float
    next_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


def create_default_llm():
    """ChatOpenAI client for any OpenAI-compatible endpoint."""
    return ChatOpenAI(
        model=config.LLM_MODEL,
        temperature=config.LLM_TEMPERATURE,
        max_tokens=config.LLM_MAX_TOKENS,
        timeout=config.LLM_TIMEOUT_SECONDS,
        base_url=config.LLM_BASE_URL,
    )


class BaseAgent:
    """
    Base class for the front desk agents.

    Subclasses implement ``respond``; ``process_message`` wraps it with
    emergency escalation and turns unexpected failures into an apology.
    The LLM is any object with ``invoke(messages)`` returning a message;
    it is created lazily so agents that never fall back to it do not need
    credentials.
    """

    name = "BaseAgent"
    system_prompt = ""
    error_message = TECHNICAL_DIFFICULTIES

    def __init__(self, llm=None, breaker: Optional[CircuitBreaker] = None):
        self._llm = llm
        self.breaker = breaker or CircuitBreaker("llm")
        self.emergency_detector = EmergencyDetector()

    @property
    def llm(self):
        if self._llm is None:
            self._llm = create_default_llm()
        return self._llm

    def process_message(self, message: str, context: AgentContext) -> AgentResponse:
        try:
            if self.emergency_detector.is_emergency(message):
                logger.warning("emergency_escalation", agent=self.name, session_id=context.session_id)
                return self.escalation_response()
            return self.respond(message, context)
        except Exception as e:
            logger.error("agent_failure", agent=self.name, error=str(e), exc_info=True)
            return self.error_response()

    def respond(self, message: str, context: AgentContext) -> AgentResponse:
        raise NotImplementedError

    def generate_response(self, message: str, context: AgentContext) -> str:
        """Ask the LLM, with the agent's system prompt and prior turns."""
        messages: List[BaseMessage] = [SystemMessage(content=self.system_prompt)]
        for turn in context.previous_messages:
            if turn.role == "user":
                messages.append(HumanMessage(content=turn.content))
            else:
                messages.append(AIMessage(content=turn.content))
        messages.append(HumanMessage(content=message))

        completion = self.breaker.call(self.llm.invoke, messages)
        content = getattr(completion, "content", completion)
        return content or EMPTY_COMPLETION

    def fallback(self, message: str, context: AgentContext, confidence: float = 0.8) -> AgentResponse:
        return AgentResponse(
            content=self.generate_response(message, context),
            confidence=confidence,
        )

    def escalation_response(self) -> AgentResponse:
        emergency_line = config.HOSPITAL_INFO["phones"]["emergency"]
        return AgentResponse(
            content=(
                "EMERGENCY: I've detected that you may be experiencing a medical "
                "emergency. Please:\n\n"
                "1. Call 911 immediately if this is life-threatening\n"
                "2. Go to the nearest emergency room\n"
                f"3. Call our emergency line at {emergency_line}\n\n"
                "I'm connecting you to our emergency staff right now. "
                "Please stay on the line."
            ),
            confidence=1.0,
            next_agent="EmergencyAgent",
            metadata={"emergency": True},
        )

    def error_response(self) -> AgentResponse:
        return AgentResponse(content=self.error_message, confidence=0.0)


def bullet_list(items: List[str], marker: str = "•") -> str:
    return "\n".join(f"{marker} {item}" for item in items)
