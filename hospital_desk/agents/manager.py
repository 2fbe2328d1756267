"""Routes chat messages to the right agent and follows one handoff."""
from typing import Dict, Optional

from hospital_desk.agents.base import AgentContext, AgentResponse, BaseAgent
from hospital_desk.agents.billing import BillingAgent
from hospital_desk.agents.nurse import NurseAgent
from hospital_desk.agents.reception import ReceptionAgent
from hospital_desk.availability import AvailabilityEngine
from hospital_desk.circuit_breaker import CircuitBreaker
from hospital_desk.intent import Intent, IntentClassifier
from hospital_desk.logging_config import get_logger
from hospital_desk.repository import HospitalRepository

logger = get_logger(__name__)

AGENT_FOR_INTENT = {
    Intent.RECEPTION: "ReceptionAgent",
    Intent.NURSE: "NurseAgent",
    Intent.BILLING: "BillingAgent",
}


class AgentManager:
    """
    Entry point for the chat endpoint.

    Flow:
    1. Classify the message (billing > medical > reception)
    2. Let that agent answer
    3. If it names a known ``nextAgent``, give the same message to that agent
       once, with ``handoffFrom`` set in the context metadata, and combine
       both answers. A failing second agent leaves the first answer intact.

    All agents share one circuit breaker since they share one LLM endpoint.
    """

    def __init__(
        self,
        repository: HospitalRepository,
        engine: AvailabilityEngine,
        llm=None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        breaker = breaker or CircuitBreaker("llm")
        self.classifier = IntentClassifier()
        self.agents: Dict[str, BaseAgent] = {
            "ReceptionAgent": ReceptionAgent(repository, engine, llm=llm, breaker=breaker),
            "NurseAgent": NurseAgent(llm=llm, breaker=breaker),
            "BillingAgent": BillingAgent(llm=llm, breaker=breaker),
        }

    def determine_agent(self, message: str) -> str:
        return AGENT_FOR_INTENT[self.classifier.classify(message)]

    def process_message(self, message: str, context: Optional[AgentContext] = None) -> AgentResponse:
        context = context or AgentContext()
        agent_name = self.determine_agent(message)
        logger.info("chat_routed", agent=agent_name, session_id=context.session_id)

        response = self.agents[agent_name].process_message(message, context)

        if response.next_agent in self.agents and response.next_agent != agent_name:
            response = self._hand_off(agent_name, response, message, context)

        return response

    def _hand_off(
        self,
        from_agent: str,
        first: AgentResponse,
        message: str,
        context: AgentContext,
    ) -> AgentResponse:
        to_agent = first.next_agent
        logger.info(
            "chat_handoff",
            from_agent=from_agent,
            to_agent=to_agent,
            session_id=context.session_id,
        )

        handoff_context = context.model_copy(
            update={"metadata": {**context.metadata, "handoffFrom": from_agent}}
        )
        second = self.agents[to_agent].process_message(message, handoff_context)
        if second.confidence == 0.0:
            return first

        metadata = {**(first.metadata or {}), **(second.metadata or {})}
        metadata["handledBy"] = [from_agent, to_agent]
        return AgentResponse(
            content=f"{first.content}\n\n{second.content}",
            confidence=second.confidence,
            next_agent=second.next_agent,
            metadata=metadata,
        )
