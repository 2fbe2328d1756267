"""Keyword-routed chat agents for the front desk."""
from hospital_desk.agents.base import AgentContext, AgentResponse, BaseAgent, ChatTurn
from hospital_desk.agents.billing import BillingAgent
from hospital_desk.agents.manager import AgentManager
from hospital_desk.agents.nurse import NurseAgent
from hospital_desk.agents.reception import ReceptionAgent

__all__ = [
    "AgentContext",
    "AgentManager",
    "AgentResponse",
    "BaseAgent",
    "BillingAgent",
    "ChatTurn",
    "NurseAgent",
    "ReceptionAgent",
]
