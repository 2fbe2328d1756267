"""FastAPI dependency injection functions.

Pattern: the application factory builds one store, repository, engine and
agent manager and hangs them on ``app.state``; routes pull them from there
so tests can inject their own.
"""
from fastapi import Request

from hospital_desk.agents import AgentManager
from hospital_desk.availability import AvailabilityEngine
from hospital_desk.database import Store
from hospital_desk.repository import HospitalRepository


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_repository(request: Request) -> HospitalRepository:
    return request.app.state.repository


def get_engine(request: Request) -> AvailabilityEngine:
    """The single availability engine every route books through."""
    return request.app.state.engine


def get_agent_manager(request: Request) -> AgentManager:
    return request.app.state.agent_manager
