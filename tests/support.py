"""Shared fixtures: an in-memory seeded database and a wired test client."""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.app.ai_orchestrator import AIOrchestrator, EndpointRegistry
from storefront.app.main import app, build_services
from storefront.app.session import KVStore
from storefront.data.database import create_tables, get_db
from storefront.data.populate_db import populate_catalog
from storefront.schemas.ai_models import AIResponse


def make_session_factory(seed: bool = True):
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    create_tables(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    if seed:
        db = factory()
        try:
            populate_catalog(db)
        finally:
            db.close()
    return factory


def offline_orchestrator() -> AIOrchestrator:
    """Orchestrator with no endpoints, so every call takes the local fallback path."""
    return AIOrchestrator(registry=EndpointRegistry(endpoints=[]), sleep=lambda s: None)


class ScriptedOrchestrator:
    """Returns canned replies in order; raises the reply when it is an exception."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def _next(self, request):
        self.requests.append(request)
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, AIResponse):
            return reply
        return AIResponse(content=reply, model="test-model", provider="Test Provider")

    complete = _next
    process_request = _next

    def get_system_status(self):
        return {"totalEndpoints": 0, "availableEndpoints": 0, "cacheSize": 0, "endpoints": []}

    def get_ha_status(self):
        return {"totalEndpoints": 0}


def make_client(session_factory=None, orchestrator=None, kv_store=None):
    """Wire ``app`` to a test database and services; returns (client, session_factory)."""
    factory = session_factory or make_session_factory()

    def _get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    build_services(
        app,
        session_factory=factory,
        kv_store=kv_store or KVStore(use_redis=False),
        orchestrator=orchestrator or offline_orchestrator(),
    )
    return TestClient(app), factory


def reset_app():
    app.dependency_overrides.clear()
