from datetime import UTC, datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.db.json_store import JsonRecordStore, get_record_store
from app.middleware import RequestContextMiddleware, register_exception_handlers
from app.models.domain.errors import GatewayError
from app.routes import ai, contacts, metrics, opportunities, tasks
from app.services.ai_gateway_service import get_ai_gateway

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Controllable replacement for datetime.now(UTC)."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeAIGateway:
    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self.summary = "Cliente interesado en la propuesta."
        self.probability = 65
        self.advice = "- Agendar demo\n- Enviar propuesta"
        self.error: GatewayError | None = None

    async def summarize(self, notes: str) -> str:
        self.calls.append(("summarize", (notes,)))
        if self.error:
            raise self.error
        return self.summary

    async def predict_probability(self, description: str, value: float) -> int:
        self.calls.append(("predict", (description, value)))
        if self.error:
            raise self.error
        return self.probability

    async def advise(self, contact: dict, opportunity_description: str) -> str:
        self.calls.append(("advise", (contact, opportunity_description)))
        if self.error:
            raise self.error
        return self.advice


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    record_store = JsonRecordStore(tmp_path / "db.json")
    record_store.initialize()
    return record_store


@pytest.fixture
def fake_ai():
    return FakeAIGateway()


@pytest.fixture
def api_app(store, fake_ai):
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)
    for module in (contacts, opportunities, tasks, metrics, ai):
        app.include_router(module.router)
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_ai_gateway] = lambda: fake_ai
    return app


@pytest.fixture
def client(api_app):
    return TestClient(api_app)
