import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from services.auth_service import AccountService, get_account_service
from services.relay_service import RelayService, get_relay_service
from services.storage import InMemoryStorage

FIXED_NOW = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)


def make_question(n=1, answer="B", subject="Toán"):
    return {
        "subject": subject,
        "text": f"Question {n}?",
        "options": ["A. one", "B. two", "C. three", "D. four"],
        "answer": answer,
    }


def questions_payload(count=5, **kwargs):
    return json.dumps({"questions": [make_question(i, **kwargs) for i in range(1, count + 1)]})


@pytest.fixture
def test_settings():
    return Settings(GROQ_API_KEY="test-key", _env_file=None)


@pytest.fixture
def fake_llm():
    """Stands in for LLMClient; set ``complete.return_value`` / ``side_effect`` per test."""
    llm = MagicMock()
    llm.complete.return_value = questions_payload()
    return llm


@pytest.fixture
def relay(test_settings, fake_llm):
    return RelayService(test_settings, llm=fake_llm)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def accounts(storage):
    return AccountService(storage, clock=lambda: FIXED_NOW)


@pytest.fixture
def client(relay, accounts):
    from main import app

    app.dependency_overrides[get_relay_service] = lambda: relay
    app.dependency_overrides[get_account_service] = lambda: accounts
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
