import json
import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from app.api.deps import get_db
from app.core.security import create_access_token
from app.main import app
from app.services.ai.failure_recorder import FailureRecorder
from app.services.ai.llm_provider import BaseLLMProvider, LLMResponse


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.failure_recorder = FailureRecorder(capacity=5)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def scheduler_headers(newsroom):
    token = create_access_token(newsroom["scheduler_user"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers(newsroom):
    token = create_access_token(newsroom["staff_user"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def provider():
    """Mock provider returned by the generator's factory for the duration of a test."""
    mock = MagicMock(spec=BaseLLMProvider)
    mock.provider_name.return_value = "anthropic/claude-test"
    with patch("app.services.ai.schedule_generator.get_llm_provider", return_value=mock):
        yield mock


@pytest.fixture
def milan_morning(newsroom):
    """Model output: Marco and Sara on the Milan morning of a given local date."""
    def _make(day="2025-01-13", employees=("marco", "sara")):
        names = {"marco": ("Marco Rossi", "senior"), "sara": ("Sara Bianchi", "junior"), "luca": ("Luca Verdi", "junior")}
        rows = [
            {
                "date": day,
                "start_time": "08:00",
                "end_time": "16:00",
                "bureau": "Milan",
                "employee_id": newsroom[key],
                "assigned_to": names[key][0],
                "role_level": names[key][1],
                "shift_type": "Morning",
                "reasoning": "Rota",
            }
            for key in employees
        ]
        return LLMResponse(
            raw_text=json.dumps({"shifts": rows, "recommendations": ["Confirm Luca's preferences"]}),
            model_used="claude-test",
            success=True,
        )
    return _make
