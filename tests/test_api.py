import pytest
from fastapi.testclient import TestClient

from nlu import NluAdapter
from orchestrator.agent.dialogue_engine import DialogueEngine
from orchestrator.api.deps import get_engine
from orchestrator.main import app
from tests.conftest import CLIENT_ID, FakeOracle


@pytest.fixture
def client(backend, store):
    engine = DialogueEngine(backend=backend, nlu=NluAdapter(FakeOracle()), sessions=store)
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def say(client, message, session_id=None):
    response = client.post("/assistant", json={"session_id": session_id, "message": message})
    assert response.status_code == 200
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "UP"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_new_conversation_gets_session_id(client):
    body = say(client, "hola")
    assert body["session_id"]
    assert body["state"] == "CAPTURE_CLIENT_TYPE"
    assert body["end_session"] is False
    assert body["awaiting_confirmation"] is False


def test_full_quote_over_http(client, backend):
    session_id = say(client, "existente")["session_id"]
    for message in [CLIENT_ID, "1", "Instalacion", "1500", "no", "no", "no"]:
        body = say(client, message, session_id)
    assert body["state"] == "CONFIRMATION"
    assert body["awaiting_confirmation"] is True
    assert "$1815.00" in body["reply_text"]

    body = say(client, "confirmar", session_id)
    assert body["state"] == "SUCCESS"
    assert body["end_session"] is True
    assert len(backend.created) == 1


def test_missing_message_is_treated_as_blank(client):
    response = client.post("/assistant", json={"session_id": "abc"})
    assert response.status_code == 200
    assert response.json()["session_id"] == "abc"


def test_oversized_message_is_rejected(client):
    response = client.post("/assistant", json={"message": "x" * 5000})
    assert response.status_code == 422


def test_engine_failure_returns_generic_500(store):
    class BrokenEngine:
        sessions = store

        def handle_message(self, session_id, message):
            raise RuntimeError("database password is hunter2")

    app.dependency_overrides[get_engine] = lambda: BrokenEngine()
    try:
        with TestClient(app) as test_client:
            response = test_client.post("/assistant", json={"session_id": "abc", "message": "hola"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert "hunter2" not in response.text
