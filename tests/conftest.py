"""Shared fakes: a scripted oracle, a recording backend and an engine fixture."""
from typing import Any, Callable, Dict, List, Optional

import pytest

from nlu import NluAdapter
from orchestrator.agent.dialogue_engine import DialogueEngine
from orchestrator.core.exceptions import BackendUnavailableError, OracleError, QuoteCommitError
from orchestrator.services.session_store import SessionStore

CLIENT_ID = "64b7f0c2a1b2c3d4e5f60718"
OTHER_CLIENT_ID = "64b7f0c2a1b2c3d4e5f60719"
BRANCH_ID = "74b7f0c2a1b2c3d4e5f60720"


class FakeOracle:
    """Answers through `responder(prompt)`; raises OracleError when none is set."""

    def __init__(self, responder: Optional[Callable[[str], str]] = None):
        self.responder = responder
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.responder is None:
            raise OracleError("oracle offline")
        return self.responder(prompt)


class FakeBackend:
    """In-memory stand-in for BackendClient."""

    def __init__(self):
        self.clients: Dict[str, Dict[str, Any]] = {
            CLIENT_ID: {"id": CLIENT_ID, "display_name": "Acme SA"},
            OTHER_CLIENT_ID: {"id": OTHER_CLIENT_ID, "display_name": "Acme Norte SRL"},
        }
        self.branches: Dict[str, List[Dict[str, str]]] = {
            CLIENT_ID: [{"id": BRANCH_ID, "name": "Casa Central"}, {"id": "b2", "name": "Depósito Sur"}],
            OTHER_CLIENT_ID: [],
        }
        self.search_results: Optional[List[Dict[str, Any]]] = None
        self.unavailable = False
        self.commit_failures = 0
        self.searches: List[str] = []
        self.created: List[Dict[str, Any]] = []

    def search_clients_by_name(self, name: str) -> List[Dict[str, Any]]:
        self.searches.append(name)
        if self.unavailable:
            raise BackendUnavailableError("backend down", 503)
        if self.search_results is not None:
            return self.search_results
        key = name.lower()
        return [c for c in self.clients.values() if key in c["display_name"].lower()]

    def get_client_by_id(self, client_id: str) -> Optional[Dict[str, Any]]:
        if self.unavailable:
            raise BackendUnavailableError("backend down", 503)
        return self.clients.get(client_id)

    def get_client_branches(self, client_id: str) -> List[Dict[str, str]]:
        if self.unavailable:
            raise BackendUnavailableError("backend down", 503)
        return list(self.branches.get(client_id, []))

    def create_quote(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.commit_failures > 0:
            self.commit_failures -= 1
            raise QuoteCommitError("Backend rejected the quote", 500, "boom")
        self.created.append(payload)
        return {"_id": "q-1", "numeroCotizacion": "COT-0001"}


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def store():
    return SessionStore(idle_ttl_seconds=1800)


@pytest.fixture
def engine(backend, oracle, store):
    return DialogueEngine(backend=backend, nlu=NluAdapter(oracle), sessions=store)


@pytest.fixture
def talk(engine):
    """Send messages on one session id; returns the last TurnResult."""

    def _talk(*messages, session_id="s-1"):
        result = None
        for message in messages:
            result = engine.handle_message(session_id, message)
        return result

    return _talk
