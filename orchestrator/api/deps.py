"""FastAPI dependencies: the shared session store and dialogue engine.

Both are process-wide singletons. Tests replace them through
`app.dependency_overrides`.
"""
import logging
from typing import Optional

from nlu import NluAdapter, get_oracle_client
from orchestrator.agent.dialogue_engine import DialogueEngine
from orchestrator.core.config import settings
from orchestrator.services.backend_client import BackendClient
from orchestrator.services.session_store import SessionStore

logger = logging.getLogger(__name__)

_session_store: Optional[SessionStore] = None
_engine: Optional[DialogueEngine] = None


def get_session_store() -> SessionStore:
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(idle_ttl_seconds=settings.SESSION_IDLE_TTL_SECONDS)
    return _session_store


def get_engine() -> DialogueEngine:
    """Build the engine on first use with the configured collaborators."""
    global _engine
    if _engine is None:
        oracle = get_oracle_client() if settings.NLU_ENABLED else None
        nlu = NluAdapter(oracle, enabled=settings.NLU_ENABLED)
        if not nlu.enabled:
            logger.warning("[Deps] NLU fallback disabled; deterministic rules only")
        _engine = DialogueEngine(
            backend=BackendClient(),
            nlu=nlu,
            sessions=get_session_store(),
            tax_multiplier=settings.TAX_MULTIPLIER,
            humanize=settings.NLU_HUMANIZE,
        )
    return _engine
