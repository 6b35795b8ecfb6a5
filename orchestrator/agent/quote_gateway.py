"""
Quote Commit Gateway — the ONLY place a quote reaches the backend.

================================================================================
SAFETY MODEL
================================================================================

Flow:
1. Dialogue collects slots (no side effects)
2. SUMMARY computes totals and shows them to the operator
3. Operator replies CONFIRMAR (or an explicit yes) in CONFIRMATION
4. Only THEN does the engine call `commit`, exactly once for that reply

If the backend call fails, nothing is retried here. The engine keeps the
session in CONFIRMATION so the operator can confirm again.
================================================================================
"""
import logging
from typing import Any, Dict, List, Optional, Protocol

from orchestrator.agent.conversation_state import ClientMode
from orchestrator.models.conversation_session import QuoteDraft, QuoteItem

logger = logging.getLogger(__name__)


class QuoteBackend(Protocol):
    def create_quote(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...


def _items(items: Optional[List[QuoteItem]]) -> List[Dict[str, Any]]:
    return [{"descripcion": item.description, "monto": item.amount} for item in (items or [])]


def build_quote_payload(draft: QuoteDraft) -> Dict[str, Any]:
    """Assemble the create-quote body from a summarized draft."""
    payload: Dict[str, Any] = {
        "nombreTrabajo": draft.job_type,
        "tipoDeTrabajo": draft.job_type,
        "manoDeObra": draft.labor_cost or 0.0,
        "materiales": _items(draft.materials),
        "equipos": _items(draft.equipment),
        "extras": _items(draft.extras),
        "totalCost": draft.total_cost,
        "totalIva": draft.total_with_tax,
        "aprobado": draft.approved,
        "estado": draft.status or "pendiente",
    }

    if draft.client_mode == ClientMode.MANUAL:
        payload["clienteManual"] = {
            "nombre": draft.manual_client_name,
            "direccion": draft.manual_address,
        }
        payload["ubicacion"] = {"direccion": draft.manual_address}
    else:
        payload["clienteId"] = draft.client_id
        payload["sucursalId"] = draft.branch_id
        payload["ubicacion"] = {"direccion": draft.branch_name}

    return payload


class QuoteCommitGateway:
    """Builds the payload and performs the single create-quote call."""

    def __init__(self, backend: QuoteBackend):
        self.backend = backend

    def commit(self, session_id: str, draft: QuoteDraft) -> Dict[str, Any]:
        """Create the quote.

        Raises:
            QuoteCommitError: propagated unchanged from the backend client
        """
        payload = build_quote_payload(draft)
        logger.info(
            f"[Gateway] Committing quote for session {session_id}: "
            f"client={payload.get('clienteId') or 'manual'}, total={draft.total_with_tax}"
        )
        result = self.backend.create_quote(payload)
        logger.info(f"[Gateway] Quote committed for session {session_id}")
        return result
