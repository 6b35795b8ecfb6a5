"""
Backend data service client — clients, branches and quote creation.

Status mapping (lookups):
- 2xx        → data
- 404        → "not found" ([] for search, None for single lookups)
- 401/403/5xx/network → BackendUnavailableError, so the dialogue can tell
  "no matches" apart from "couldn't check"

Quote creation never maps failures to "not found": any failure raises
QuoteCommitError and the caller keeps the confirmed data for a retry.

Every call carries a bearer token from ServiceTokenProvider.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from orchestrator.core.config import settings
from orchestrator.core.exceptions import (
    BackendUnavailableError,
    QuoteCommitError,
    TokenConfigurationError,
)
from orchestrator.core.security import ServiceTokenProvider

logger = logging.getLogger(__name__)

_NAME_FIELDS = ("nombre", "name", "razonSocial", "fullName", "email")


def record_id(record: Dict[str, Any]) -> Optional[str]:
    value = record.get("_id") or record.get("id")
    return str(value) if value else None


def display_name(record: Dict[str, Any]) -> str:
    """Human label for a client record: nombre + apellido when both exist."""
    first = record.get("nombre") or record.get("name")
    last = record.get("apellido") or record.get("lastName")
    if first and last:
        return f"{first} {last}"
    for key in _NAME_FIELDS:
        if record.get(key):
            return str(record[key])
    return record_id(record) or "(sin nombre)"


class BackendClient:
    """Thin REST client over requests.Session."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[ServiceTokenProvider] = None,
        timeout_seconds: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.token_provider = token_provider or ServiceTokenProvider.from_settings()
        self.timeout = timeout_seconds or settings.BACKEND_TIMEOUT_SECONDS
        self.http = http or requests.Session()

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def search_clients_by_name(self, name: str) -> List[Dict[str, Any]]:
        """Search clients; each result gains `id` and `display_name` keys.

        Raises:
            BackendUnavailableError: auth, server or network failure
        """
        logger.info(f"[Backend] Client search: name='{name}'")
        response = self._get("/users/search", params={"q": name})
        if response is None:
            return []
        data = self._json(response)
        if not isinstance(data, list):
            logger.warning("[Backend] Client search returned a non-list body")
            raise BackendUnavailableError("Unexpected search response shape", response.status_code)

        results = []
        for record in data:
            if not isinstance(record, dict) or not record_id(record):
                continue
            results.append({**record, "id": record_id(record), "display_name": display_name(record)})
        logger.info(f"[Backend] Client search: {len(results)} matches")
        return results

    def get_client_by_id(self, client_id: str) -> Optional[Dict[str, Any]]:
        response = self._get(f"/users/user/{client_id}")
        if response is None:
            return None
        data = self._json(response)
        if not isinstance(data, dict) or not data:
            return None
        return {**data, "id": record_id(data) or client_id, "display_name": display_name(data)}

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def get_branch_by_id(self, branch_id: str) -> Optional[Dict[str, Any]]:
        response = self._get(f"/sucursales/{branch_id}")
        if response is None:
            return None
        data = self._json(response)
        return data if isinstance(data, dict) and data else None

    def get_client_branches(self, client_id: str) -> List[Dict[str, str]]:
        """Branches of a client as [{"id", "name"}], in the order the backend lists them.

        Branch references that are bare ids are resolved one by one; an
        unresolvable id keeps the id as its name.
        """
        client = self.get_client_by_id(client_id)
        if not client:
            return []

        raw = client.get("sucursales") or []
        if isinstance(raw, (dict, str)):
            raw = [raw]

        branches = []
        for entry in raw:
            if isinstance(entry, dict):
                branch_id = record_id(entry)
                name = entry.get("nombre") or entry.get("name") or entry.get("direccion")
                if not name and branch_id:
                    resolved = self.get_branch_by_id(branch_id)
                    name = _branch_name(resolved)
            else:
                branch_id = str(entry)
                name = _branch_name(self.get_branch_by_id(branch_id))
            if branch_id:
                branches.append({"id": branch_id, "name": str(name or branch_id)})
        return branches

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def create_quote(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST the quote. Called once per confirmation event.

        Raises:
            QuoteCommitError: any failure, including missing token configuration
        """
        try:
            headers = self._headers()
        except TokenConfigurationError as e:
            raise QuoteCommitError(str(e)) from e

        try:
            response = self.http.post(
                f"{self.base_url}/cotizaciones",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"[Backend] Quote create network error: {e}")
            raise QuoteCommitError("Backend request failed") from e

        if not response.ok:
            body = (response.text or "")[:500]
            logger.warning(f"[Backend] Quote create error: status={response.status_code}, body='{body}'")
            raise QuoteCommitError("Backend rejected the quote", response.status_code, body)

        try:
            data = response.json()
        except ValueError:
            data = {}
        return data if isinstance(data, dict) else {"result": data}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token_provider.get_token()}",
            "Accept": "application/json",
        }

    def _get(self, path: str, params: Optional[dict] = None) -> Optional[requests.Response]:
        """GET with lookup status mapping. Returns None on 404."""
        try:
            headers = self._headers()
        except TokenConfigurationError as e:
            logger.warning(f"[Backend] No service token available: {e}")
            raise BackendUnavailableError(str(e)) from e

        try:
            response = self.http.get(
                f"{self.base_url}{path}",
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"[Backend] Network error on GET {path}: {e}")
            raise BackendUnavailableError("Backend unreachable") from e

        if response.status_code == 404:
            logger.info(f"[Backend] GET {path}: 404")
            return None
        if not response.ok:
            logger.warning(
                f"[Backend] GET {path} failed: status={response.status_code}, "
                f"body='{(response.text or '')[:200]}'"
            )
            raise BackendUnavailableError(f"Backend returned {response.status_code}", response.status_code)
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise BackendUnavailableError("Backend returned invalid JSON", response.status_code) from e


def _branch_name(record: Optional[Dict[str, Any]]) -> Optional[str]:
    if not record:
        return None
    return record.get("nombre") or record.get("name") or record.get("direccion")
