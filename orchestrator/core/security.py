"""
Service-to-service bearer tokens for the backend data service.

Resolution order:
1. A static token from configuration (BACKEND_SERVICE_TOKEN)
2. A locally minted HS256 JWT signed with BACKEND_SERVICE_SECRET,
   cached until shortly before it expires

Tokens are never logged.
"""
import logging
import threading
import time
from typing import Callable, List, Optional

import jwt

from orchestrator.core.config import settings
from orchestrator.core.exceptions import TokenConfigurationError

logger = logging.getLogger(__name__)

MIN_TTL_SECONDS = 60
# Re-mint this many seconds before expiry so in-flight calls never carry a stale token
REFRESH_MARGIN_SECONDS = 30


class ServiceTokenProvider:
    """Returns the bearer token attached to every backend call."""

    def __init__(
        self,
        static_token: str = "",
        secret: str = "",
        subject: str = "ri-orchestrator",
        issuer: str = "",
        audience: str = "",
        roles: Optional[List[str]] = None,
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.static_token = static_token or None
        self.secret = secret
        self.subject = subject
        self.issuer = issuer
        self.audience = audience
        self.roles = list(roles or [])
        self.ttl_seconds = max(int(ttl_seconds), MIN_TTL_SECONDS)
        self._clock = clock
        self._lock = threading.Lock()
        self._cached_token: Optional[str] = None
        self._cached_exp: int = 0

    @classmethod
    def from_settings(cls) -> "ServiceTokenProvider":
        return cls(
            static_token=settings.BACKEND_SERVICE_TOKEN,
            secret=settings.BACKEND_SERVICE_SECRET,
            subject=settings.BACKEND_SERVICE_SUBJECT,
            issuer=settings.BACKEND_SERVICE_ISSUER,
            audience=settings.BACKEND_SERVICE_AUDIENCE,
            roles=settings.BACKEND_SERVICE_ROLES,
            ttl_seconds=settings.BACKEND_SERVICE_TTL_SECONDS,
        )

    def get_token(self) -> str:
        """Return the static token, or a cached/minted JWT.

        Raises:
            TokenConfigurationError: no static token and no signing secret
        """
        if self.static_token:
            return self.static_token

        with self._lock:
            now = int(self._clock())
            if self._cached_token and now < self._cached_exp - REFRESH_MARGIN_SECONDS:
                return self._cached_token
            self._cached_token = self._mint(now)
            return self._cached_token

    def _mint(self, now: int) -> str:
        if not self.secret:
            raise TokenConfigurationError("Missing BACKEND_SERVICE_SECRET")

        exp = now + self.ttl_seconds
        payload = {"sub": self.subject, "iat": now, "exp": exp}
        if self.issuer:
            payload["iss"] = self.issuer
        if self.audience:
            payload["aud"] = [self.audience]
        if self.roles:
            payload["roles"] = self.roles
            payload["role"] = self.roles[0]

        token = jwt.encode(payload, self.secret, algorithm="HS256", headers={"typ": "JWT"})
        self._cached_exp = exp
        logger.info(f"[Token] Minted service token for sub={self.subject}, exp={exp}")
        return token
