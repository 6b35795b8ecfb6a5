"""Application configuration.

Environment variables override all defaults. A `.env` file next to the
project root is loaded for local development and never overrides values
already present in the environment.
"""

import os
import warnings
from pathlib import Path
from typing import List

from dotenv import load_dotenv

_PROJECT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_PROJECT_DIR / ".env", override=False)


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Settings:
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # CORS (specific origins only, no wildcards)
    CORS_ORIGINS: List[str] = _csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173",
        )
    )

    # Oracle (Groq). Must be set via .env, never in code.
    GROQ_API_KEY: str = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    NLU_ENABLED: bool = os.getenv("NLU_ENABLED", "true").lower() in ("1", "true", "yes")
    NLU_TIMEOUT_SECONDS: float = float(os.getenv("NLU_TIMEOUT_SECONDS", "8"))
    NLU_MAX_TOKENS: int = int(os.getenv("NLU_MAX_TOKENS", "512"))
    # Pass the opening prompt, summary and success text through the oracle
    NLU_HUMANIZE: bool = os.getenv("NLU_HUMANIZE", "true").lower() in ("1", "true", "yes")

    # Backend data service
    BACKEND_BASE_URL: str = os.getenv("BACKEND_BASE_URL", "http://localhost:4000").rstrip("/")
    BACKEND_TIMEOUT_SECONDS: float = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "10"))

    # Service token: a static token wins over a locally minted one
    BACKEND_SERVICE_TOKEN: str = os.getenv("BACKEND_SERVICE_TOKEN", "")
    BACKEND_SERVICE_SECRET: str = os.getenv("BACKEND_SERVICE_SECRET", "")
    BACKEND_SERVICE_ISSUER: str = os.getenv("BACKEND_SERVICE_ISSUER", "")
    BACKEND_SERVICE_AUDIENCE: str = os.getenv("BACKEND_SERVICE_AUDIENCE", "")
    BACKEND_SERVICE_SUBJECT: str = os.getenv("BACKEND_SERVICE_SUBJECT", "ri-orchestrator")
    BACKEND_SERVICE_ROLES: List[str] = _csv(os.getenv("BACKEND_SERVICE_ROLES", "service"))
    BACKEND_SERVICE_TTL_SECONDS: int = int(os.getenv("BACKEND_SERVICE_TTL_SECONDS", "3600"))

    if not BACKEND_SERVICE_TOKEN and not BACKEND_SERVICE_SECRET:
        # Lookups and commits will fail with TokenConfigurationError until one is set.
        if ENVIRONMENT == "production":
            warnings.warn(
                "Neither BACKEND_SERVICE_TOKEN nor BACKEND_SERVICE_SECRET is set. "
                "Backend calls will be rejected until one of them is configured.",
                RuntimeWarning,
            )

    # Conversation
    SESSION_IDLE_TTL_SECONDS: int = int(os.getenv("SESSION_IDLE_TTL_SECONDS", "1800"))
    TAX_MULTIPLIER: float = float(os.getenv("TAX_MULTIPLIER", "1.21"))


settings = Settings()
