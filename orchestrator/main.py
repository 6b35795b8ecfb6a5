"""
RI Quote Orchestrator — conversational front door for quote creation.

ARCHITECTURE:
- FastAPI: one chat endpoint, one health probe
- Dialogue engine: per-session state machine, deterministic parsers first
- NLU adapter: optional Groq fallback, never decides a commit
- Backend client: client/branch lookups and the single create-quote call

SAFETY MODEL:
- Slots are collected without side effects
- Totals are shown in a summary before anything is written
- The quote is created ONLY after an explicit confirmation
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orchestrator.api.routes import assistant
from orchestrator.core.config import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: report which collaborators are configured.
    Shutdown: nothing to release; sessions are in memory only.
    """
    logger.info(f"[Startup] Environment: {settings.ENVIRONMENT}, backend: {settings.BACKEND_BASE_URL}")
    if not settings.NLU_ENABLED or not settings.GROQ_API_KEY:
        logger.warning("[Startup] NLU oracle not configured; deterministic parsing only")
    if not settings.BACKEND_SERVICE_TOKEN and not settings.BACKEND_SERVICE_SECRET:
        logger.warning("[Startup] No backend service token or secret; backend calls will fail")
    yield
    logger.info("[Shutdown] Orchestrator stopped")


app = FastAPI(
    title="RI Quote Orchestrator",
    description="Chat-driven quote builder. Collect → Summarize → Confirm → Create.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Restrict CORS to configured origins and explicit headers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cache-Control"] = "no-store"
    return response


app.include_router(assistant.router, prefix="/assistant", tags=["assistant"])


@app.get("/health")
def health():
    return {"status": "UP"}
