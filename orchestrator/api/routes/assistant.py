"""
Assistant chat endpoint: one user message in, one reply out.
Trust: the quote is only created when the operator confirms in CONFIRMATION.
"""
import logging

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from orchestrator.agent.dialogue_engine import DialogueEngine
from orchestrator.api.deps import get_engine
from orchestrator.core.exceptions import ApiError
from orchestrator.schemas.assistant import AssistantRequest, AssistantResponse

logger = logging.getLogger(__name__)
router = APIRouter()


def _run_turn(engine: DialogueEngine, session_id, message: str):
    session_id = (session_id or "").strip() or None
    if session_id is None:
        return engine.handle_message(None, message)
    # Turns of the same conversation never interleave
    with engine.sessions.turn(session_id):
        return engine.handle_message(session_id, message)


@router.post("", response_model=AssistantResponse)
async def assistant(request: AssistantRequest, engine: DialogueEngine = Depends(get_engine)):
    """Advance the conversation identified by session_id (created if new)."""
    try:
        result = await run_in_threadpool(_run_turn, engine, request.session_id, request.message)
    except Exception as e:
        raise ApiError.server_error(e)

    logger.info(
        f"[Assistant] session={result.session_id} state={result.state.value} "
        f"end={result.end_session}"
    )
    return AssistantResponse(
        session_id=result.session_id,
        state=result.state,
        reply_text=result.reply_text,
        end_session=result.end_session,
        awaiting_confirmation=result.awaiting_confirmation,
    )
