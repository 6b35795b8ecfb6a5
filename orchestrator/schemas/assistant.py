from typing import Optional

from pydantic import BaseModel, Field

from orchestrator.agent.conversation_state import ConversationState


class AssistantRequest(BaseModel):
    """One inbound chat turn. A missing session_id starts a new conversation."""
    session_id: Optional[str] = Field(None, max_length=128)
    message: str = Field("", max_length=2000)


class AssistantResponse(BaseModel):
    session_id: str
    state: ConversationState
    reply_text: str
    end_session: bool = False
    awaiting_confirmation: bool = False
