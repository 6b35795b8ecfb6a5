"""
Conversation session model.

WHY THE DRAFT IS TYPED:
- Each dialogue state reads and writes a known set of fields
- A typed draft catches misspelled slots at review time instead of at commit
- Field names are mapped to the backend's names in one place only:
  the commit payload builder

Lifecycle:
    1. Created on the first message with state START
    2. Mutated in place by the dialogue engine, one turn at a time
    3. Removed by the session store on SUCCESS / ERROR, or after idle expiry
"""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from orchestrator.agent.conversation_state import ConversationState


@dataclass
class QuoteItem:
    description: str
    amount: float


@dataclass
class QuoteDraft:
    """Slots collected so far. Item lists are None until their category is accepted."""

    # Client
    client_mode: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    client_matches: List[Dict[str, Any]] = field(default_factory=list)
    manual_client_name: Optional[str] = None
    manual_address: Optional[str] = None

    # Branch
    branches: List[Dict[str, Any]] = field(default_factory=list)
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None

    # Job
    job_type: Optional[str] = None
    labor_cost: Optional[float] = None
    awaiting_zero_labor_confirmation: bool = False

    # Items
    materials: Optional[List[QuoteItem]] = None
    equipment: Optional[List[QuoteItem]] = None
    extras: Optional[List[QuoteItem]] = None

    # Summary / commit
    approved: bool = False
    status: Optional[str] = None
    total_cost: Optional[float] = None
    total_with_tax: Optional[float] = None

    def items(self, category: str) -> Optional[List[QuoteItem]]:
        return getattr(self, category)

    def start_items(self, category: str) -> None:
        if getattr(self, category) is None:
            setattr(self, category, [])

    def add_item(self, category: str, description: str, amount: float) -> QuoteItem:
        self.start_items(category)
        item = QuoteItem(description=description, amount=amount)
        getattr(self, category).append(item)
        return item

    def item_total(self, category: str) -> float:
        return sum(item.amount for item in (getattr(self, category) or []))


@dataclass
class ConversationSession:
    session_id: str
    state: ConversationState = ConversationState.START
    context: QuoteDraft = field(default_factory=QuoteDraft)
    last_updated: float = field(default_factory=time.time)

    def __repr__(self):
        return f"<ConversationSession session_id={self.session_id} state={self.state.value}>"
