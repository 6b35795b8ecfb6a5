"""
Dialogue Engine — per-session state machine for building a quote.

================================================================================
ARCHITECTURE
================================================================================

One inbound (session_id, message) pair per call:
1. Session store: fetch or create the session
2. Dispatch on the current state (deterministic parsers first, the NLU
   adapter only when they are inconclusive)
3. Mutate the draft, compute the next state and the reply
4. Session store: update, or remove when the session ended

SAFETY GUARANTEES:
- The backend commit happens ONLY in CONFIRMATION, ONLY on an explicit
  confirm keyword or a bare affirmative, and at most once per reply
- The oracle never decides a commit; its answers are advisory
- Any unexpected exception ends the session in ERROR with a generic
  message instead of looping on an unknown fault
================================================================================
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from orchestrator.core.exceptions import BackendUnavailableError, QuoteCommitError
from orchestrator.core.text import normalize
from orchestrator.models.conversation_session import ConversationSession, QuoteDraft
from orchestrator.services.session_store import SessionStore

from .conversation_state import (
    JOB_TYPE_CATALOG,
    NEW_SEARCH_REPLIES,
    SWITCH_TO_MANUAL_REPLIES,
    ClientMode,
    ConversationState,
)
from .quote_gateway import QuoteCommitGateway
from .slot_parsers import (
    classify_client_type,
    classify_yes_no,
    extract_object_id,
    is_confirmation,
    is_finish,
    match_branch,
    match_job_type,
    parse_amount,
    parse_index,
    parse_item_line,
)

logger = logging.getLogger(__name__)

S = ConversationState


# ============================================================================
# REPLY TEXTS
# ============================================================================

OPENING_PROMPT = (
    "¡Hola! Vamos a armar una nueva cotización.\n"
    "¿El cliente es EXISTENTE (ya está cargado) o querés cargarlo MANUAL?"
)
CLIENT_TYPE_REPROMPT = "No entendí. Respondé EXISTENTE para buscar un cliente cargado, o MANUAL para cargar uno nuevo."
ASK_CLIENT_NAME = "Decime el nombre del cliente a buscar (o su ID)."
CLIENT_NOT_FOUND = "No encontré clientes con \"{query}\". Probá con otro nombre, o escribí MANUAL para cargarlo a mano."
CLIENT_ID_NOT_FOUND = "No encontré un cliente con ID {client_id}. Decime el nombre del cliente a buscar."
BACKEND_UNAVAILABLE = (
    "No pude verificar el cliente en este momento. "
    "Probá de nuevo en unos minutos, o escribí MANUAL para cargarlo a mano."
)
MULTIPLE_MATCHES = "Encontré {count} clientes. ¿Cuál es? Respondé con el número:\n{options}"
DISAMBIGUATION_REPROMPT = "Elegí un número entre 1 y {count}, o escribí OTRO para buscar de nuevo:\n{options}"
ASK_MANUAL_NAME = "Decime el nombre del cliente."
ASK_ADDRESS = "Decime la dirección del trabajo."
CLIENT_SELECTED = "Cliente: {name}."
ASK_BRANCH = "¿En qué sucursal es el trabajo? Respondé con el número o el nombre:\n{options}"
NO_BRANCHES = (
    "El cliente {name} no tiene sucursales disponibles. "
    "Escribí MANUAL para cargar el cliente y la dirección a mano."
)
ASK_JOB_TYPE = "¿Qué tipo de trabajo es? Opciones: {options}."
JOB_TYPE_REPROMPT = "No reconozco ese tipo de trabajo. Elegí una de estas opciones: {options}."
ASK_LABOR = "¿Cuál es el costo de mano de obra? (solo el número, ej: 15000)"
LABOR_REPROMPT = "Necesito un monto válido para la mano de obra (un número mayor o igual a 0, ej: 15000)."
ZERO_LABOR_CONFIRM = "La mano de obra quedó en $0. ¿Es correcto? (sí / no)"
ITEM_CONFIRM_REPROMPT = "Respondé sí o no. {question}"
ASK_ITEM = "Agregá {label} con el formato \"descripción monto\" (ej: {example}). Escribí LISTO cuando termines."
ITEM_ADDED = "Agregado: {description} ({amount}). Agregá otro, o escribí LISTO para terminar con {label}."
ITEM_PARSE_FAILED = "No pude leer el ítem. Usá el formato \"descripción monto\", por ejemplo: {example}."
NEED_ONE_ITEM = "Todavía no agregaste {label}. Agregá al menos uno con el formato \"descripción monto\" (ej: {example})."
CATEGORY_CLOSED = "Listo, {count} ítem(s) de {label} por {total}."
CONFIRMATION_PROMPT = "¿Confirmás esta cotización? Respondé CONFIRMAR para guardarla."
COMMIT_FAILED = (
    "No pude guardar la cotización en el sistema. Tus datos siguen cargados: "
    "respondé CONFIRMAR para reintentar."
)
SUCCESS_MESSAGE = "¡Cotización creada con éxito!{reference}"
SUCCESS_TERMINAL = "Esta cotización ya fue creada. Iniciá una nueva conversación para cargar otra."
ERROR_MESSAGE = "Ocurrió un error inesperado y la conversación se cerró. Iniciá una nueva para continuar."


# ============================================================================
# ITEM CATEGORIES (shared confirm → capture → finish sub-flow)
# ============================================================================

@dataclass(frozen=True)
class ItemCategory:
    key: str
    label: str
    confirm_state: ConversationState
    capture_state: ConversationState
    next_confirm_state: Optional[ConversationState]
    question: str
    example: str


ITEM_CATEGORIES = (
    ItemCategory(
        key="materials",
        label="materiales",
        confirm_state=S.CAPTURE_MATERIALS_CONFIRM,
        capture_state=S.CAPTURE_MATERIALS,
        next_confirm_state=S.CAPTURE_EQUIPMENT_CONFIRM,
        question="¿Querés agregar materiales?",
        example="caño de cobre 3/8 12500",
    ),
    ItemCategory(
        key="equipment",
        label="equipos",
        confirm_state=S.CAPTURE_EQUIPMENT_CONFIRM,
        capture_state=S.CAPTURE_EQUIPMENT,
        next_confirm_state=S.CAPTURE_EXTRAS_CONFIRM,
        question="¿Querés agregar equipos?",
        example="split 3000 frigorías 450000",
    ),
    ItemCategory(
        key="extras",
        label="extras",
        confirm_state=S.CAPTURE_EXTRAS_CONFIRM,
        capture_state=S.CAPTURE_EXTRAS,
        next_confirm_state=None,
        question="¿Querés agregar extras?",
        example="viáticos 8000",
    ),
)
CATEGORY_BY_CONFIRM = {c.confirm_state: c for c in ITEM_CATEGORIES}
CATEGORY_BY_CAPTURE = {c.capture_state: c for c in ITEM_CATEGORIES}


# ============================================================================
# RENDER HELPERS
# ============================================================================

def format_money(value: Optional[float]) -> str:
    return f"${(value or 0.0):.2f}"


def numbered(options: Sequence[str]) -> str:
    return "\n".join(f"{i}. {option}" for i, option in enumerate(options, 1))


def render_summary(draft: QuoteDraft, tax_multiplier: float) -> str:
    """Deterministic summary text; also the fallback for the humanized version."""
    lines = ["Resumen de la cotización:"]
    if draft.client_mode == ClientMode.MANUAL:
        lines.append(f"Cliente: {draft.manual_client_name} (manual)")
        lines.append(f"Dirección: {draft.manual_address}")
    else:
        lines.append(f"Cliente: {draft.client_name} (ID {draft.client_id})")
        lines.append(f"Sucursal: {draft.branch_name}")
    lines.append(f"Tipo de trabajo: {draft.job_type}")
    lines.append(f"Mano de obra: {format_money(draft.labor_cost)}")

    for category in ITEM_CATEGORIES:
        items = draft.items(category.key) or []
        title = category.label.capitalize()
        if not items:
            lines.append(f"{title}: sin ítems")
            continue
        lines.append(f"{title}:")
        for item in items:
            lines.append(f"  - {item.description}: {format_money(item.amount)}")

    tax_percent = round((tax_multiplier - 1) * 100)
    lines.append(f"Total sin IVA: {format_money(draft.total_cost)}")
    lines.append(f"Total con IVA ({tax_percent}%): {format_money(draft.total_with_tax)}")
    return "\n".join(lines)


@dataclass
class TurnResult:
    session_id: str
    state: ConversationState
    reply_text: str
    end_session: bool = False

    @property
    def awaiting_confirmation(self) -> bool:
        return self.state == S.CONFIRMATION


# ============================================================================
# ENGINE
# ============================================================================

class DialogueEngine:
    """Consumes one message per call and advances the session's state machine."""

    def __init__(
        self,
        backend,
        nlu,
        sessions: SessionStore,
        gateway: Optional[QuoteCommitGateway] = None,
        tax_multiplier: float = 1.21,
        humanize: bool = True,
        job_catalog: Sequence[str] = JOB_TYPE_CATALOG,
    ):
        """
        Args:
            backend: Client search/lookup collaborator (see services.backend_client)
            nlu: NluAdapter (or any object with the same methods)
            sessions: Session store owning every ConversationSession
            gateway: Commit gateway; defaults to one over `backend`
            tax_multiplier: Applied to the pre-tax total in SUMMARY
            humanize: Pass opening/summary/success texts through the oracle
            job_catalog: Canonical job-type names
        """
        self.backend = backend
        self.nlu = nlu
        self.sessions = sessions
        self.gateway = gateway or QuoteCommitGateway(backend)
        self.tax_multiplier = tax_multiplier
        self.humanize = humanize
        self.job_catalog = tuple(job_catalog)

        self._handlers: Dict[ConversationState, Callable[[ConversationSession, str], str]] = {
            S.START: self._on_start,
            S.CAPTURE_CLIENT_TYPE: self._on_client_type,
            S.CAPTURE_CLIENT_EXISTING_NAME: self._on_existing_name,
            S.CAPTURE_CLIENT_EXISTING_DISAMBIGUATION: self._on_disambiguation,
            S.CAPTURE_CLIENT_MANUAL: self._on_manual_name,
            S.CAPTURE_ADDRESS_MANUAL: self._on_manual_address,
            S.CAPTURE_BRANCH: self._on_branch,
            S.CAPTURE_JOB_TYPE: self._on_job_type,
            S.CAPTURE_LABOR_COST: self._on_labor_cost,
            S.SUMMARY: self._on_summary,
            S.CONFIRMATION: self._on_confirmation,
            S.SUCCESS: self._on_terminal,
            S.ERROR: self._on_terminal,
        }
        for category in ITEM_CATEGORIES:
            self._handlers[category.confirm_state] = self._on_item_confirm
            self._handlers[category.capture_state] = self._on_item_capture

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def handle_message(self, session_id: Optional[str], message: Optional[str]) -> TurnResult:
        """Run one full turn: fetch/create session, process, update or remove."""
        session_id = (session_id or "").strip() or str(uuid.uuid4())
        session = self.sessions.get_or_create(session_id)

        result = self.process(session, message)

        if result.end_session:
            self.sessions.remove(session_id)
        else:
            self.sessions.update(session)
        return result

    def process(self, session: ConversationSession, message: Optional[str]) -> TurnResult:
        """Evaluate `message` against the session's current state, mutating it in place."""
        message = message or ""
        previous = session.state
        try:
            reply = self._handlers[session.state](session, message)
        except Exception as e:
            logger.error(
                f"[Engine] Unexpected failure in state {previous.value} "
                f"(session={session.session_id}): {type(e).__name__}: {e}",
                exc_info=True,
            )
            session.state = S.ERROR
            return TurnResult(session.session_id, S.ERROR, ERROR_MESSAGE, end_session=True)

        if session.state != previous:
            logger.info(f"[Engine] {session.session_id}: {previous.value} → {session.state.value}")
        return TurnResult(
            session_id=session.session_id,
            state=session.state,
            reply_text=reply,
            end_session=session.state.is_terminal,
        )

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _say(self, instruction: str, fallback: str) -> str:
        if not self.humanize:
            return fallback
        return self.nlu.render(instruction, fallback)

    def _yes_no(self, message: str) -> Optional[bool]:
        answer = classify_yes_no(message)
        if answer is None and message.strip():
            answer = self.nlu.classify_yes_no(message)
        return answer

    def _job_type_options(self) -> str:
        return ", ".join(self.job_catalog)

    # ------------------------------------------------------------------
    # START / client type
    # ------------------------------------------------------------------

    def _on_start(self, session: ConversationSession, message: str) -> str:
        session.state = S.CAPTURE_CLIENT_TYPE
        return self._say("Saluda y pregunta si el cliente es existente o manual.", OPENING_PROMPT)

    def _on_client_type(self, session: ConversationSession, message: str) -> str:
        draft = session.context
        text = message.strip()

        object_id = extract_object_id(text)
        if object_id:
            draft.client_mode = ClientMode.EXISTING
            session.state = S.CAPTURE_CLIENT_EXISTING_NAME
            return self._resolve_client_by_id(session, object_id)

        mode = classify_client_type(text)
        if mode is None and text:
            oracle_type = self.nlu.classify_client_type(text)
            if oracle_type.value == "EXISTENTE":
                mode = ClientMode.EXISTING
            elif oracle_type.value == "MANUAL":
                mode = ClientMode.MANUAL

        if mode == ClientMode.EXISTING:
            draft.client_mode = ClientMode.EXISTING
            session.state = S.CAPTURE_CLIENT_EXISTING_NAME
            return ASK_CLIENT_NAME
        if mode == ClientMode.MANUAL:
            draft.client_mode = ClientMode.MANUAL
            session.state = S.CAPTURE_CLIENT_MANUAL
            return ASK_MANUAL_NAME
        return CLIENT_TYPE_REPROMPT

    # ------------------------------------------------------------------
    # Existing client: search, disambiguation, branch list
    # ------------------------------------------------------------------

    def _switch_to_manual(self, session: ConversationSession) -> str:
        draft = session.context
        draft.client_mode = ClientMode.MANUAL
        draft.client_id = None
        draft.client_name = None
        draft.client_matches = []
        draft.branches = []
        session.state = S.CAPTURE_CLIENT_MANUAL
        return ASK_MANUAL_NAME

    def _on_existing_name(self, session: ConversationSession, message: str) -> str:
        text = message.strip()
        if not text:
            return ASK_CLIENT_NAME
        if normalize(text) in SWITCH_TO_MANUAL_REPLIES:
            return self._switch_to_manual(session)

        object_id = extract_object_id(text)
        if object_id:
            return self._resolve_client_by_id(session, object_id)

        query = text
        extracted = self.nlu.extract_client_name(text)
        # The oracle may only trim the message, never invent a different name
        if extracted and normalize(extracted) in normalize(text):
            query = extracted

        try:
            matches = self.backend.search_clients_by_name(query)
        except BackendUnavailableError as e:
            logger.warning(f"[Engine] Client search unavailable for session {session.session_id}: {e}")
            return BACKEND_UNAVAILABLE

        if not matches:
            return CLIENT_NOT_FOUND.format(query=query)
        if len(matches) == 1:
            return self._select_client(session, matches[0])

        session.context.client_matches = [
            {"id": match["id"], "display_name": match["display_name"]} for match in matches
        ]
        session.state = S.CAPTURE_CLIENT_EXISTING_DISAMBIGUATION
        return MULTIPLE_MATCHES.format(count=len(matches), options=self._match_options(session))

    def _match_options(self, session: ConversationSession) -> str:
        return numbered([match["display_name"] for match in session.context.client_matches])

    def _on_disambiguation(self, session: ConversationSession, message: str) -> str:
        draft = session.context
        matches = draft.client_matches
        if not matches:
            session.state = S.CAPTURE_CLIENT_EXISTING_NAME
            return ASK_CLIENT_NAME

        if normalize(message) in NEW_SEARCH_REPLIES:
            draft.client_matches = []
            session.state = S.CAPTURE_CLIENT_EXISTING_NAME
            return ASK_CLIENT_NAME

        index = parse_index(message, len(matches))
        if index is None:
            return DISAMBIGUATION_REPROMPT.format(count=len(matches), options=self._match_options(session))
        return self._select_client(session, matches[index])

    def _resolve_client_by_id(self, session: ConversationSession, client_id: str) -> str:
        try:
            record = self.backend.get_client_by_id(client_id)
        except BackendUnavailableError as e:
            logger.warning(f"[Engine] Client lookup unavailable for session {session.session_id}: {e}")
            return BACKEND_UNAVAILABLE
        if not record:
            return CLIENT_ID_NOT_FOUND.format(client_id=client_id)
        return self._select_client(session, record)

    def _select_client(self, session: ConversationSession, record: Dict[str, Any]) -> str:
        """Resolve the client, load its branches and move to CAPTURE_BRANCH."""
        client_id = str(record["id"])
        try:
            branches = self.backend.get_client_branches(client_id)
        except BackendUnavailableError as e:
            logger.warning(f"[Engine] Branch lookup unavailable for client {client_id}: {e}")
            return BACKEND_UNAVAILABLE

        draft = session.context
        draft.client_mode = ClientMode.EXISTING
        draft.client_id = client_id
        draft.client_name = record.get("display_name") or client_id
        draft.client_matches = []
        draft.branches = branches
        session.state = S.CAPTURE_BRANCH

        selected = CLIENT_SELECTED.format(name=draft.client_name)
        return f"{selected}\n{self._branch_prompt(draft)}"

    def _branch_prompt(self, draft: QuoteDraft) -> str:
        if not draft.branches:
            return NO_BRANCHES.format(name=draft.client_name)
        return ASK_BRANCH.format(options=numbered([b["name"] for b in draft.branches]))

    def _on_branch(self, session: ConversationSession, message: str) -> str:
        draft = session.context
        if not draft.branches:
            if normalize(message) in SWITCH_TO_MANUAL_REPLIES:
                return self._switch_to_manual(session)
            return self._branch_prompt(draft)

        branch = match_branch(message, draft.branches)
        if branch is None:
            return self._branch_prompt(draft)

        draft.branch_id = branch["id"]
        draft.branch_name = branch["name"]
        session.state = S.CAPTURE_JOB_TYPE
        return f"Sucursal: {draft.branch_name}.\n" + ASK_JOB_TYPE.format(options=self._job_type_options())

    # ------------------------------------------------------------------
    # Manual client
    # ------------------------------------------------------------------

    def _on_manual_name(self, session: ConversationSession, message: str) -> str:
        name = message.strip()
        if not name:
            return ASK_MANUAL_NAME
        session.context.client_mode = ClientMode.MANUAL
        session.context.manual_client_name = name
        session.state = S.CAPTURE_ADDRESS_MANUAL
        return ASK_ADDRESS

    def _on_manual_address(self, session: ConversationSession, message: str) -> str:
        address = message.strip()
        if not address:
            return ASK_ADDRESS
        session.context.manual_address = address
        # Manual clients have no branch list
        session.state = S.CAPTURE_JOB_TYPE
        return ASK_JOB_TYPE.format(options=self._job_type_options())

    # ------------------------------------------------------------------
    # Job type and labor
    # ------------------------------------------------------------------

    def _on_job_type(self, session: ConversationSession, message: str) -> str:
        job_type = match_job_type(message, self.job_catalog)
        if job_type is None and message.strip():
            job_type = self.nlu.match_option(message, self.job_catalog)
        if job_type is None:
            return JOB_TYPE_REPROMPT.format(options=self._job_type_options())

        session.context.job_type = job_type
        session.state = S.CAPTURE_LABOR_COST
        return f"Tipo de trabajo: {job_type}.\n{ASK_LABOR}"

    def _on_labor_cost(self, session: ConversationSession, message: str) -> str:
        draft = session.context

        if draft.awaiting_zero_labor_confirmation:
            answer = self._yes_no(message)
            if answer is True:
                draft.awaiting_zero_labor_confirmation = False
                draft.labor_cost = 0.0
                return self._enter_category(session, ITEM_CATEGORIES[0])
            if answer is False:
                draft.awaiting_zero_labor_confirmation = False
                draft.labor_cost = None
                return ASK_LABOR
            amount = parse_amount(message)
            if amount is None or amount <= 0:
                return ZERO_LABOR_CONFIRM
            draft.awaiting_zero_labor_confirmation = False
        else:
            amount = parse_amount(message)
            if amount is None or amount < 0:
                return LABOR_REPROMPT
            if amount == 0:
                draft.labor_cost = 0.0
                draft.awaiting_zero_labor_confirmation = True
                return ZERO_LABOR_CONFIRM

        draft.labor_cost = amount
        return f"Mano de obra: {format_money(amount)}.\n" + self._enter_category(session, ITEM_CATEGORIES[0])

    # ------------------------------------------------------------------
    # Item sub-flow (materials / equipment / extras)
    # ------------------------------------------------------------------

    def _enter_category(self, session: ConversationSession, category: ItemCategory) -> str:
        session.state = category.confirm_state
        return category.question

    def _after_category(self, session: ConversationSession, category: ItemCategory) -> str:
        if category.next_confirm_state is None:
            return self._enter_summary(session)
        return self._enter_category(session, CATEGORY_BY_CONFIRM[category.next_confirm_state])

    def _on_item_confirm(self, session: ConversationSession, message: str) -> str:
        category = CATEGORY_BY_CONFIRM[session.state]
        answer = self._yes_no(message)
        if answer is True:
            session.context.start_items(category.key)
            session.state = category.capture_state
            return ASK_ITEM.format(label=category.label, example=category.example)
        if answer is False:
            return self._after_category(session, category)
        return ITEM_CONFIRM_REPROMPT.format(question=category.question)

    def _on_item_capture(self, session: ConversationSession, message: str) -> str:
        category = CATEGORY_BY_CAPTURE[session.state]
        draft = session.context
        items = draft.items(category.key) or []

        if is_finish(message):
            if not items:
                return NEED_ONE_ITEM.format(label=category.label, example=category.example)
            closed = CATEGORY_CLOSED.format(
                count=len(items),
                label=category.label,
                total=format_money(draft.item_total(category.key)),
            )
            return f"{closed}\n{self._after_category(session, category)}"

        if not message.strip():
            return ASK_ITEM.format(label=category.label, example=category.example)

        parsed = parse_item_line(message)
        if parsed is None:
            extracted = self.nlu.extract_item(message)
            if extracted is not None:
                parsed = (extracted.description, extracted.amount)
        if parsed is None:
            return ITEM_PARSE_FAILED.format(example=category.example)

        description, amount = parsed
        draft.add_item(category.key, description, amount)
        logger.info(
            f"[Engine] {session.session_id}: +{category.key} '{description}' {amount} "
            f"({len(draft.items(category.key))} total)"
        )
        return ITEM_ADDED.format(description=description, amount=format_money(amount), label=category.label)

    # ------------------------------------------------------------------
    # Summary and confirmation
    # ------------------------------------------------------------------

    def _compute_totals(self, draft: QuoteDraft) -> None:
        draft.approved = False
        draft.status = "pendiente"
        total = (draft.labor_cost or 0.0) + sum(draft.item_total(c.key) for c in ITEM_CATEGORIES)
        draft.total_cost = total
        draft.total_with_tax = total * self.tax_multiplier

    def _enter_summary(self, session: ConversationSession) -> str:
        session.state = S.SUMMARY
        draft = session.context
        self._compute_totals(draft)

        summary = self._say(
            "Presenta este resumen de cotización sin modificar montos ni datos.",
            render_summary(draft, self.tax_multiplier),
        )
        session.state = S.CONFIRMATION
        return f"{summary}\n\n{CONFIRMATION_PROMPT}"

    def _on_summary(self, session: ConversationSession, message: str) -> str:
        return self._enter_summary(session)

    def _on_confirmation(self, session: ConversationSession, message: str) -> str:
        if not is_confirmation(message):
            return CONFIRMATION_PROMPT

        try:
            result = self.gateway.commit(session.session_id, session.context)
        except QuoteCommitError as e:
            logger.warning(
                f"[Engine] Commit failed for session {session.session_id} "
                f"(status={e.status_code}): {e}. Session kept in CONFIRMATION."
            )
            return COMMIT_FAILED

        session.state = S.SUCCESS
        reference = _quote_reference(result)
        fallback = SUCCESS_MESSAGE.format(reference=f" Número: {reference}." if reference else "")
        return self._say("Informa que la cotización se creó correctamente.", fallback)

    def _on_terminal(self, session: ConversationSession, message: str) -> str:
        if session.state == S.SUCCESS:
            return SUCCESS_TERMINAL
        return ERROR_MESSAGE


def _quote_reference(result: Optional[Dict[str, Any]]) -> Optional[str]:
    if not result:
        return None
    for key in ("numeroCotizacion", "numero", "_id", "id"):
        if result.get(key):
            return str(result[key])
    return None
