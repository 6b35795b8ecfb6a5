import pytest

from nlu import NluAdapter
from orchestrator.agent import dialogue_engine as de
from orchestrator.agent.conversation_state import ClientMode, ConversationState as S
from orchestrator.agent.dialogue_engine import DialogueEngine
from orchestrator.core.exceptions import OracleError
from tests.conftest import BRANCH_ID, CLIENT_ID, OTHER_CLIENT_ID, FakeOracle

ROUND_TRIP = ["existente", CLIENT_ID, "1", "Instalacion", "1500", "no", "no", "no"]
MANUAL_START = ["hola", "manual", "Juan Pérez", "Av. Siempre Viva 742", "service"]


def session_draft(store, session_id="s-1"):
    return store.get(session_id).context


def scripted_engine(backend, store, responder, humanize=False):
    return DialogueEngine(
        backend=backend,
        nlu=NluAdapter(FakeOracle(responder)),
        sessions=store,
        humanize=humanize,
    )


# ---------------------------------------------------------------------------
# Opening and client type
# ---------------------------------------------------------------------------

def test_first_message_opens_conversation(talk):
    result = talk("hola")
    assert result.state == S.CAPTURE_CLIENT_TYPE
    assert result.reply_text == de.OPENING_PROMPT
    assert not result.end_session
    assert not result.awaiting_confirmation


def test_unrecognized_client_type_reprompts(talk):
    result = talk("hola", "qué?")
    assert result.state == S.CAPTURE_CLIENT_TYPE
    assert result.reply_text == de.CLIENT_TYPE_REPROMPT


def test_client_type_falls_back_to_oracle(backend, store):
    engine = scripted_engine(backend, store, lambda prompt: "EXISTENTE")
    engine.handle_message("s-1", "hola")
    result = engine.handle_message("s-1", "es alguien que ya nos compró")
    assert result.state == S.CAPTURE_CLIENT_EXISTING_NAME
    assert session_draft(store).client_mode == ClientMode.EXISTING


def test_client_type_with_object_id_resolves_directly(talk, store):
    result = talk("hola", f"existente {CLIENT_ID}")
    assert result.state == S.CAPTURE_BRANCH
    assert "Acme SA" in result.reply_text
    assert "1. Casa Central" in result.reply_text
    assert session_draft(store).client_id == CLIENT_ID


# ---------------------------------------------------------------------------
# Existing client search
# ---------------------------------------------------------------------------

def test_single_match_moves_to_branch(talk, store, backend):
    result = talk("hola", "existente", "Acme SA")
    assert result.state == S.CAPTURE_BRANCH
    assert backend.searches == ["Acme SA"]

    result = talk("central")
    assert result.state == S.CAPTURE_JOB_TYPE
    draft = session_draft(store)
    assert draft.branch_id == BRANCH_ID
    assert draft.branch_name == "Casa Central"


def test_no_matches_stays_in_search(talk):
    result = talk("hola", "existente", "Zeta")
    assert result.state == S.CAPTURE_CLIENT_EXISTING_NAME
    assert "Zeta" in result.reply_text


def test_unknown_object_id_stays_in_search(talk):
    result = talk("hola", "existente", "ffffffffffffffffffffffff")
    assert result.state == S.CAPTURE_CLIENT_EXISTING_NAME
    assert "ffffffffffffffffffffffff" in result.reply_text


def test_backend_unavailable_is_not_reported_as_no_matches(talk, backend):
    talk("hola", "existente")
    backend.unavailable = True
    result = talk("acme")
    assert result.state == S.CAPTURE_CLIENT_EXISTING_NAME
    assert result.reply_text == de.BACKEND_UNAVAILABLE

    result = talk("manual")
    assert result.state == S.CAPTURE_CLIENT_MANUAL


def test_oracle_name_extraction_only_trims(backend, store):
    engine = scripted_engine(backend, store, lambda prompt: '{"name": "Acme SA"}')
    for message in ["hola", "existente", "busco al cliente acme sa"]:
        result = engine.handle_message("s-1", message)
    assert backend.searches == ["Acme SA"]
    assert result.state == S.CAPTURE_BRANCH


def test_oracle_invented_name_is_ignored(backend, store):
    engine = scripted_engine(backend, store, lambda prompt: '{"name": "Globex"}')
    for message in ["hola", "existente", "acme"]:
        engine.handle_message("s-1", message)
    assert backend.searches == ["acme"]


def test_disambiguation_flow(talk, store):
    result = talk("hola", "existente", "acme")
    assert result.state == S.CAPTURE_CLIENT_EXISTING_DISAMBIGUATION
    assert "1. Acme SA" in result.reply_text
    assert "2. Acme Norte SRL" in result.reply_text
    assert len(session_draft(store).client_matches) == 2

    result = talk("5")
    assert result.state == S.CAPTURE_CLIENT_EXISTING_DISAMBIGUATION
    assert "entre 1 y 2" in result.reply_text

    result = talk("2")
    assert result.state == S.CAPTURE_BRANCH
    draft = session_draft(store)
    assert draft.client_id == OTHER_CLIENT_ID
    assert draft.client_matches == []


def test_disambiguation_can_restart_search(talk, store):
    talk("hola", "existente", "acme")
    result = talk("otro")
    assert result.state == S.CAPTURE_CLIENT_EXISTING_NAME
    assert session_draft(store).client_matches == []


def test_client_without_branches_can_switch_to_manual(talk, store):
    result = talk("hola", "existente", OTHER_CLIENT_ID)
    assert result.state == S.CAPTURE_BRANCH
    assert "MANUAL" in result.reply_text

    result = talk("1")
    assert result.state == S.CAPTURE_BRANCH

    result = talk("manual")
    assert result.state == S.CAPTURE_CLIENT_MANUAL
    draft = session_draft(store)
    assert draft.client_mode == ClientMode.MANUAL
    assert draft.client_id is None


def test_unmatched_branch_reprompts(talk):
    result = talk("hola", "existente", CLIENT_ID, "sucursal marte")
    assert result.state == S.CAPTURE_BRANCH
    assert "1. Casa Central" in result.reply_text


# ---------------------------------------------------------------------------
# Manual client, job type and labor
# ---------------------------------------------------------------------------

def test_manual_path_skips_branch(talk, store):
    result = talk(*MANUAL_START[:4])
    assert result.state == S.CAPTURE_JOB_TYPE
    draft = session_draft(store)
    assert draft.manual_client_name == "Juan Pérez"
    assert draft.manual_address == "Av. Siempre Viva 742"
    assert draft.branch_id is None


def test_blank_manual_values_reprompt(talk):
    assert talk("hola", "manual", "   ").state == S.CAPTURE_CLIENT_MANUAL
    assert talk("Juan", "").state == S.CAPTURE_ADDRESS_MANUAL


def test_job_type_must_come_from_catalog(talk, store):
    result = talk(*MANUAL_START[:4], "pintura")
    assert result.state == S.CAPTURE_JOB_TYPE

    result = talk("mantenimiento preventivo")
    assert result.state == S.CAPTURE_LABOR_COST
    assert session_draft(store).job_type == "Mantenimiento preventivo"


def test_job_type_oracle_answer_outside_catalog_is_rejected(backend, store):
    engine = scripted_engine(backend, store, lambda prompt: "Pintura")
    for message in MANUAL_START[:4]:
        engine.handle_message("s-1", message)
    result = engine.handle_message("s-1", "pintar la fachada")
    assert result.state == S.CAPTURE_JOB_TYPE


def test_job_type_oracle_fallback(backend, store):
    engine = scripted_engine(backend, store, lambda prompt: "Reparacion")
    for message in MANUAL_START[:4]:
        engine.handle_message("s-1", message)
    result = engine.handle_message("s-1", "hay que arreglar el equipo")
    assert result.state == S.CAPTURE_LABOR_COST
    assert session_draft(store).job_type == "Reparacion"


@pytest.mark.parametrize("reply", ["-5", "mucho", ""])
def test_invalid_labor_reprompts(talk, store, reply):
    result = talk(*MANUAL_START, reply)
    assert result.state == S.CAPTURE_LABOR_COST
    assert session_draft(store).labor_cost is None


def test_zero_labor_requires_confirmation(talk, store):
    result = talk(*MANUAL_START, "0")
    assert result.state == S.CAPTURE_LABOR_COST
    assert result.reply_text == de.ZERO_LABOR_CONFIRM
    assert session_draft(store).awaiting_zero_labor_confirmation

    result = talk("sí")
    assert result.state == S.CAPTURE_MATERIALS_CONFIRM
    draft = session_draft(store)
    assert draft.labor_cost == 0.0
    assert not draft.awaiting_zero_labor_confirmation


def test_labor_with_dot_thousands_separator(talk, store):
    result = talk(*MANUAL_START, "15.000")
    assert result.state == S.CAPTURE_MATERIALS_CONFIRM
    assert session_draft(store).labor_cost == 15000.0
    assert "$15000.00" in result.reply_text


def test_rejected_zero_labor_asks_again(talk, store):
    result = talk(*MANUAL_START, "0", "no")
    assert result.state == S.CAPTURE_LABOR_COST
    assert session_draft(store).labor_cost is None

    result = talk("2000")
    assert result.state == S.CAPTURE_MATERIALS_CONFIRM
    assert session_draft(store).labor_cost == 2000.0


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

def test_item_categories_and_totals(talk, store, backend):
    result = talk(*MANUAL_START, "1000", "si")
    assert result.state == S.CAPTURE_MATERIALS

    result = talk("listo")
    assert result.state == S.CAPTURE_MATERIALS
    assert "al menos uno" in result.reply_text

    result = talk("cable 500", "caño 3/8 1200")
    assert result.state == S.CAPTURE_MATERIALS
    result = talk("listo")
    assert result.state == S.CAPTURE_EQUIPMENT_CONFIRM

    result = talk("no", "si", "viáticos 300", "done")
    assert result.state == S.CONFIRMATION
    assert result.awaiting_confirmation

    draft = session_draft(store)
    assert [(i.description, i.amount) for i in draft.materials] == [("cable", 500.0), ("caño 3/8", 1200.0)]
    assert draft.equipment is None
    assert [(i.description, i.amount) for i in draft.extras] == [("viáticos", 300.0)]
    assert draft.total_cost == pytest.approx(3000.0)
    assert draft.total_with_tax == pytest.approx(3630.0)
    assert "$3630.00" in result.reply_text
    assert backend.created == []


def test_unparseable_item_reprompts(talk, store):
    result = talk(*MANUAL_START, "1000", "si", "cable")
    assert result.state == S.CAPTURE_MATERIALS
    assert session_draft(store).materials == []


def test_item_oracle_extraction(backend, store):
    engine = scripted_engine(backend, store, lambda prompt: '{"description": "Cable UTP", "amount": 1000}')
    for message in [*MANUAL_START, "1000", "si"]:
        engine.handle_message("s-1", message)
    result = engine.handle_message("s-1", "un par de cables a quinientos")
    assert result.state == S.CAPTURE_MATERIALS
    item = session_draft(store).materials[0]
    assert (item.description, item.amount) == ("Cable UTP", 1000.0)


def test_unclear_item_confirm_reprompts(talk):
    result = talk(*MANUAL_START, "1000", "capaz")
    assert result.state == S.CAPTURE_MATERIALS_CONFIRM


# ---------------------------------------------------------------------------
# Summary, confirmation and commit
# ---------------------------------------------------------------------------

def test_round_trip_reaches_confirmation(talk, store, backend):
    result = talk(*ROUND_TRIP)
    assert result.state == S.CONFIRMATION
    assert result.awaiting_confirmation
    assert not result.end_session
    assert "$1500.00" in result.reply_text
    assert "$1815.00" in result.reply_text
    assert result.reply_text.endswith(de.CONFIRMATION_PROMPT)

    draft = session_draft(store)
    assert draft.labor_cost == 1500.0
    assert draft.total_with_tax == pytest.approx(1815.0)
    assert draft.approved is False
    assert draft.status == "pendiente"
    assert backend.created == []


def test_confirmation_commits_once_and_ends_session(talk, store, backend):
    talk(*ROUND_TRIP)
    result = talk("CONFIRMAR")
    assert result.state == S.SUCCESS
    assert result.end_session
    assert "COT-0001" in result.reply_text
    assert "s-1" not in store

    assert len(backend.created) == 1
    payload = backend.created[0]
    assert payload["clienteId"] == CLIENT_ID
    assert payload["sucursalId"] == BRANCH_ID
    assert payload["totalIva"] == pytest.approx(1815.0)


def test_non_confirmation_reply_does_not_commit(talk, backend):
    talk(*ROUND_TRIP)
    result = talk("mmm, dejame pensar")
    assert result.state == S.CONFIRMATION
    assert backend.created == []


@pytest.mark.parametrize(
    "reply",
    [
        "agregar otro material",
        "si pero cambiá la mano de obra a 2000",
        "bueno, esperá que reviso",
        "ok falta un equipo",
        "y el IVA?",
    ],
)
def test_affirmative_with_more_to_say_does_not_commit(talk, store, backend, reply):
    talk(*ROUND_TRIP)
    result = talk(reply)
    assert result.state == S.CONFIRMATION
    assert result.reply_text == de.CONFIRMATION_PROMPT
    assert backend.created == []
    assert "s-1" in store


def test_commit_failure_keeps_session_for_retry(talk, store, backend):
    backend.commit_failures = 1
    talk(*ROUND_TRIP)

    result = talk("confirmar")
    assert result.state == S.CONFIRMATION
    assert result.reply_text == de.COMMIT_FAILED
    assert "s-1" in store
    assert backend.created == []

    result = talk("confirmar")
    assert result.state == S.SUCCESS
    assert len(backend.created) == 1


def test_manual_quote_payload(talk, backend):
    talk(*MANUAL_START, "800", "no", "no", "no", "si")
    payload = backend.created[0]
    assert payload["clienteManual"] == {"nombre": "Juan Pérez", "direccion": "Av. Siempre Viva 742"}
    assert payload["tipoDeTrabajo"] == "Service"
    assert payload["materiales"] == []


@pytest.mark.parametrize("steps", [1, 3, 5, 7])
def test_confirm_keyword_never_commits_before_confirmation(talk, backend, steps):
    talk(*ROUND_TRIP[:steps])
    talk("confirmar")
    assert backend.created == []


def test_message_after_success_starts_new_conversation(talk):
    talk(*ROUND_TRIP, "confirmar")
    result = talk("hola")
    assert result.state == S.CAPTURE_CLIENT_TYPE


# ---------------------------------------------------------------------------
# Rendering, errors and session handling
# ---------------------------------------------------------------------------

def test_humanized_texts_come_from_oracle(backend, store):
    def responder(prompt):
        if "Reescribi" in prompt:
            return "¡Buenas! Contame si el cliente ya existe o es nuevo."
        raise OracleError("not scripted")

    engine = scripted_engine(backend, store, responder, humanize=True)
    result = engine.handle_message("s-1", "hola")
    assert result.reply_text == "¡Buenas! Contame si el cliente ya existe o es nuevo."

    for message in ROUND_TRIP[1:]:
        result = engine.handle_message("s-1", message)
    assert result.state == S.CONFIRMATION
    assert result.reply_text.endswith(de.CONFIRMATION_PROMPT)


def test_unexpected_failure_ends_in_error(talk, store, backend):
    def broken(name):
        raise RuntimeError("bug")

    backend.search_clients_by_name = broken
    result = talk("hola", "existente", "acme")
    assert result.state == S.ERROR
    assert result.end_session
    assert result.reply_text == de.ERROR_MESSAGE
    assert "s-1" not in store


def test_blank_session_id_gets_generated(engine, store):
    result = engine.handle_message("  ", "hola")
    assert result.session_id.strip()
    assert result.session_id in store

    again = engine.handle_message(result.session_id, "manual")
    assert again.state == S.CAPTURE_CLIENT_MANUAL


def test_sessions_are_independent(talk):
    talk("hola", "manual", session_id="a")
    result = talk("hola", session_id="b")
    assert result.state == S.CAPTURE_CLIENT_TYPE
    assert talk("Ana", session_id="a").state == S.CAPTURE_ADDRESS_MANUAL
