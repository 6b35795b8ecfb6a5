"""
Conversation states and keyword tables for the quote dialogue.

Keywords are matched against normalized text (lower-case, no accents),
so every entry here must already be normalized.
"""
from enum import Enum


class ConversationState(str, Enum):
    START = "START"
    CAPTURE_CLIENT_TYPE = "CAPTURE_CLIENT_TYPE"
    CAPTURE_CLIENT_EXISTING_NAME = "CAPTURE_CLIENT_EXISTING_NAME"
    CAPTURE_CLIENT_EXISTING_DISAMBIGUATION = "CAPTURE_CLIENT_EXISTING_DISAMBIGUATION"
    CAPTURE_CLIENT_MANUAL = "CAPTURE_CLIENT_MANUAL"
    CAPTURE_ADDRESS_MANUAL = "CAPTURE_ADDRESS_MANUAL"
    CAPTURE_BRANCH = "CAPTURE_BRANCH"
    CAPTURE_JOB_TYPE = "CAPTURE_JOB_TYPE"
    CAPTURE_LABOR_COST = "CAPTURE_LABOR_COST"
    CAPTURE_MATERIALS_CONFIRM = "CAPTURE_MATERIALS_CONFIRM"
    CAPTURE_MATERIALS = "CAPTURE_MATERIALS"
    CAPTURE_EQUIPMENT_CONFIRM = "CAPTURE_EQUIPMENT_CONFIRM"
    CAPTURE_EQUIPMENT = "CAPTURE_EQUIPMENT"
    CAPTURE_EXTRAS_CONFIRM = "CAPTURE_EXTRAS_CONFIRM"
    CAPTURE_EXTRAS = "CAPTURE_EXTRAS"
    SUMMARY = "SUMMARY"
    CONFIRMATION = "CONFIRMATION"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (ConversationState.SUCCESS, ConversationState.ERROR)


class ClientMode:
    EXISTING = "existing"
    MANUAL = "manual"


# Client type (matched on word boundaries)
EXISTING_CLIENT_KEYWORDS = [
    "existente", "existentes", "existing", "ya existe", "ya tenemos", "ya lo tenemos",
    "registrado", "cargado", "buscar", "busca", "de la base",
]
MANUAL_CLIENT_KEYWORDS = [
    "manual", "nuevo", "nueva", "new", "walk-in", "walk in", "particular",
    "consumidor final", "no lo tengo", "no esta cargado",
]
# Whole-message replies that switch an existing-client search to manual entry
SWITCH_TO_MANUAL_REPLIES = {"manual", "nuevo", "nueva", "cargar manual", "cliente manual", "new"}
# Whole-message replies that drop the current match list and search again
NEW_SEARCH_REPLIES = {"otro", "otra", "ninguno", "ninguna", "buscar otro", "buscar de nuevo", "otra busqueda", "other"}

# Yes / No (whole reply, or first word)
YES_KEYWORDS = {
    "si", "yes", "ok", "okay", "dale", "claro", "afirmativo", "correcto",
    "obvio", "bueno", "sip", "seguro", "de una", "por supuesto",
}
NO_KEYWORDS = {
    "no", "n", "nop", "nope", "nada", "negativo", "ninguno", "ninguna", "sin", "omitir",
    "saltar", "paso",
}

# Explicit commit confirmation (in addition to a bare affirmative)
CONFIRM_KEYWORDS = {
    "confirmar", "confirmo", "confirmado", "confirm", "i confirm", "confirmed",
    "yo confirmo", "lo confirmo",
}
# Whole-message affirmatives that also commit in CONFIRMATION
BARE_AFFIRMATIVES = {"si", "yes", "ok", "dale", "confirmo"}

# Close the current item category
FINISH_KEYWORDS = {
    "terminar", "termine", "terminado", "listo", "fin", "finalizar", "cerrar",
    "resumen", "ya esta", "eso es todo", "nada mas",
    "finish", "done", "close", "ready", "summary",
}

# Canonical job types; the stored value is always one of these verbatim
JOB_TYPE_CATALOG = (
    "Instalacion",
    "Mantenimiento preventivo",
    "Mantenimiento correctivo",
    "Reparacion",
    "Relevamiento tecnico",
    "Service",
    "Obra",
)
