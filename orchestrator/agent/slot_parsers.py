"""
Deterministic slot parsers — the source of truth whenever they apply.

Architecture:
1. Identifiers, amounts and item lines come from regex extraction
2. Yes/No/Confirm/Finish come from fixed keyword sets on normalized text
3. Catalog and branch matching use normalized comparison

Classifiers are biased toward "no answer": ambiguous input is neither yes
nor no, and the caller re-prompts. Only when a parser returns None does
the dialogue consult the language oracle.
"""
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from orchestrator.core.text import normalize

from .conversation_state import (
    BARE_AFFIRMATIVES,
    CONFIRM_KEYWORDS,
    EXISTING_CLIENT_KEYWORDS,
    FINISH_KEYWORDS,
    JOB_TYPE_CATALOG,
    MANUAL_CLIENT_KEYWORDS,
    NO_KEYWORDS,
    YES_KEYWORDS,
    ClientMode,
)

OBJECT_ID_RE = re.compile(r"(?<![0-9a-fA-F])[0-9a-fA-F]{24}(?![0-9a-fA-F])")
# Dot-grouped thousands ("15.000", "1.500.000,50") first, then comma-grouped
# ("1,500,000.50"), then a plain decimal with one separator
NUMBER_RE = re.compile(r"(-)?([1-9]\d{0,2}(?:\.\d{3})+(?!\d)(?:,\d+)?|\d{1,3}(?:,\d{3}){2,}(?:\.\d+)?|\d+(?:[.,]\d+)?)")
DOT_GROUPED_RE = re.compile(r"[1-9]\d{0,2}(?:\.\d{3})+(?:,\d+)?")
INDEX_RE = re.compile(r"#?\s*(\d{1,4})\s*[.)]?")
_PUNCT_RE = re.compile(r"[¡!¿?.,;:]+")
_DESCRIPTION_TRIM = " \t-:,;=$"


# ============================================================================
# IDENTIFIERS AND NUMBERS
# ============================================================================

def extract_object_id(text: Optional[str]) -> Optional[str]:
    """First 24-character hexadecimal run, as-is."""
    if not text:
        return None
    match = OBJECT_ID_RE.search(text)
    return match.group(0) if match else None


def _to_float(sign: Optional[str], token: str) -> Optional[float]:
    if DOT_GROUPED_RE.fullmatch(token):
        token = token.replace(".", "").replace(",", ".")
    elif token.count(",") >= 2:
        token = token.replace(",", "")
    else:
        token = token.replace(",", ".")
    try:
        value = float(token)
    except ValueError:
        return None
    return -value if sign else value


def parse_amount(text: Optional[str]) -> Optional[float]:
    """First number in the text. "15.000" is fifteen thousand; "12,5" and "12.5" are decimals.

    A leading minus sign is kept so callers can reject negative values.
    """
    if not text or OBJECT_ID_RE.search(text):
        return None
    match = NUMBER_RE.search(text)
    if not match:
        return None
    return _to_float(match.group(1), match.group(2))


def parse_item_line(text: Optional[str]) -> Optional[Tuple[str, float]]:
    """Split "description ... amount" on the LAST number in the line.

    Returns:
        (description, amount) or None when there is no number, the amount
        is negative, or nothing is left for the description
    """
    if not text:
        return None
    matches = list(NUMBER_RE.finditer(text))
    if not matches:
        return None

    last = matches[-1]
    amount = _to_float(last.group(1), last.group(2))
    if amount is None or amount < 0:
        return None

    description = (text[: last.start()] + " " + text[last.end():]).strip()
    description = re.sub(r"\s+", " ", description).strip(_DESCRIPTION_TRIM).strip()
    if not description:
        return None
    return description, amount


def parse_index(text: Optional[str], size: int) -> Optional[int]:
    """1-based selection → 0-based index, or None if not an integer in range."""
    match = INDEX_RE.fullmatch(normalize(text))
    if not match:
        return None
    choice = int(match.group(1))
    if 1 <= choice <= size:
        return choice - 1
    return None


# ============================================================================
# KEYWORD CLASSIFIERS
# ============================================================================

def _words(text: Optional[str]) -> str:
    """Normalized text with punctuation dropped and whitespace collapsed."""
    return re.sub(r"\s+", " ", _PUNCT_RE.sub(" ", normalize(text))).strip()


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(r"(?<![a-z0-9])" + re.escape(phrase) + r"(?![a-z0-9])", text) is not None


def _leading_match(text: str, keywords: Iterable[str]) -> bool:
    if text in keywords:
        return True
    first = text.split(" ", 1)[0] if text else ""
    return first in keywords


def is_yes(text: Optional[str]) -> bool:
    words = _words(text)
    if not words:
        return False
    return _leading_match(words, YES_KEYWORDS) and not _mentions_any(words, NO_KEYWORDS)


def is_no(text: Optional[str]) -> bool:
    words = _words(text)
    if not words:
        return False
    return _leading_match(words, NO_KEYWORDS) and not _mentions_any(words, YES_KEYWORDS)


def _mentions_any(words: str, keywords: Iterable[str]) -> bool:
    # Skip the first word: it was already used for the leading match
    rest = words.split(" ")[1:]
    return any(word in keywords for word in rest)


def classify_yes_no(text: Optional[str]) -> Optional[bool]:
    if is_yes(text):
        return True
    if is_no(text):
        return False
    return None


def is_confirmation(text: Optional[str]) -> bool:
    """The WHOLE reply is a confirm keyword or a bare affirmative.

    "si, pero cambiá la mano de obra" is not a confirmation.
    """
    words = _words(text)
    return words in CONFIRM_KEYWORDS or words in BARE_AFFIRMATIVES


def is_finish(text: Optional[str]) -> bool:
    """Close-category utterance. Anything carrying a number is an item, not a finish."""
    words = _words(text)
    if not words or any(ch.isdigit() for ch in words):
        return False
    if words in FINISH_KEYWORDS:
        return True
    return _leading_match(words, FINISH_KEYWORDS) and len(words.split(" ")) <= 3


def classify_client_type(text: Optional[str]) -> Optional[str]:
    """ClientMode.EXISTING / ClientMode.MANUAL, or None when keywords are absent or conflict."""
    if extract_object_id(text):
        return ClientMode.EXISTING
    words = _words(text)
    if not words:
        return None
    existing = any(_contains_phrase(words, kw) for kw in EXISTING_CLIENT_KEYWORDS)
    manual = any(_contains_phrase(words, kw) for kw in MANUAL_CLIENT_KEYWORDS)
    if existing and not manual:
        return ClientMode.EXISTING
    if manual and not existing:
        return ClientMode.MANUAL
    return None


# ============================================================================
# CATALOG AND OPTION MATCHING
# ============================================================================

def match_job_type(text: Optional[str], catalog: Sequence[str] = JOB_TYPE_CATALOG) -> Optional[str]:
    """Exact normalized match against the catalog, returned in canonical form."""
    key = _words(text)
    if not key:
        return None
    for option in catalog:
        if _words(option) == key:
            return option
    return None


def match_branch(text: Optional[str], branches: List[dict]) -> Optional[dict]:
    """Select a branch by 1-based index or by name containment (either direction)."""
    if not branches:
        return None
    index = parse_index(text, len(branches))
    if index is not None:
        return branches[index]

    key = _words(text)
    if not key:
        return None
    for branch in branches:
        name = _words(branch.get("name"))
        if name and (key in name or name in key):
            return branch
    return None
