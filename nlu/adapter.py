"""
NLU Fallback Adapter — deterministic rules first, oracle second.

================================================================================
THE ORACLE IS NEVER TRUSTED BLINDLY
================================================================================

Every method here:
1. Builds a task-specific prompt
2. Calls the oracle once
3. Validates the response against a strict shape
4. Returns an "unresolved" value (None / UNKNOWN / the fallback text) on ANY
   failure: transport error, empty body, wrong shape

Nothing in this module raises into the dialogue engine. An oracle outage
costs the user a re-prompt, never a broken session.

Catalog resolution is doubly guarded: the returned option must equal one of
the supplied options (case-insensitive) or it is discarded.
================================================================================
"""

import json
import logging
from typing import Iterable, Optional, Protocol

from pydantic import ValidationError

from orchestrator.core.exceptions import OracleError
from orchestrator.core.text import normalize

from .prompts import (
    build_client_name_prompt,
    build_client_type_prompt,
    build_item_prompt,
    build_option_prompt,
    build_render_prompt,
    build_yes_no_prompt,
)
from .schemas import ClientType, ExtractedItem, ExtractedName, YesNo

logger = logging.getLogger(__name__)

# Humanized text longer than this multiple of the fallback is treated as rambling
MAX_RENDER_GROWTH = 4


class Oracle(Protocol):
    def generate(self, prompt: str) -> str: ...


class NluAdapter:
    """Wraps oracle calls with strict validation and deterministic fallback."""

    def __init__(self, oracle: Optional[Oracle] = None, enabled: bool = True):
        self.oracle = oracle
        self.enabled = enabled and oracle is not None

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify_client_type(self, message: str) -> ClientType:
        keyword = self._ask_keyword(build_client_type_prompt(message), ClientType)
        return keyword or ClientType.UNKNOWN

    def classify_yes_no(self, message: str) -> Optional[bool]:
        """True for affirmative, False for negative, None when unresolved."""
        keyword = self._ask_keyword(build_yes_no_prompt(message), YesNo)
        if keyword == YesNo.YES:
            return True
        if keyword == YesNo.NO:
            return False
        return None

    def match_option(self, message: str, options: Iterable[str]) -> Optional[str]:
        """Map free text onto exactly one of `options`, returned in canonical form."""
        options = list(options)
        raw = self._generate(build_option_prompt(message, options))
        if raw is None:
            return None

        cleaned = _strip_wrapping(raw)
        for option in options:
            if option.lower() == cleaned.lower():
                return option

        logger.warning(f"[NLU] Discarded non-catalog option from oracle: {cleaned[:60]!r}")
        return None

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract_client_name(self, message: str) -> Optional[str]:
        data = self._ask_json(build_client_name_prompt(message))
        if data is None:
            return None
        try:
            return ExtractedName.model_validate(data).name
        except ValidationError as e:
            logger.warning(f"[NLU] Client name failed validation: {e.error_count()} errors")
            return None

    def extract_item(self, message: str) -> Optional[ExtractedItem]:
        """Extract {description, amount}; implied arithmetic is left to the oracle."""
        data = self._ask_json(build_item_prompt(message))
        if data is None:
            return None
        try:
            return ExtractedItem.model_validate(data)
        except ValidationError as e:
            logger.warning(f"[NLU] Item failed validation: {e.error_count()} errors")
            return None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, instruction: str, fallback: str) -> str:
        """Humanize `fallback`; return it verbatim if the oracle fails in any way."""
        raw = self._generate(build_render_prompt(instruction, fallback))
        if raw is None:
            return fallback

        text = _strip_code_fence(raw).strip()
        if not text:
            return fallback
        if len(text) > MAX_RENDER_GROWTH * len(fallback) + 200:
            logger.warning("[NLU] Rendered text too long, using fallback")
            return fallback
        return text

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _generate(self, prompt: str) -> Optional[str]:
        if not self.enabled:
            return None
        try:
            response = self.oracle.generate(prompt)
        except OracleError as e:
            logger.warning(f"[NLU] Oracle unavailable: {e}")
            return None
        except Exception as e:
            # Any oracle implementation fault degrades the same way
            logger.warning(f"[NLU] Oracle call failed: {type(e).__name__}: {e}")
            return None

        if not response or not response.strip():
            logger.warning("[NLU] Oracle returned an empty response")
            return None
        return response

    def _ask_keyword(self, prompt: str, choices):
        raw = self._generate(prompt)
        if raw is None:
            return None
        cleaned = normalize(_strip_wrapping(raw)).upper()
        for choice in choices:
            if cleaned == choice.value:
                return choice
        logger.warning(f"[NLU] Unexpected keyword from oracle: {cleaned[:40]!r}")
        return None

    def _ask_json(self, prompt: str) -> Optional[dict]:
        raw = self._generate(prompt)
        if raw is None:
            return None
        block = _extract_json_block(_strip_code_fence(raw))
        if block is None:
            logger.warning("[NLU] Oracle response has no JSON object")
            return None
        try:
            data = json.loads(block)
        except json.JSONDecodeError as e:
            logger.warning(f"[NLU] Invalid JSON from oracle: {e}")
            return None
        if not isinstance(data, dict):
            return None
        return data


def _strip_wrapping(text: str) -> str:
    """Trim whitespace, quotes and a trailing period around a one-word answer."""
    return text.strip().strip("`\"'").strip().rstrip(".").strip()


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if present."""
    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    lines = cleaned.split("\n")
    if lines[0].strip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _extract_json_block(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]
