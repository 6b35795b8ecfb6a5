"""
Groq API Client — the language oracle behind the NLU adapter.

================================================================================
ORACLE ROLE IS ADVISORY ONLY
================================================================================

The oracle is asked to:
- classify short replies (client type, yes/no)
- map free text onto one entry of a fixed option list
- extract {description, amount} from an item line
- phrase prompts and summaries in a friendlier way

THIS CLIENT DOES NOT:
- decide state transitions
- call the backend data service
- commit anything

Every failure surfaces as OracleError. The adapter in nlu.adapter turns
that into an "unresolved" result so the dialogue falls back to its
deterministic rules. No retries happen here: a slow oracle must degrade
to the fallback, not stall the turn.

================================================================================
"""

import logging
from typing import Optional

from groq import APIConnectionError, APIError, APIStatusError, APITimeoutError, Groq

from orchestrator.core.config import settings
from orchestrator.core.exceptions import OracleError

# NEVER log API keys or full prompts
logger = logging.getLogger(__name__)


class GroqOracleClient:
    """
    Minimal wrapper for Groq chat completions.

    - Temperature 0: same input, same output
    - Bounded max tokens and timeout
    - Retries disabled on the SDK so the timeout is the real upper bound
    """

    TEMPERATURE = 0

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        api_key = settings.GROQ_API_KEY if api_key is None else api_key
        self.model = model or settings.GROQ_MODEL
        self.max_tokens = max_tokens or settings.NLU_MAX_TOKENS
        timeout = timeout_seconds or settings.NLU_TIMEOUT_SECONDS

        if not api_key:
            logger.warning(
                "⚠️ GROQ_API_KEY not found in environment. "
                "Oracle calls will be skipped and deterministic fallbacks used."
            )
            self.client = None
        else:
            self.client = Groq(api_key=api_key, timeout=timeout, max_retries=0)
            logger.info(f"✅ Groq oracle initialized (model={self.model})")

    def is_available(self) -> bool:
        return self.client is not None

    def generate(self, prompt: str) -> str:
        """Send one prompt, return the completion text.

        Raises:
            OracleError: client not configured, transport/status failure, or empty body
        """
        if not self.is_available():
            raise OracleError("Oracle not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.max_tokens,
                stream=False,
            )
        except APITimeoutError as e:
            raise OracleError("Oracle request timed out") from e
        except APIConnectionError as e:
            raise OracleError("Oracle unreachable") from e
        except APIStatusError as e:
            raise OracleError(f"Oracle returned status {e.status_code}") from e
        except APIError as e:
            raise OracleError(f"Oracle API error: {e}") from e

        if not response.choices:
            raise OracleError("Oracle returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise OracleError("Oracle response body is empty")

        logger.debug(f"[NLU] Oracle response received: {len(content)} chars")
        return content


_oracle_client: Optional[GroqOracleClient] = None


def get_oracle_client() -> GroqOracleClient:
    """Get or create the shared oracle client."""
    global _oracle_client
    if _oracle_client is None:
        _oracle_client = GroqOracleClient()
    return _oracle_client
