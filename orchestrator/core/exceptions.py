"""
Exception types for the orchestrator.

Two families live here:
- Domain errors raised by collaborators (oracle, backend, token minting).
  The dialogue engine decides which of them are recoverable.
- HTTP helpers that turn failures into generic, non-leaky responses.
  Details go to the log, never to the caller.
"""
import logging
from typing import Optional

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class OracleError(Exception):
    """The language oracle could not produce a response (transport, status, empty body)."""


class BackendUnavailableError(Exception):
    """A backend lookup failed for a reason other than 'not found'."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class QuoteCommitError(Exception):
    """The create-quote call failed; the user's confirmed intent is NOT committed."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TokenConfigurationError(Exception):
    """No static service token and no signing secret are configured."""


class ApiError:
    """HTTP exceptions with safe messages."""

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs the actual error internally, hides it from the caller.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )
