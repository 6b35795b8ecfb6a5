"""Language oracle integration.

This package provides OPTIONAL language understanding via Groq. It does
NOT replace the dialogue rules - it only helps when they are inconclusive.

If the oracle fails, every call degrades to an "unresolved" result.
"""

from .adapter import NluAdapter
from .oracle_client import GroqOracleClient, get_oracle_client

__all__ = ["NluAdapter", "GroqOracleClient", "get_oracle_client"]
