"""Strict shapes the oracle is allowed to return.

Any deviation makes the adapter report "unresolved".
"""

from enum import Enum

from pydantic import BaseModel, field_validator


class ClientType(str, Enum):
    EXISTING = "EXISTENTE"
    MANUAL = "MANUAL"
    UNKNOWN = "DESCONOCIDO"


class YesNo(str, Enum):
    YES = "AFIRMATIVO"
    NO = "NEGATIVO"
    UNKNOWN = "DESCONOCIDO"


class ExtractedItem(BaseModel):
    """A single priced line: description plus non-negative amount."""
    description: str
    amount: float

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 200:
            raise ValueError("description must be 1-200 characters")
        return v

    @field_validator("amount")
    @classmethod
    def non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("amount must be >= 0")
        return v


class ExtractedName(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2 or len(v) > 100:
            raise ValueError("name must be 2-100 characters")
        return v
