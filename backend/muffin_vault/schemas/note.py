"""
Muffin Vault Backend — Note Request/Response Schemas
=====================================================

What:  Pydantic models for the /api/notes endpoints.
How:   FastAPI validates and serializes these; aliases give the camelCase
       wire names the front-end expects (`newBalance`).
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class AvailableCountResponse(BaseModel):
    """Number of notes that can still be bought."""
    count: int = Field(description="Notes with displayed = false")


class PurchaseResponse(BaseModel):
    """
    What:  Result of a successful POST /api/notes/buy.
    Fields:
        note:        Text of the note that was revealed
        new_balance: Balance after the debit (wire name `newBalance`)
    """
    note: str = Field(description="Text of the purchased note")
    new_balance: int = Field(alias="newBalance", description="Balance after the purchase")

    model_config = {"populate_by_name": True}


class VaultNote(BaseModel):
    """A purchased note as listed in the vault."""
    text: str = Field(description="Note content")
    created_at: datetime = Field(description="When the note was created")

    model_config = {"from_attributes": True}


class VaultResponse(BaseModel):
    """
    What:  Every purchased note, newest first.
    Who:   Returned by GET /api/notes/vault.
    """
    notes: List[VaultNote] = Field(default_factory=list, description="Displayed notes")
