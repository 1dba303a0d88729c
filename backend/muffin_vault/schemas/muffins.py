"""
Muffin Vault Backend — Balance Request/Response Schemas
========================================================

What:  Pydantic models for GET /api/muffins and POST /api/muffins/update.
How:   Python attributes are snake_case and match the ORM columns; the wire
       format is camelCase (`highScore`) through field aliases. FastAPI
       serializes response models by alias.
"""

from typing import Optional

from pydantic import BaseModel, Field


class BalanceResponse(BaseModel):
    """
    What:  The singleton balance record as returned to the game.
    Who:   Returned by both balance endpoints.
    """
    balance: int = Field(description="Current muffin balance")
    high_score: int = Field(alias="highScore", description="Best score reached")

    model_config = {"populate_by_name": True}


class BalanceUpdate(BaseModel):
    """
    What:  Partial update payload for POST /api/muffins/update.

    Partial semantics:
        Only keys present in the request body are written. Callers read
        them with `model_dump(exclude_unset=True)`, which yields column
        names (`balance`, `high_score`). A key sent as null is kept and
        forwarded to the store unchanged.
    """
    balance: Optional[int] = Field(default=None, description="New muffin balance")
    high_score: Optional[int] = Field(
        default=None,
        alias="highScore",
        description="New high score",
    )

    model_config = {"populate_by_name": True}

    def changes(self) -> dict:
        """Column → value for every field the client actually sent."""
        return self.model_dump(exclude_unset=True)
