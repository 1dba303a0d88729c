"""
Muffin Vault Backend — Balance Route Handlers
==============================================

What:  GET /api/muffins and POST /api/muffins/update.
How:   Delegates to BalanceService; responses use camelCase (`highScore`).
Who:   Called by the game front-end on load and whenever the score changes.

Caching:
    The balance changes on every purchase and game round, so responses carry
    Cache-Control: no-store.
"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from muffin_vault.database import get_db_session
from muffin_vault.schemas.common import ErrorResponse
from muffin_vault.schemas.muffins import BalanceResponse, BalanceUpdate
from muffin_vault.services.balance_service import balance_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/muffins", tags=["Muffins"])


@router.get(
    "",
    response_model=BalanceResponse,
    responses={
        200: {"description": "Current balance and high score", "model": BalanceResponse},
        500: {"description": "Store failure or missing record", "model": ErrorResponse},
    },
    summary="Get the muffin balance and high score",
)
async def get_muffins(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> BalanceResponse:
    """Return `{balance, highScore}`; NULL values are reported as 0."""
    result = await balance_service.get_balance(db)
    response.headers["Cache-Control"] = "no-store"
    return result


@router.post(
    "/update",
    response_model=BalanceResponse,
    responses={
        200: {"description": "Record after the update", "model": BalanceResponse},
        500: {"description": "Store rejected the update", "model": ErrorResponse},
    },
    summary="Partially update the balance and/or high score",
    description=(
        "Writes only the fields present in the body (`balance`, `highScore`). "
        "Omitted fields keep their stored value."
    ),
)
async def update_muffins(
    payload: BalanceUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> BalanceResponse:
    """
    Apply a partial update.

    Example:
        POST /api/muffins/update {"highScore": 42}
        → balance untouched, high_score = 42
    """
    return await balance_service.update_balance(db, payload)
