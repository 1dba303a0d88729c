"""
Muffin Vault Backend — Notes Route Handlers
============================================

What:  Availability count, purchase and vault listing for notes.
How:   Extracts nothing but the session from the request and delegates to
       NoteService. Purchase precondition failures surface as 400 through
       the PurchaseError handler in main.py.
Who:   Called by the front-end shop and vault screens.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from muffin_vault.database import get_db_session
from muffin_vault.schemas.common import ErrorResponse
from muffin_vault.schemas.note import (
    AvailableCountResponse,
    PurchaseResponse,
    VaultResponse,
)
from muffin_vault.services.note_service import NOTE_PRICE, note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])


@router.get(
    "/available",
    response_model=AvailableCountResponse,
    responses={
        200: {"description": "Number of notes that can still be bought"},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="Count notes that have not been bought yet",
)
async def count_available_notes(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AvailableCountResponse:
    result = await note_service.count_available(db)
    response.headers["Cache-Control"] = "no-store"
    return result


@router.post(
    "/buy",
    response_model=PurchaseResponse,
    responses={
        200: {"description": "Purchased note and the new balance", "model": PurchaseResponse},
        400: {"description": "Not enough muffins, or no notes left", "model": ErrorResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary=f"Buy a random hidden note for {NOTE_PRICE} muffins",
    description=(
        "Picks one hidden note uniformly at random, marks it displayed and "
        f"debits {NOTE_PRICE} muffins, all in one transaction."
    ),
)
async def buy_note(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> PurchaseResponse:
    """
    Purchase a note.

    Example response:
        {"note": "You are loved", "newBalance": 900}
    """
    rid = getattr(request.state, "request_id", "")
    logger.debug("[%s] Purchase requested", rid)
    return await note_service.purchase_note(db)


@router.get(
    "/vault",
    response_model=VaultResponse,
    responses={
        200: {"description": "Purchased notes, newest first", "model": VaultResponse},
        500: {"description": "Store failure", "model": ErrorResponse},
    },
    summary="List purchased notes",
)
async def list_vault_notes(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> VaultResponse:
    """Return `{notes: [{text, created_at}]}` ordered by created_at descending."""
    result = await note_service.list_vault(db)
    response.headers["Cache-Control"] = "no-store"
    return result
