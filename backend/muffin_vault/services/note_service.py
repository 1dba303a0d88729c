"""
Muffin Vault Backend — Note Service
====================================

What:  Availability count, note purchase and vault listing.
How:   Async SQLAlchemy statements on the request session; the balance side
       of a purchase goes through BalanceService.
Who:   Called by the /api/notes route handlers.

Purchase Flow (POST /api/notes/buy):
    ┌──────────────┐   ┌─────────────┐   ┌────────────┐   ┌────────────┐   ┌──────────┐
    │ Lock balance │──▶│ Fetch hidden│──▶│ Pick one   │──▶│ Mark       │──▶│ Debit    │
    │ (>= price?)  │   │ notes (any?)│   │ uniformly  │   │ displayed  │   │ price    │
    └──────────────┘   └─────────────┘   └────────────┘   └────────────┘   └──────────┘

    All five steps share the request transaction (see database.get_db_session):
    - a failed precondition raises before anything is written
    - a failure in either write raises, and the rollback undoes the other
    - the balance row stays locked until commit, so purchases serialize

    Both writes are conditional (`displayed = false`, `balance >= price`)
    and must affect exactly one row.
"""

import logging
import random
from typing import Optional

from sqlalchemy import desc, false, func, select, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from muffin_vault.exceptions import (
    InsufficientFundsError,
    NoNotesAvailableError,
    StoreReadError,
    StoreWriteError,
)
from muffin_vault.models.note import Note
from muffin_vault.schemas.note import (
    AvailableCountResponse,
    PurchaseResponse,
    VaultNote,
    VaultResponse,
)
from muffin_vault.services.balance_service import BalanceService, balance_service

logger = logging.getLogger(__name__)

# Price of one note, in muffins
NOTE_PRICE = 100

COUNT_FAILED = "Failed to fetch available notes count"
PURCHASE_FAILED = "Failed to buy note"
VAULT_FAILED = "Failed to fetch vault notes"


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - count_available(): server-side count of hidden notes
        - purchase_note():   the buy transaction described above
        - list_vault():      displayed notes, newest first

    Args:
        rng:      Random source for note selection (seedable in tests)
        balances: Balance service used for the lock and the debit
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        balances: Optional[BalanceService] = None,
    ):
        self._rng = rng or random.Random()
        self._balances = balances or balance_service

    async def count_available(self, db: AsyncSession) -> AvailableCountResponse:
        """
        Count notes with displayed = false without fetching them.

        Raises:
            StoreReadError: The count failed (→ 500)
        """
        try:
            result = await db.execute(
                select(func.count())
                .select_from(Note)
                .where(Note.displayed == false())
            )
            count = result.scalar()
        except SQLAlchemyError as e:
            logger.error("Database error counting available notes: %s", str(e))
            raise StoreReadError(
                message=COUNT_FAILED,
                context={"error_type": type(e).__name__},
            ) from e

        return AvailableCountResponse(count=count or 0)

    async def purchase_note(self, db: AsyncSession) -> PurchaseResponse:
        """
        Buy one random hidden note for NOTE_PRICE muffins.

        Steps:
            1. Lock and read the balance; below the price → InsufficientFundsError
            2. Fetch every hidden note; none → NoNotesAvailableError
            3. Choose one with a uniform random index over the fetched set
            4. Mark it displayed (only if still hidden)
            5. Debit the price (only if the balance still covers it)

        Returns:
            PurchaseResponse with the note text and the balance after the debit

        Raises:
            InsufficientFundsError: Balance below NOTE_PRICE (→ 400)
            NoNotesAvailableError:  Every note is already displayed (→ 400)
            StoreReadError / StoreWriteError: Database failure (→ 500)
        """
        # ── Step 1: Balance precondition ──────────────────────────────────
        balance = await self._balances.lock_balance(db, message=PURCHASE_FAILED)
        if balance < NOTE_PRICE:
            raise InsufficientFundsError(balance=balance, price=NOTE_PRICE)

        # ── Step 2: Hidden notes ──────────────────────────────────────────
        try:
            result = await db.execute(
                select(Note.id, Note.text).where(Note.displayed == false())
            )
            hidden = list(result.all())
        except SQLAlchemyError as e:
            logger.error("Database error fetching hidden notes: %s", str(e))
            raise StoreReadError(
                message=PURCHASE_FAILED,
                context={"error_type": type(e).__name__},
            ) from e

        if not hidden:
            raise NoNotesAvailableError()

        # ── Step 3: Uniform selection ─────────────────────────────────────
        chosen = self._rng.choice(hidden)

        # ── Step 4: Hidden → Displayed ────────────────────────────────────
        await self._mark_displayed(db, chosen.id)

        # ── Step 5: Debit ─────────────────────────────────────────────────
        await self._balances.debit(db, NOTE_PRICE, message=PURCHASE_FAILED)

        new_balance = balance - NOTE_PRICE
        logger.info(
            "Note %s purchased (%d hidden before purchase), balance %d → %d",
            chosen.id,
            len(hidden),
            balance,
            new_balance,
        )
        return PurchaseResponse(note=chosen.text, new_balance=new_balance)

    async def _mark_displayed(self, db: AsyncSession, note_id: int) -> None:
        """Flip one note to displayed; anything but one affected row is an error."""
        try:
            result = await db.execute(
                update(Note)
                .where(Note.id == note_id, Note.displayed == false())
                .values(displayed=True)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error marking note %s displayed: %s", note_id, str(e))
            raise StoreWriteError(
                message=PURCHASE_FAILED,
                context={"error_type": type(e).__name__, "note_id": note_id},
            ) from e

        if result.rowcount != 1:
            raise StoreWriteError(
                message=PURCHASE_FAILED,
                context={"note_id": note_id, "rowcount": result.rowcount},
            )

    async def list_vault(self, db: AsyncSession) -> VaultResponse:
        """
        List displayed notes, most recently created first.

        Query:
            SELECT text, created_at FROM notes WHERE displayed = true
            ORDER BY created_at DESC, id DESC

        Raises:
            StoreReadError: The query failed (→ 500)
        """
        try:
            result = await db.execute(
                select(Note.text, Note.created_at)
                .where(Note.displayed == true())
                .order_by(desc(Note.created_at), desc(Note.id))
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Database error fetching vault notes: %s", str(e))
            raise StoreReadError(
                message=VAULT_FAILED,
                context={"error_type": type(e).__name__},
            ) from e

        return VaultResponse(
            notes=[VaultNote(text=row.text, created_at=row.created_at) for row in rows]
        )


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
