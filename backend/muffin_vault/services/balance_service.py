"""
Muffin Vault Backend — Balance Service
=======================================

What:  Reads and writes the singleton balance record.
How:   Plain async SQLAlchemy statements on the request session. Failures
       raised by SQLAlchemy are translated into StoreReadError /
       StoreWriteError carrying the calling endpoint's static message.
Who:   Called by the /api/muffins routes and by NoteService.purchase_note
       (lock_balance + debit).

Statements:
    get_balance     SELECT balance, high_score FROM muffins WHERE id = 1
    update_balance  UPDATE muffins SET <sent fields> WHERE id = 1
    lock_balance    SELECT balance FROM muffins WHERE id = 1 FOR UPDATE
    debit           UPDATE muffins SET balance = balance - :n
                    WHERE id = 1 AND balance >= :n
"""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from muffin_vault.exceptions import (
    InsufficientFundsError,
    NotFoundError,
    StoreReadError,
    StoreWriteError,
)
from muffin_vault.models.muffins import BALANCE_RECORD_ID, MuffinBalance
from muffin_vault.schemas.muffins import BalanceResponse, BalanceUpdate

logger = logging.getLogger(__name__)

FETCH_FAILED = "Failed to fetch muffin data"
UPDATE_FAILED = "Failed to update muffin data"


class BalanceService:
    """
    Business logic for the balance/score record.

    Stateless: every call receives the request session, so the same
    instance serves all requests.
    """

    async def get_balance(self, db: AsyncSession) -> BalanceResponse:
        """
        Fetch the singleton record.

        NULL columns are reported as 0.

        Raises:
            NotFoundError:  The record does not exist (→ 500)
            StoreReadError: The query failed (→ 500)
        """
        try:
            result = await db.execute(
                select(MuffinBalance.balance, MuffinBalance.high_score)
                .where(MuffinBalance.id == BALANCE_RECORD_ID)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching muffin data: %s", str(e))
            raise StoreReadError(
                message=FETCH_FAILED,
                context={"error_type": type(e).__name__},
            ) from e

        if row is None:
            raise NotFoundError(
                message=FETCH_FAILED,
                resource="muffins",
                resource_id=BALANCE_RECORD_ID,
            )

        return BalanceResponse(
            balance=row.balance or 0,
            high_score=row.high_score or 0,
        )

    async def update_balance(
        self,
        db: AsyncSession,
        payload: BalanceUpdate,
    ) -> BalanceResponse:
        """
        Apply a partial update and return the record as stored afterwards.

        Only the fields present in `payload` are assigned. Values are not
        range-checked here; whatever the database rejects (for example an
        explicit null on a NOT NULL column) surfaces as StoreWriteError.

        Raises:
            NotFoundError:   The record does not exist (→ 500)
            StoreReadError:  Loading the record failed (→ 500)
            StoreWriteError: The update failed (→ 500)
        """
        changes = payload.changes()

        try:
            record = await db.get(
                MuffinBalance,
                BALANCE_RECORD_ID,
                populate_existing=True,
            )
        except SQLAlchemyError as e:
            logger.error("Database error loading muffin data for update: %s", str(e))
            raise StoreReadError(
                message=UPDATE_FAILED,
                context={"error_type": type(e).__name__},
            ) from e

        if record is None:
            raise NotFoundError(
                message=UPDATE_FAILED,
                resource="muffins",
                resource_id=BALANCE_RECORD_ID,
            )

        for column, value in changes.items():
            setattr(record, column, value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating muffin data %s: %s", changes, str(e))
            raise StoreWriteError(
                message=UPDATE_FAILED,
                context={"error_type": type(e).__name__, "fields": sorted(changes)},
            ) from e

        logger.info("Muffin data updated: %s", changes)
        return BalanceResponse(balance=record.balance, high_score=record.high_score)

    async def lock_balance(self, db: AsyncSession, message: str) -> int:
        """
        Read the current balance and lock the row until the transaction ends.

        Concurrent purchases block here until the first one commits or rolls
        back, then read the balance it left behind.

        Args:
            message: Static message for the StoreReadError of the caller's endpoint
        """
        try:
            result = await db.execute(
                select(MuffinBalance.balance)
                .where(MuffinBalance.id == BALANCE_RECORD_ID)
                .with_for_update()
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error locking muffin balance: %s", str(e))
            raise StoreReadError(
                message=message,
                context={"error_type": type(e).__name__},
            ) from e

        if row is None:
            raise NotFoundError(
                message=message,
                resource="muffins",
                resource_id=BALANCE_RECORD_ID,
            )
        return row.balance or 0

    async def debit(self, db: AsyncSession, amount: int, message: str) -> None:
        """
        Subtract `amount` from the balance if, and only if, it covers it.

        The guard lives in the WHERE clause, so the balance cannot go
        negative even if the row changed since it was read.

        Raises:
            InsufficientFundsError: No row matched the guard
            StoreWriteError:        The update failed
        """
        try:
            result = await db.execute(
                update(MuffinBalance)
                .where(
                    MuffinBalance.id == BALANCE_RECORD_ID,
                    MuffinBalance.balance >= amount,
                )
                .values(balance=MuffinBalance.balance - amount)
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error debiting %d muffins: %s", amount, str(e))
            raise StoreWriteError(
                message=message,
                context={"error_type": type(e).__name__, "amount": amount},
            ) from e

        if result.rowcount != 1:
            raise InsufficientFundsError(price=amount)


# ── Singleton Instance ────────────────────────────────────────────────────
balance_service = BalanceService()
