"""
Muffin Vault Backend — Balance Service Tests
=============================================

What:  Tests for BalanceService (read, partial update, lock, guarded debit).
How:   Unit tests use the mocked session; the rest run against the
       in-memory SQLite database.

What we test:
    ✅ NULL columns read as 0, missing record raises NotFoundError
    ✅ SQLAlchemy failures become StoreReadError / StoreWriteError
    ✅ Partial update leaves omitted fields untouched
    ✅ Explicit null is forwarded and rejected by the store
    ✅ Debit never takes the balance below zero
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from muffin_vault.exceptions import (
    InsufficientFundsError,
    NotFoundError,
    StoreReadError,
    StoreWriteError,
)
from muffin_vault.schemas.muffins import BalanceUpdate
from muffin_vault.services.balance_service import (
    FETCH_FAILED,
    UPDATE_FAILED,
    BalanceService,
)


def _store_down() -> OperationalError:
    return OperationalError("SELECT", {}, Exception("connection refused"))


class TestGetBalance:
    """Unit tests for get_balance with a mocked session."""

    def setup_method(self):
        self.service = BalanceService()

    @pytest.mark.asyncio
    async def test_null_values_default_to_zero(self, mock_db_session):
        result = MagicMock()
        result.one_or_none.return_value = MagicMock(balance=None, high_score=None)
        mock_db_session.execute.return_value = result

        balance = await self.service.get_balance(mock_db_session)

        assert balance.balance == 0
        assert balance.high_score == 0

    @pytest.mark.asyncio
    async def test_missing_record_raises_not_found(self, mock_db_session):
        result = MagicMock()
        result.one_or_none.return_value = None
        mock_db_session.execute.return_value = result

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_balance(mock_db_session)

        assert exc_info.value.message == FETCH_FAILED
        assert isinstance(exc_info.value, StoreReadError)

    @pytest.mark.asyncio
    async def test_store_failure_raises_store_read_error(self, mock_db_session):
        mock_db_session.execute.side_effect = _store_down()

        with pytest.raises(StoreReadError) as exc_info:
            await self.service.get_balance(mock_db_session)

        assert exc_info.value.message == FETCH_FAILED
        assert exc_info.value.context["error_type"] == "OperationalError"
        assert "connection refused" not in exc_info.value.message


class TestUpdateBalance:
    """Partial update semantics."""

    def setup_method(self):
        self.service = BalanceService()

    @pytest.mark.asyncio
    async def test_only_sent_fields_are_assigned(self, mock_db_session):
        record = MagicMock(balance=10, high_score=99)
        mock_db_session.get.return_value = record

        payload = BalanceUpdate.model_validate({"balance": 500})
        result = await self.service.update_balance(mock_db_session, payload)

        assert record.balance == 500
        assert record.high_score == 99
        assert result.balance == 500
        assert result.high_score == 99
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_camel_case_high_score_is_accepted(self, mock_db_session):
        record = MagicMock(balance=10, high_score=0)
        mock_db_session.get.return_value = record

        payload = BalanceUpdate.model_validate({"highScore": 77})
        result = await self.service.update_balance(mock_db_session, payload)

        assert result.balance == 10
        assert result.high_score == 77

    @pytest.mark.asyncio
    async def test_missing_record_raises_not_found(self, mock_db_session):
        mock_db_session.get.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.update_balance(mock_db_session, BalanceUpdate(balance=1))

        assert exc_info.value.message == UPDATE_FAILED

    @pytest.mark.asyncio
    async def test_flush_failure_raises_store_write_error(self, mock_db_session):
        mock_db_session.get.return_value = MagicMock(balance=1, high_score=1)
        mock_db_session.flush.side_effect = _store_down()

        with pytest.raises(StoreWriteError) as exc_info:
            await self.service.update_balance(mock_db_session, BalanceUpdate(balance=2))

        assert exc_info.value.message == UPDATE_FAILED
        assert exc_info.value.context["fields"] == ["balance"]


class TestBalanceServiceStore:
    """Against the in-memory database."""

    def setup_method(self):
        self.service = BalanceService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload, expected",
        [
            ({}, (300, 40)),
            ({"balance": 5}, (5, 40)),
            ({"highScore": 41}, (300, 41)),
            ({"balance": 0, "highScore": 0}, (0, 0)),
        ],
    )
    async def test_omitted_fields_are_unchanged(self, seed, db_session, read_store, payload, expected):
        await seed(balance=300, high_score=40)

        result = await self.service.update_balance(db_session, BalanceUpdate.model_validate(payload))
        await db_session.commit()

        assert (result.balance, result.high_score) == expected
        balance, high_score, _, _ = await read_store()
        assert (balance, high_score) == expected

    @pytest.mark.asyncio
    async def test_explicit_null_is_rejected_by_store(self, seed, db_session, read_store):
        await seed(balance=300, high_score=40)

        with pytest.raises(StoreWriteError):
            await self.service.update_balance(
                db_session, BalanceUpdate.model_validate({"balance": None})
            )
        await db_session.rollback()

        balance, high_score, _, _ = await read_store()
        assert (balance, high_score) == (300, 40)

    @pytest.mark.asyncio
    async def test_lock_balance_reads_current_value(self, seed, db_session):
        await seed(balance=250)

        assert await self.service.lock_balance(db_session, message="x") == 250

    @pytest.mark.asyncio
    async def test_lock_balance_without_record(self, seed, db_session):
        await seed(with_record=False)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.lock_balance(db_session, message="Failed to buy note")

        assert exc_info.value.message == "Failed to buy note"

    @pytest.mark.asyncio
    async def test_debit_subtracts_amount(self, seed, db_session, read_store):
        await seed(balance=250)

        await self.service.debit(db_session, 100, message="x")
        await db_session.commit()

        balance, _, _, _ = await read_store()
        assert balance == 150

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", [0, 1, 99])
    async def test_debit_never_goes_negative(self, seed, db_session, read_store, start):
        await seed(balance=start)

        with pytest.raises(InsufficientFundsError):
            await self.service.debit(db_session, 100, message="x")
        await db_session.commit()

        balance, _, _, _ = await read_store()
        assert balance == start
