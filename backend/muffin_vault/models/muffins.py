"""
Muffin Vault Backend — Balance SQLAlchemy Model
================================================

What:  ORM model for the `muffins` table, a singleton holding the player's
       muffin balance and high score.
How:   Exactly one row, addressed by BALANCE_RECORD_ID. The row is seeded by
       migration 001 and never deleted.
Who:   Read and written by BalanceService; debited by NoteService.purchase_note.
"""

from sqlalchemy import Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from muffin_vault.database import Base

# Fixed identifier of the singleton row
BALANCE_RECORD_ID = 1


class MuffinBalance(Base):
    """
    The singleton balance/score record.

    Invariant: purchases never leave `balance` below zero (the debit is a
    conditional update guarded by `balance >= price`). The update endpoint
    writes whatever it is given.
    """

    __tablename__ = "muffins"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        comment="Fixed identifier of the singleton row (always 1)",
    )

    balance: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Current muffin balance",
    )

    high_score: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Best score reached in the game",
    )

    def __repr__(self) -> str:
        return f"<MuffinBalance(balance={self.balance}, high_score={self.high_score})>"
