"""
Muffin Vault Backend — Note SQLAlchemy Model
=============================================

What:  ORM model representing the `notes` table.
How:   Notes are inserted outside this service. The only mutation performed
       here is `displayed: false → true` when a note is bought.

Table Design:
    - BIGINT identity primary key (INTEGER on SQLite so rowid aliasing
      gives autoincrement in tests)
    - text: the purchasable content, unbounded TEXT
    - displayed: hidden until bought; the transition is one-way
    - created_at: UTC with timezone; orders the vault newest first

    Index on (displayed, created_at):
        Serves all three note queries: the availability count and the
        purchase pool filter on displayed = false, the vault filters on
        displayed = true and sorts by created_at DESC.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, Index, Integer, Text, TIMESTAMP, false
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Mapped, mapped_column

from muffin_vault.database import Base


class Note(Base):
    """
    A unit of purchasable text content.

    Lifecycle:
        1. Inserted externally with displayed = false (Hidden)
        2. Marked displayed = true by a successful purchase (Displayed, terminal)
        3. Never reset, never deleted
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Note content revealed on purchase",
    )

    displayed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        comment="True once the note has been bought and is visible in the vault",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sql_text("CURRENT_TIMESTAMP"),
        comment="When this note was created (UTC)",
    )

    __table_args__ = (
        Index("idx_notes_displayed_created_at", "displayed", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, displayed={self.displayed}, "
            f"created_at='{self.created_at}')>"
        )
