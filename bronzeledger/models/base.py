"""Declarative base and the column sets shared by every bronze table.

Each resource kind owns four groups of tables:

- ``bronze_<kind>``: current state, one row per resource_id.
- ``bronze_<kind>_<child>``: owned child rows, wholesale-replaced on change.
- ``bronze_history_<kind>``: append-only versions with a validity interval.
- ``bronze_history_<kind>_<child>``: child versions linked to a parent version.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class BronzeMixin:
    """Current-state row keyed by the provider's stable identifier."""

    resource_id: Mapped[str] = mapped_column(String(255), primary_key=True)

    collected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Watermark of the latest run that observed this resource",
    )

    first_collected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Watermark of the run that first observed this resource; never updated",
    )


class BronzeChildMixin:
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)


class BronzeHistoryMixin:
    """One version of a resource; valid_to stays NULL while the version is current."""

    history_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    resource_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    collected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    first_collected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class BronzeChildHistoryMixin:
    """One version of a child row, scoped to the parent version it was recorded under."""

    history_id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
