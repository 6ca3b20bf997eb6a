"""Last committed watermark per kind and scope; runs must move it forward."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bronzeledger.models.base import Base


class IngestionWatermark(Base):
    __tablename__ = "ingestion_watermarks"

    kind: Mapped[str] = mapped_column(String(100), primary_key=True)

    scope_key: Mapped[str] = mapped_column(String(255), primary_key=True, default="")

    collected_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
