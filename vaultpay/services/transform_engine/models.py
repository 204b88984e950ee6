"""Database models for stored orders.

Only tokenized card references ever reach this table.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from vaultpay.common.db import Base


class Order(Base):
    """One accepted payment, keyed by a server-assigned identifier."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # The column keeps its historical name; it holds the Vault token, never a PAN.
    token_ref: Mapped[str] = mapped_column("card_number", String, nullable=False)
    # `default` puts now() in every INSERT; the existing table has no column defaults.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now(), onupdate=func.now()
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
