from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.session import Base
from app.models.enums import DiscountScope, DiscountType


class DiscountRule(Base):
    """
    Discount resolved at invoice calculation time.

    Only the outcome is stored on the invoice (invoices.applied_discounts + discount line items).
    """

    __tablename__ = "discount_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)

    rule_name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    applies_to: Mapped[DiscountScope] = mapped_column(Enum(DiscountScope), default=DiscountScope.ALL, index=True)
    discount_type: Mapped[DiscountType] = mapped_column(Enum(DiscountType))
    value: Mapped[Decimal] = mapped_column(Numeric(14, 2))  # percent (0-100) or BRL
    priority: Mapped[int] = mapped_column(Integer, default=1)  # higher wins

    # Optional targeting; NULL means any client / matter.
    client_id: Mapped[int | None] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=True, index=True)
    matter_id: Mapped[int | None] = mapped_column(ForeignKey("matters.id", ondelete="CASCADE"), nullable=True, index=True)

    valid_from: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    valid_until: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    minimum_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    max_discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_uses: Mapped[int] = mapped_column(Integer, default=0)

    auto_apply: Mapped[bool] = mapped_column(Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
