from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.session import Base
from app.models.enums import BillingCycle, SubscriptionStatus


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)

    plan_name: Mapped[str] = mapped_column(String(120))
    monthly_fee: Mapped[Decimal] = mapped_column(Numeric(14, 2))  # fee per billing cycle
    billing_cycle: Mapped[BillingCycle] = mapped_column(Enum(BillingCycle), default=BillingCycle.MONTHLY)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    service_inclusions = relationship(
        "ServiceInclusion", back_populates="plan", cascade="all, delete-orphan", order_by="ServiceInclusion.id"
    )


class ServiceInclusion(Base):
    """Quantity of a service covered by the plan fee; usage beyond it is billed at overage_rate."""

    __tablename__ = "service_inclusions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    subscription_plan_id: Mapped[int] = mapped_column(ForeignKey("subscription_plans.id", ondelete="CASCADE"), index=True)

    service_type: Mapped[str] = mapped_column(String(60))  # legal_consultation | document_review | legal_research | ...
    quantity_included: Mapped[int] = mapped_column(Integer, default=0)
    unit: Mapped[str] = mapped_column(String(30), default="unidades")
    overage_rate: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)

    plan = relationship("SubscriptionPlan", back_populates="service_inclusions")


class ClientSubscription(Base):
    __tablename__ = "client_subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    law_firm_id: Mapped[int] = mapped_column(ForeignKey("law_firms.id", ondelete="CASCADE"), index=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), index=True)
    subscription_plan_id: Mapped[int] = mapped_column(ForeignKey("subscription_plans.id"), index=True)

    status: Mapped[SubscriptionStatus] = mapped_column(Enum(SubscriptionStatus), default=SubscriptionStatus.ACTIVE, index=True)
    start_date: Mapped[dt.date] = mapped_column(Date, index=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    auto_renew: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    plan = relationship("SubscriptionPlan")
    client = relationship("Client")
