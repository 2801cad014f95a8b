"""
Payment model - append-only money received from a customer.
"""
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, Uuid, Enum as SQLEnum, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tiffinos.lib.db import Base, enum_values


class PaymentType(str, enum.Enum):
    ADVANCE = "advance"
    PARTIAL = "partial"
    FULL = "full"
    WALK_IN = "walk_in"


class PaymentMode(str, enum.Enum):
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatus(str, enum.Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class Payment(Base):
    """
    Payment entity. No edits or voids; corrections are new rows.
    customer_id is empty for anonymous walk-in sales.
    """
    __tablename__ = "payments"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    # Relationships
    vendor_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    subscription_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("subscriptions.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Money
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(
        SQLEnum(PaymentType, name="payment_type", values_callable=enum_values),
        nullable=False,
        default=PaymentType.PARTIAL,
    )
    payment_mode: Mapped[PaymentMode] = mapped_column(
        SQLEnum(PaymentMode, name="payment_mode", values_callable=enum_values),
        nullable=False,
        default=PaymentMode.CASH,
    )
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name="payment_status", values_callable=enum_values),
        nullable=False,
        default=PaymentStatus.COMPLETED,
    )
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="payment_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, amount={self.amount}, customer_id={self.customer_id})>"
