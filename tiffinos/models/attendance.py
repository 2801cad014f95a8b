"""
Attendance model - per-day log of meals a customer consumed, including guest meals.
"""
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4, UUID

from sqlalchemy import (
    String, Integer, Boolean, Date, DateTime, ForeignKey, Uuid,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from tiffinos.lib.db import Base


class Attendance(Base):
    """
    Attendance entity, unique per (customer_id, attendance_date).
    """
    __tablename__ = "attendance"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    # Relationships
    customer_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    vendor_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subscription_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("subscriptions.id", ondelete="SET NULL"),
        nullable=True,
    )

    attendance_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Meals
    lunch_taken: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    dinner_taken: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("customer_id", "attendance_date", name="attendance_customer_day"),
        CheckConstraint("guest_count >= 0", name="attendance_guest_count_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Attendance(customer_id={self.customer_id}, date={self.attendance_date}, "
            f"lunch={self.lunch_taken}, dinner={self.dinner_taken})>"
        )
