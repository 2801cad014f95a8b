"""
Subscription model - a fixed-period, fixed-price meal plan belonging to one customer.
"""
from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4, UUID
import enum

from sqlalchemy import Integer, Date, DateTime, ForeignKey, Uuid, Enum as SQLEnum, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tiffinos.lib.db import Base, enum_values


class SubscriptionStatus(str, enum.Enum):
    """Subscription status state machine."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MealFrequency(str, enum.Enum):
    """Meals per day covered by the plan."""
    ONE_TIME = "one_time"
    TWO_TIMES = "two_times"


class Subscription(Base):
    """
    Subscription entity.
    State machine: active -> completed (on renewal) or active -> cancelled (manual).
    At most one active subscription per customer; the service layer enforces it.
    """
    __tablename__ = "subscriptions"

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

    # Period (both ends inclusive)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Plan
    meal_frequency: Mapped[MealFrequency] = mapped_column(
        SQLEnum(MealFrequency, name="meal_frequency", values_callable=enum_values),
        nullable=False,
        default=MealFrequency.ONE_TIME,
    )
    plan_amount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Status
    status: Mapped[SubscriptionStatus] = mapped_column(
        SQLEnum(SubscriptionStatus, name="subscription_status", values_callable=enum_values),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
        index=True,
    )

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
        CheckConstraint(
            "end_date >= start_date",
            name="subscription_end_after_start",
        ),
        CheckConstraint(
            "plan_amount >= 0",
            name="subscription_plan_amount_non_negative",
        ),
    )

    def covers(self, day: date) -> bool:
        """True when day falls inside the inclusive plan period."""
        return self.start_date <= day <= self.end_date

    def days_left(self, today: date) -> int:
        """Days until end_date; zero or negative once the plan has ended."""
        return (self.end_date - today).days

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, status={self.status}, customer_id={self.customer_id})>"
