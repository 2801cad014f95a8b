"""
Customer model - a vendor's subscriber or walk-in buyer.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from tiffinos.lib.db import Base, enum_values


class CustomerType(str, enum.Enum):
    """How the customer is billed."""
    MONTHLY = "monthly"
    WALK_IN = "walk_in"


class MealType(str, enum.Enum):
    """Dietary preference."""
    VEG = "veg"
    NON_VEG = "non_veg"
    BOTH = "both"


class MealKind(str, enum.Enum):
    """Plate served in a slot; keys the per-meal price list."""
    CHAPATI_BHAJI = "chapati_bhaji"
    RICE_PLATE = "rice_plate"


class Customer(Base):
    """
    Customer entity.
    Lifecycle: active -> soft_deleted (is_active=False, deleted_at set) -> restored | purged.
    """
    __tablename__ = "customers"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    vendor_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Profile
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mobile_number: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    whatsapp_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Meal preferences
    customer_type: Mapped[CustomerType] = mapped_column(
        SQLEnum(CustomerType, name="customer_type", values_callable=enum_values),
        nullable=False,
        default=CustomerType.MONTHLY,
        index=True,
    )
    meal_type: Mapped[MealType] = mapped_column(
        SQLEnum(MealType, name="meal_type", values_callable=enum_values),
        nullable=False,
        default=MealType.VEG,
    )
    lunch_meal_type: Mapped[MealKind] = mapped_column(
        SQLEnum(MealKind, name="meal_kind", values_callable=enum_values),
        nullable=False,
        default=MealKind.CHAPATI_BHAJI,
    )
    dinner_meal_type: Mapped[MealKind] = mapped_column(
        SQLEnum(MealKind, name="meal_kind", values_callable=enum_values),
        nullable=False,
        default=MealKind.RICE_PLATE,
    )

    # Lifecycle
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
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

    @property
    def is_soft_deleted(self) -> bool:
        return not self.is_active and self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.full_name}, active={self.is_active})>"
