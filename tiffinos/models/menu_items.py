"""
Menu item model - a vendor's price list for walk-in sales and per-meal billing.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4, UUID
import enum

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from tiffinos.lib.db import Base, enum_values
from tiffinos.models.customers import MealKind


class MenuCategory(str, enum.Enum):
    MEAL = "meal"
    SNACK = "snack"
    BEVERAGE = "beverage"
    EXTRA = "extra"


class MenuItem(Base):
    """
    Menu item entity. Default items tagged with a meal_kind supply the
    per-meal price for that plate. Deleting an item only deactivates it.
    """
    __tablename__ = "menu_items"

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

    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[MenuCategory] = mapped_column(
        SQLEnum(MenuCategory, name="menu_category", values_callable=enum_values),
        nullable=False,
        default=MenuCategory.MEAL,
    )
    meal_kind: Mapped[Optional[MealKind]] = mapped_column(
        SQLEnum(MealKind, name="meal_kind", values_callable=enum_values),
        nullable=True,
    )
    walk_in_price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    monthly_price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<MenuItem(id={self.id}, item_name={self.item_name}, monthly_price={self.monthly_price})>"
