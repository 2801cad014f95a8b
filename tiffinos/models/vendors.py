"""
Vendor model - the tiffin/mess business owner and tenant boundary for all data.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4, UUID

from sqlalchemy import String, Boolean, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
import enum

from tiffinos.lib.db import Base, enum_values


class BusinessType(str, enum.Enum):
    """Kind of food business."""
    TIFFIN = "tiffin"
    MESS = "mess"
    BOTH = "both"


class Vendor(Base):
    """
    Vendor entity - created on first verified login, completed by onboarding.
    """
    __tablename__ = "vendors"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    # Login identity
    mobile_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
    )
    whatsapp_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Profile
    business_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    business_type: Mapped[BusinessType] = mapped_column(
        SQLEnum(BusinessType, name="business_type", values_callable=enum_values),
        nullable=False,
        default=BusinessType.TIFFIN,
    )
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Status
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
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

    def __repr__(self) -> str:
        return f"<Vendor(id={self.id}, business_name={self.business_name})>"
