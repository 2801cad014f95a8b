"""
Vendor profile and onboarding routes.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db
from tiffinos.models.vendors import BusinessType, Vendor
from tiffinos.services.vendor_service import VendorService


class VendorResponse(BaseModel):
    id: UUID
    mobile_number: str
    whatsapp_number: Optional[str] = None
    business_name: str
    owner_name: str
    business_type: BusinessType
    address: Optional[str] = None
    onboarding_completed: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class VendorUpdateRequest(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=255)
    owner_name: Optional[str] = Field(None, min_length=1, max_length=255)
    whatsapp_number: Optional[str] = Field(None, max_length=20)
    business_type: Optional[BusinessType] = None
    address: Optional[str] = Field(None, max_length=500)


class OnboardingRequest(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=255)
    owner_name: str = Field(..., min_length=1, max_length=255)
    business_type: BusinessType = BusinessType.TIFFIN
    whatsapp_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)


router = APIRouter(prefix="/vendors", tags=["vendors"])


@router.get("/me", response_model=VendorResponse)
def get_me(vendor: Vendor = Depends(get_current_vendor)):
    """Profile of the logged-in vendor."""
    return vendor


@router.put("/me", response_model=VendorResponse)
def update_me(
    payload: VendorUpdateRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    return VendorService(db).update_profile(vendor.id, payload.model_dump(exclude_unset=True))


@router.post("/me/onboarding", response_model=VendorResponse)
def complete_onboarding(
    payload: OnboardingRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """
    Save the business profile and seed the default Chapati Bhaji and Rice
    Plate menu items. Safe to call again.
    """
    return VendorService(db).complete_onboarding(vendor.id, payload.model_dump())
