"""
Customer routes: onboarding, list with filters, detail, edits and the
recycle bin.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db, get_today
from tiffinos.api.routes.subscriptions import SubscriptionResponse
from tiffinos.models.customers import CustomerType, MealKind, MealType
from tiffinos.models.payments import PaymentMode
from tiffinos.models.subscriptions import MealFrequency
from tiffinos.models.vendors import Vendor
from tiffinos.services.customer_service import CustomerFilter, CustomerOverview, CustomerService


# Pydantic schemas
class CustomerResponse(BaseModel):
    id: UUID
    full_name: str
    mobile_number: str
    whatsapp_number: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    customer_type: CustomerType
    meal_type: MealType
    lunch_meal_type: MealKind
    dinner_meal_type: MealKind
    is_active: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CustomerSummaryResponse(CustomerResponse):
    """List row: profile, current plan and engine-derived money."""
    subscription: Optional[SubscriptionResponse] = None
    pending_amount: int
    total_paid: int
    guest_charges: int
    total_due: int
    attendance_days: int
    can_renew: bool

    @classmethod
    def build(cls, row: CustomerOverview, today: date) -> "CustomerSummaryResponse":
        base = CustomerResponse.model_validate(row.customer).model_dump()
        return cls(
            **base,
            subscription=SubscriptionResponse.build(row.subscription, today) if row.subscription else None,
            pending_amount=row.pending_amount,
            total_paid=row.bill.total_paid,
            guest_charges=row.bill.guest_charges,
            total_due=row.bill.total_due,
            attendance_days=row.attendance_days,
            can_renew=row.can_renew,
        )


class InitialSubscription(BaseModel):
    start_date: date
    end_date: date
    plan_amount: int = Field(..., ge=0)
    meal_frequency: MealFrequency = MealFrequency.ONE_TIME

    @model_validator(mode="after")
    def check_dates(self) -> "InitialSubscription":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CustomerCreateRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    mobile_number: str = Field(..., min_length=10, max_length=20)
    whatsapp_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    customer_type: CustomerType = CustomerType.MONTHLY
    meal_type: MealType = MealType.VEG
    lunch_meal_type: MealKind = MealKind.CHAPATI_BHAJI
    dinner_meal_type: MealKind = MealKind.RICE_PLATE
    subscription: Optional[InitialSubscription] = None
    advance_amount: int = Field(0, ge=0)
    payment_mode: PaymentMode = PaymentMode.CASH


class CustomerUpdateRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    mobile_number: Optional[str] = Field(None, min_length=10, max_length=20)
    whatsapp_number: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    customer_type: Optional[CustomerType] = None
    meal_type: Optional[MealType] = None
    lunch_meal_type: Optional[MealKind] = None
    dinner_meal_type: Optional[MealKind] = None


# Router
router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=CustomerSummaryResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreateRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Add a customer. An initial subscription and an advance payment against
    it can be sent in the same request.
    """
    service = CustomerService(db)
    fields = payload.model_dump(exclude={"subscription", "advance_amount", "payment_mode"})
    customer = service.create(
        vendor.id,
        fields,
        subscription=payload.subscription.model_dump() if payload.subscription else None,
        advance_amount=payload.advance_amount,
        payment_mode=payload.payment_mode,
    )
    return CustomerSummaryResponse.build(service.detail(vendor.id, customer.id, today), today)


@router.get("", response_model=List[CustomerSummaryResponse])
def list_customers(
    filter: CustomerFilter = Query(CustomerFilter.ALL, description="List filter"),
    search: Optional[str] = Query(None, description="Match on name or mobile number"),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    List active customers.

    Query parameters:
    - filter: all, active, expired, expiring, pending, clear, one_time, two_times
    - search: substring of the name or mobile number
    """
    rows = CustomerService(db).list_customers(vendor.id, today, filter, search)
    return [CustomerSummaryResponse.build(row, today) for row in rows]


@router.get("/deleted", response_model=List[CustomerResponse])
def list_deleted_customers(
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """Recycle bin, most recently deleted first."""
    return CustomerService(db).list_deleted(vendor.id)


@router.get("/{customer_id}", response_model=CustomerSummaryResponse)
def get_customer(
    customer_id: UUID,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    return CustomerSummaryResponse.build(CustomerService(db).detail(vendor.id, customer_id, today), today)


@router.put("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: UUID,
    payload: CustomerUpdateRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    return CustomerService(db).update(vendor.id, customer_id, payload.model_dump(exclude_unset=True))


@router.delete("/{customer_id}", response_model=CustomerResponse)
def delete_customer(
    customer_id: UUID,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """Move the customer to the recycle bin. Their records are kept."""
    return CustomerService(db).soft_delete(vendor.id, customer_id)


@router.post("/{customer_id}/restore", response_model=CustomerResponse)
def restore_customer(
    customer_id: UUID,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    return CustomerService(db).restore(vendor.id, customer_id)


@router.delete("/{customer_id}/purge", status_code=status.HTTP_204_NO_CONTENT)
def purge_customer(
    customer_id: UUID,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """Permanently delete a customer from the recycle bin with all their records."""
    CustomerService(db).purge(vendor.id, customer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
