"""
Payment routes: record, pending dues and history.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db, get_today
from tiffinos.lib.settings import settings
from tiffinos.models.payments import PaymentMode, PaymentStatus, PaymentType
from tiffinos.models.vendors import Vendor
from tiffinos.services.payment_service import PaymentService
from tiffinos.services.statement_formatter import pending_reminder, whatsapp_link


class PaymentResponse(BaseModel):
    id: UUID
    customer_id: Optional[UUID] = None
    subscription_id: Optional[UUID] = None
    amount: int
    payment_type: PaymentType
    payment_mode: PaymentMode
    payment_date: date
    status: PaymentStatus
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentCreateRequest(BaseModel):
    customer_id: UUID
    amount: int = Field(..., gt=0, description="Whole rupees")
    payment_type: PaymentType = PaymentType.PARTIAL
    payment_mode: PaymentMode = PaymentMode.CASH
    payment_date: Optional[date] = Field(None, description="Defaults to today")
    status: PaymentStatus = PaymentStatus.COMPLETED
    notes: Optional[str] = Field(None, max_length=1000)


class PendingPaymentResponse(BaseModel):
    customer_id: UUID
    full_name: str
    mobile_number: str
    subscription_id: UUID
    plan_amount: int
    end_date: date
    total_due: int
    total_paid: int
    guest_charges: int
    pending_amount: int
    reminder_url: str


router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    payload: PaymentCreateRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Record money received; linked to the customer's active plan when there is one."""
    return PaymentService(db).record(
        vendor.id,
        payload.customer_id,
        amount=payload.amount,
        payment_date=payload.payment_date or today,
        payment_type=payload.payment_type,
        payment_mode=payload.payment_mode,
        status=payload.status,
        notes=payload.notes,
    )


@router.get("/pending", response_model=List[PendingPaymentResponse])
def pending_payments(
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """Customers on an active plan with dues, largest first, each with a WhatsApp reminder link."""
    business_name = vendor.business_name or settings.app_name
    return [
        PendingPaymentResponse(
            customer_id=account.customer.id,
            full_name=account.customer.full_name,
            mobile_number=account.customer.mobile_number,
            subscription_id=account.subscription.id,
            plan_amount=account.subscription.plan_amount,
            end_date=account.subscription.end_date,
            total_due=account.bill.total_due,
            total_paid=account.bill.total_paid,
            guest_charges=account.bill.guest_charges,
            pending_amount=account.pending_amount,
            reminder_url=whatsapp_link(
                account.customer.whatsapp_number or account.customer.mobile_number,
                pending_reminder(account.customer.full_name, business_name, account.bill),
            ),
        )
        for account in PaymentService(db).pending_payments(vendor.id)
    ]


@router.get("", response_model=List[PaymentResponse])
def payment_history(
    customer_id: Optional[UUID] = Query(None, description="Only this customer's payments"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """All payments, newest first."""
    return PaymentService(db).history(vendor.id, customer_id, limit)
