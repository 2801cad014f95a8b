"""
Subscription routes: plan history, renewal and cancellation.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db, get_today
from tiffinos.models.payments import PaymentMode
from tiffinos.models.subscriptions import MealFrequency, Subscription, SubscriptionStatus
from tiffinos.models.vendors import Vendor
from tiffinos.services.customer_service import CustomerService
from tiffinos.services.subscription_service import SubscriptionService, can_renew


class SubscriptionResponse(BaseModel):
    id: UUID
    customer_id: UUID
    start_date: date
    end_date: date
    meal_frequency: MealFrequency
    plan_amount: int
    status: SubscriptionStatus
    days_left: int
    can_renew: bool
    created_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def build(cls, sub: Subscription, today: date) -> "SubscriptionResponse":
        return cls(
            id=sub.id,
            customer_id=sub.customer_id,
            start_date=sub.start_date,
            end_date=sub.end_date,
            meal_frequency=sub.meal_frequency,
            plan_amount=sub.plan_amount,
            status=sub.status,
            days_left=sub.days_left(today),
            can_renew=can_renew(sub, today),
            created_at=sub.created_at,
        )


class RenewRequest(BaseModel):
    plan_amount: int = Field(..., ge=0)
    start_date: Optional[date] = Field(None, description="Defaults to the day after the current plan ends")
    end_date: Optional[date] = Field(None, description="Defaults to one month after start_date")
    advance_amount: int = Field(0, ge=0)
    payment_mode: PaymentMode = PaymentMode.CASH


router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("/customer/{customer_id}", response_model=List[SubscriptionResponse])
def subscription_history(
    customer_id: UUID,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """All plans of a customer, latest first."""
    customer = CustomerService(db).get(vendor.id, customer_id)
    subs = SubscriptionService(db).history(vendor.id, customer.id)
    return [SubscriptionResponse.build(s, today) for s in subs]


@router.post(
    "/customer/{customer_id}/renew",
    response_model=SubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
)
def renew_subscription(
    customer_id: UUID,
    payload: RenewRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Complete the active plan and start the next one."""
    customer = CustomerService(db).get(vendor.id, customer_id)
    sub = SubscriptionService(db).renew(
        customer,
        plan_amount=payload.plan_amount,
        today=today,
        start_date=payload.start_date,
        end_date=payload.end_date,
        advance_amount=payload.advance_amount,
        payment_mode=payload.payment_mode,
    )
    return SubscriptionResponse.build(sub, today)


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse)
def cancel_subscription(
    subscription_id: UUID,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Cancel an active plan; 409 for completed or already cancelled ones."""
    sub = SubscriptionService(db).cancel(vendor.id, subscription_id)
    return SubscriptionResponse.build(sub, today)
