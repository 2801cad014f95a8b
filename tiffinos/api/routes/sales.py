"""
Quick sale route for walk-in customers.
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db, get_today
from tiffinos.api.routes.payments import PaymentResponse
from tiffinos.models.payments import PaymentMode
from tiffinos.models.vendors import Vendor
from tiffinos.services.payment_service import PaymentService, SaleLine
from tiffinos.services.statement_formatter import whatsapp_link


class SaleItemRequest(BaseModel):
    menu_item_id: UUID
    quantity: int = Field(1, ge=1, le=100)


class QuickSaleRequest(BaseModel):
    items: List[SaleItemRequest] = Field(..., min_length=1)
    payment_mode: PaymentMode = PaymentMode.CASH
    customer_mobile: Optional[str] = Field(None, min_length=10, max_length=20)
    customer_name: Optional[str] = Field(None, max_length=255)


class QuickSaleResponse(BaseModel):
    payment: PaymentResponse
    customer_id: Optional[UUID] = None
    receipt_text: str
    receipt_url: Optional[str] = None


router = APIRouter(prefix="/sales", tags=["sales"])


@router.post("", response_model=QuickSaleResponse, status_code=status.HTTP_201_CREATED)
def quick_sale(
    payload: QuickSaleRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Ring up menu items at walk-in prices as one walk_in payment."""
    result = PaymentService(db).quick_sale(
        vendor.id,
        [SaleLine(menu_item_id=i.menu_item_id, quantity=i.quantity) for i in payload.items],
        sale_date=today,
        payment_mode=payload.payment_mode,
        customer_mobile=payload.customer_mobile,
        customer_name=payload.customer_name,
    )
    return QuickSaleResponse(
        payment=PaymentResponse.model_validate(result.payment),
        customer_id=result.customer.id if result.customer else None,
        receipt_text=result.receipt_text,
        receipt_url=whatsapp_link(payload.customer_mobile, result.receipt_text) if payload.customer_mobile else None,
    )
