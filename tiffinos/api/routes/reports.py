"""
Report routes: dashboard, customer bill report and business summary.
"""
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db, get_today
from tiffinos.api.routes.attendance import AttendanceResponse
from tiffinos.api.routes.customers import CustomerResponse
from tiffinos.api.routes.payments import PaymentResponse
from tiffinos.api.routes.subscriptions import SubscriptionResponse
from tiffinos.models.vendors import Vendor
from tiffinos.services.billing_engine import BillingMode, GuestValuation
from tiffinos.services.report_service import ReportPeriod, ReportService


class DashboardResponse(BaseModel):
    total_customers: int
    total_pending: int
    today_meals: int
    this_month_collection: int
    expiring_count: int


class BillResponse(BaseModel):
    billing_mode: BillingMode
    meal_charges: int
    guest_charges: int
    total_due: int
    total_paid: int
    pending_signed: int
    pending_clamped: int
    balance_state: str
    days_present: int
    lunch_count: int
    dinner_count: int
    total_meals: int
    guest_count: int
    lunch_price: int
    dinner_price: int


class CustomerReportResponse(BaseModel):
    customer: CustomerResponse
    subscription: Optional[SubscriptionResponse] = None
    bill: BillResponse
    guest_valuation: GuestValuation
    attendance: List[AttendanceResponse]
    payments: List[PaymentResponse]
    statement_text: str
    whatsapp_url: str


class BusinessReportResponse(BaseModel):
    period: ReportPeriod
    start_date: date
    end_date: date
    active_customers: int
    lunch_meals: int
    dinner_meals: int
    total_meals: int
    guest_meals: int
    total_collection: int
    collection_by_mode: Dict[str, int]
    guest_revenue: int


router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    stats = ReportService(db).dashboard_stats(vendor.id, today)
    return DashboardResponse(**vars(stats))


@router.get("/customers/{customer_id}", response_model=CustomerReportResponse)
def customer_report(
    customer_id: UUID,
    billing_mode: BillingMode = Query(BillingMode.FIXED_PLAN),
    guest_valuation: GuestValuation = Query(GuestValuation.FLAT_RATE),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """
    Bill over all recorded attendance and payments.

    billing_mode: fixed_plan bills the active plan amount, per_meal bills
    each meal at the vendor's menu price.
    """
    report = ReportService(db).customer_report(vendor.id, customer_id, billing_mode, guest_valuation)
    bill = report.bill
    return CustomerReportResponse(
        customer=CustomerResponse.model_validate(report.customer),
        subscription=SubscriptionResponse.build(report.subscription, today) if report.subscription else None,
        bill=BillResponse(**bill.model_dump(), balance_state=bill.balance_state),
        guest_valuation=guest_valuation,
        attendance=[AttendanceResponse.model_validate(a) for a in reversed(report.ledger.attendance)],
        payments=[PaymentResponse.model_validate(p) for p in reversed(report.ledger.payments)],
        statement_text=report.statement_text,
        whatsapp_url=report.whatsapp_url,
    )


@router.get("/business", response_model=BusinessReportResponse)
def business_report(
    period: ReportPeriod = Query(ReportPeriod.THIS_MONTH),
    start: Optional[date] = Query(None, description="Required for the custom period"),
    end: Optional[date] = Query(None, description="Required for the custom period"),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    report = ReportService(db).business_report(vendor.id, period, today, start, end)
    return BusinessReportResponse(**vars(report), total_meals=report.total_meals)
