"""
Dashboard numbers, the per-customer bill report and the business summary.
"""
import enum
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import BadRequestException
from tiffinos.lib.config_flags import get_billing_defaults
from tiffinos.lib.logging import get_logger
from tiffinos.lib.metrics import get_metrics_collector
from tiffinos.models.attendance import Attendance
from tiffinos.models.customers import Customer
from tiffinos.models.payments import Payment, PaymentStatus
from tiffinos.models.subscriptions import Subscription
from tiffinos.models.vendors import Vendor
from tiffinos.services.billing_engine import (
    AttendanceRecordView,
    Bill,
    BillingMode,
    GuestValuation,
    MenuPrices,
    PaymentView,
    compute_bill,
    guest_charge,
    sum_paid,
)
from tiffinos.services.billing_service import BillingService, CustomerLedger, build_bill_input
from tiffinos.services.customer_service import CustomerService
from tiffinos.services.statement_formatter import bill_statement, whatsapp_link


logger = get_logger(__name__)


class ReportPeriod(str, enum.Enum):
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    CUSTOM = "custom"


def period_bounds(
    period: ReportPeriod,
    today: date,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> tuple[date, date]:
    """Inclusive date range for a report period."""
    first_of_month = today.replace(day=1)
    if period == ReportPeriod.THIS_MONTH:
        return first_of_month, today
    if period == ReportPeriod.LAST_MONTH:
        last_end = first_of_month - timedelta(days=1)
        return last_end.replace(day=1), last_end
    if start is None or end is None:
        raise BadRequestException("Custom period needs start and end dates")
    if end < start:
        raise BadRequestException(
            "End date must not be before start date",
            details={"start": str(start), "end": str(end)},
        )
    return start, end


@dataclass
class DashboardStats:
    total_customers: int
    total_pending: int
    today_meals: int
    this_month_collection: int
    expiring_count: int


@dataclass
class CustomerReport:
    vendor: Vendor
    customer: Customer
    subscription: Optional[Subscription]
    bill: Bill
    ledger: CustomerLedger
    menu_prices: MenuPrices
    statement_text: str
    whatsapp_url: str


@dataclass
class BusinessReport:
    period: ReportPeriod
    start_date: date
    end_date: date
    active_customers: int
    lunch_meals: int
    dinner_meals: int
    guest_meals: int
    total_collection: int
    collection_by_mode: dict[str, int] = field(default_factory=dict)
    guest_revenue: int = 0

    @property
    def total_meals(self) -> int:
        return self.lunch_meals + self.dinner_meals


class ReportService:
    """Read-only aggregates; all money comes from the billing engine helpers."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.billing = BillingService(db_session)
        self.customers = CustomerService(db_session)

    def _active_customers(self, vendor_id: UUID) -> dict[UUID, Customer]:
        stmt = select(Customer).where(
            Customer.vendor_id == vendor_id,
            Customer.is_active == True,  # noqa: E712
        )
        return {c.id: c for c in self.db.execute(stmt).scalars()}

    def _payments_between(self, vendor_id: UUID, start: date, end: date) -> list[Payment]:
        stmt = select(Payment).where(
            Payment.vendor_id == vendor_id,
            Payment.payment_date >= start,
            Payment.payment_date <= end,
        )
        return list(self.db.execute(stmt).scalars().all())

    def _excluded_statuses(self) -> frozenset[PaymentStatus]:
        return frozenset(PaymentStatus(s) for s in get_billing_defaults().excluded_payment_statuses)

    def dashboard_stats(self, vendor_id: UUID, today: date) -> DashboardStats:
        customers = self._active_customers(vendor_id)
        defaults = get_billing_defaults()
        window_end = today + timedelta(days=defaults.expiring_window_days)

        total_pending = 0
        expiring = 0
        if customers:
            for customer_id, ledger in self.billing.load_ledgers(vendor_id, list(customers)).items():
                active = ledger.active_subscription
                if active is None:
                    continue
                total_pending += self.billing.bill_for(vendor_id, customers[customer_id], ledger).pending_clamped
                if today <= active.end_date <= window_end:
                    expiring += 1

        today_meals = 0
        for record in self.db.execute(
            select(Attendance).where(
                Attendance.vendor_id == vendor_id,
                Attendance.attendance_date == today,
            )
        ).scalars():
            if record.is_cancelled and defaults.void_cancelled_meals:
                continue
            today_meals += int(record.lunch_taken) + int(record.dinner_taken)

        collection = sum_paid(
            [PaymentView.model_validate(p) for p in self._payments_between(vendor_id, today.replace(day=1), today)],
            self._excluded_statuses(),
        )

        get_metrics_collector().increment_reports("dashboard")
        return DashboardStats(
            total_customers=len(customers),
            total_pending=total_pending,
            today_meals=today_meals,
            this_month_collection=collection,
            expiring_count=expiring,
        )

    def customer_report(
        self,
        vendor_id: UUID,
        customer_id: UUID,
        billing_mode: BillingMode = BillingMode.FIXED_PLAN,
        guest_valuation: GuestValuation = GuestValuation.FLAT_RATE,
    ) -> CustomerReport:
        """Bill over all recorded attendance and payments, plus the shareable statement."""
        customer = self.customers.get(vendor_id, customer_id)
        vendor = self.db.get(Vendor, vendor_id)
        ledger = self.billing.load_ledger(vendor_id, customer.id)
        prices = self.billing.menu.resolve_menu_prices(vendor_id, customer)
        bill = compute_bill(build_bill_input(ledger, billing_mode, guest_valuation, prices))

        subscription = ledger.current_subscription
        period = (subscription.start_date, subscription.end_date) if subscription else None
        text = bill_statement(
            bill,
            business_name=vendor.business_name or "TiffinOS",
            vendor_mobile=vendor.mobile_number,
            customer_name=customer.full_name,
            customer_mobile=customer.mobile_number,
            period=period,
        )

        get_metrics_collector().increment_reports("customer")
        logger.info(
            "Customer report generated",
            extra={
                "customer_id": str(customer.id),
                "billing_mode": billing_mode.value,
                "pending_signed": bill.pending_signed,
            },
        )
        return CustomerReport(
            vendor=vendor,
            customer=customer,
            subscription=subscription,
            bill=bill,
            ledger=ledger,
            menu_prices=prices,
            statement_text=text,
            whatsapp_url=whatsapp_link(customer.whatsapp_number or customer.mobile_number, text),
        )

    def business_report(
        self,
        vendor_id: UUID,
        period: ReportPeriod,
        today: date,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> BusinessReport:
        start, end = period_bounds(period, today, start, end)
        defaults = get_billing_defaults()

        active_customers = self.db.execute(
            select(func.count(Customer.id)).where(
                Customer.vendor_id == vendor_id,
                Customer.is_active == True,  # noqa: E712
            )
        ).scalar_one()

        lunch = dinner = guests = 0
        for record in self.db.execute(
            select(Attendance).where(
                Attendance.vendor_id == vendor_id,
                Attendance.attendance_date >= start,
                Attendance.attendance_date <= end,
            )
        ).scalars():
            view = AttendanceRecordView.model_validate(record)
            guests += max(0, view.guest_count)
            if view.is_cancelled and defaults.void_cancelled_meals:
                continue
            lunch += int(view.lunch_taken)
            dinner += int(view.dinner_taken)

        excluded = self._excluded_statuses()
        by_mode: dict[str, int] = {}
        for payment in self._payments_between(vendor_id, start, end):
            if payment.status in excluded:
                continue
            mode = payment.payment_mode.value
            by_mode[mode] = by_mode.get(mode, 0) + payment.amount

        get_metrics_collector().increment_reports("business")
        return BusinessReport(
            period=period,
            start_date=start,
            end_date=end,
            active_customers=active_customers,
            lunch_meals=lunch,
            dinner_meals=dinner,
            guest_meals=guests,
            total_collection=sum(by_mode.values()),
            collection_by_mode=by_mode,
            guest_revenue=guest_charge(guests, GuestValuation.FLAT_RATE, defaults.guest_rate, MenuPrices()),
        )
