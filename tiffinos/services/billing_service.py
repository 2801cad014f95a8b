"""
Billing data access: loads a vendor's records and runs them through the
billing engine.

Everything is fetched in a handful of vendor-scoped queries and grouped in
memory, so list screens cost the same number of round trips no matter how
many customers a vendor has.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tiffinos.lib.config_flags import get_billing_defaults
from tiffinos.models.attendance import Attendance
from tiffinos.models.customers import Customer
from tiffinos.models.payments import Payment, PaymentStatus
from tiffinos.models.subscriptions import Subscription, SubscriptionStatus
from tiffinos.services.billing_engine import (
    AttendanceRecordView,
    Bill,
    BillInput,
    BillingMode,
    GuestValuation,
    MenuPrices,
    PaymentView,
    SubscriptionView,
    compute_bill,
)
from tiffinos.services.menu_service import MenuService


@dataclass
class CustomerLedger:
    """All billing-relevant rows for one customer."""
    subscriptions: list[Subscription] = field(default_factory=list)
    attendance: list[Attendance] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)

    @property
    def active_subscription(self) -> Optional[Subscription]:
        for sub in self.subscriptions:
            if sub.status == SubscriptionStatus.ACTIVE:
                return sub
        return None

    @property
    def current_subscription(self) -> Optional[Subscription]:
        """Active subscription, else the one that ended last (for display)."""
        active = self.active_subscription
        if active is not None:
            return active
        if not self.subscriptions:
            return None
        return max(self.subscriptions, key=lambda s: s.end_date)


def build_bill_input(
    ledger: CustomerLedger,
    billing_mode: BillingMode = BillingMode.FIXED_PLAN,
    guest_valuation: GuestValuation = GuestValuation.FLAT_RATE,
    menu_prices: Optional[MenuPrices] = None,
) -> BillInput:
    """Translate ORM rows into engine input using the configured defaults."""
    defaults = get_billing_defaults()
    subscription = ledger.active_subscription
    return BillInput(
        subscription=SubscriptionView.model_validate(subscription) if subscription else None,
        attendance=[AttendanceRecordView.model_validate(a) for a in ledger.attendance],
        payments=[PaymentView.model_validate(p) for p in ledger.payments],
        billing_mode=billing_mode,
        menu_prices=menu_prices or MenuPrices(
            lunch_price=defaults.default_lunch_price,
            dinner_price=defaults.default_dinner_price,
        ),
        guest_rate=defaults.guest_rate,
        guest_valuation=guest_valuation,
        excluded_payment_statuses=frozenset(
            PaymentStatus(s) for s in defaults.excluded_payment_statuses
        ),
        void_cancelled_meals=defaults.void_cancelled_meals,
    )


class BillingService:
    """Vendor-scoped record loading plus engine invocation."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.menu = MenuService(db_session)

    def load_ledgers(
        self,
        vendor_id: UUID,
        customer_ids: Optional[Iterable[UUID]] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict[UUID, CustomerLedger]:
        """
        Group subscriptions, attendance and payments by customer.

        start/end bound attendance_date and payment_date (inclusive);
        subscriptions are never date-filtered.
        """
        ids = list(customer_ids) if customer_ids is not None else None
        ledgers: dict[UUID, CustomerLedger] = defaultdict(CustomerLedger)

        sub_stmt = select(Subscription).where(Subscription.vendor_id == vendor_id)
        att_stmt = select(Attendance).where(Attendance.vendor_id == vendor_id)
        pay_stmt = select(Payment).where(
            Payment.vendor_id == vendor_id,
            Payment.customer_id.is_not(None),
        )
        if ids is not None:
            sub_stmt = sub_stmt.where(Subscription.customer_id.in_(ids))
            att_stmt = att_stmt.where(Attendance.customer_id.in_(ids))
            pay_stmt = pay_stmt.where(Payment.customer_id.in_(ids))
        if start is not None:
            att_stmt = att_stmt.where(Attendance.attendance_date >= start)
            pay_stmt = pay_stmt.where(Payment.payment_date >= start)
        if end is not None:
            att_stmt = att_stmt.where(Attendance.attendance_date <= end)
            pay_stmt = pay_stmt.where(Payment.payment_date <= end)

        for sub in self.db.execute(sub_stmt.order_by(Subscription.end_date)).scalars():
            ledgers[sub.customer_id].subscriptions.append(sub)
        for record in self.db.execute(att_stmt.order_by(Attendance.attendance_date)).scalars():
            ledgers[record.customer_id].attendance.append(record)
        for payment in self.db.execute(pay_stmt.order_by(Payment.payment_date)).scalars():
            ledgers[payment.customer_id].payments.append(payment)

        return dict(ledgers)

    def load_ledger(
        self,
        vendor_id: UUID,
        customer_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> CustomerLedger:
        return self.load_ledgers(vendor_id, [customer_id], start, end).get(customer_id, CustomerLedger())

    def bill_for(
        self,
        vendor_id: UUID,
        customer: Customer,
        ledger: CustomerLedger,
        billing_mode: BillingMode = BillingMode.FIXED_PLAN,
        guest_valuation: GuestValuation = GuestValuation.FLAT_RATE,
    ) -> Bill:
        """Bill a customer; menu prices are only looked up when they can matter."""
        needs_prices = (
            billing_mode == BillingMode.PER_MEAL
            or guest_valuation == GuestValuation.MEAL_AVERAGE
        )
        prices = self.menu.resolve_menu_prices(vendor_id, customer) if needs_prices else None
        return compute_bill(build_bill_input(ledger, billing_mode, guest_valuation, prices))

