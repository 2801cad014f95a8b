"""
Customer management: onboarding, list screens, profile edits and the
recycle bin (soft delete, restore, purge).

Money shown next to a customer always comes from the billing engine via
BillingService, using the fixed plan with flat-rate guests over all-time
attendance and payments.
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import InvalidStateTransition, NotFoundException
from tiffinos.lib.config_flags import get_billing_defaults
from tiffinos.lib.logging import get_logger
from tiffinos.lib.metrics import get_metrics_collector
from tiffinos.models.attendance import Attendance
from tiffinos.models.customers import Customer, CustomerType
from tiffinos.models.payments import Payment, PaymentMode
from tiffinos.models.subscriptions import MealFrequency, Subscription
from tiffinos.services.billing_engine import Bill
from tiffinos.services.billing_service import BillingService, CustomerLedger
from tiffinos.services.subscription_service import SubscriptionService, can_renew


logger = get_logger(__name__)

CUSTOMER_FIELDS = (
    "full_name",
    "mobile_number",
    "whatsapp_number",
    "address",
    "notes",
    "customer_type",
    "meal_type",
    "lunch_meal_type",
    "dinner_meal_type",
)


class CustomerFilter(str, enum.Enum):
    ALL = "all"
    ACTIVE = "active"
    EXPIRED = "expired"
    EXPIRING = "expiring"
    PENDING = "pending"
    CLEAR = "clear"
    ONE_TIME = "one_time"
    TWO_TIMES = "two_times"


@dataclass
class CustomerOverview:
    """A customer row as shown on list and detail screens."""
    customer: Customer
    subscription: Optional[Subscription]
    bill: Bill
    attendance_days: int = 0
    can_renew: bool = False

    @property
    def pending_amount(self) -> int:
        return self.bill.pending_clamped


def _matches(overview: CustomerOverview, flt: CustomerFilter, today: date, window_end: date) -> bool:
    sub = overview.subscription
    if flt == CustomerFilter.ACTIVE:
        return sub is not None and sub.end_date >= today
    if flt == CustomerFilter.EXPIRED:
        return sub is None or sub.end_date < today
    if flt == CustomerFilter.EXPIRING:
        return sub is not None and today <= sub.end_date <= window_end
    if flt == CustomerFilter.PENDING:
        return overview.pending_amount > 0
    if flt == CustomerFilter.CLEAR:
        return overview.pending_amount == 0
    if flt == CustomerFilter.ONE_TIME:
        return sub is not None and sub.meal_frequency == MealFrequency.ONE_TIME
    if flt == CustomerFilter.TWO_TIMES:
        return sub is not None and sub.meal_frequency == MealFrequency.TWO_TIMES
    return True


class CustomerService:
    """Vendor-scoped customer operations."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.billing = BillingService(db_session)
        self.subscriptions = SubscriptionService(db_session)

    # ===== Lookup =====

    def get(self, vendor_id: UUID, customer_id: UUID, include_deleted: bool = False) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if customer is None or customer.vendor_id != vendor_id:
            raise NotFoundException("Customer", str(customer_id))
        if not include_deleted and not customer.is_active:
            raise NotFoundException("Customer", str(customer_id))
        return customer

    def find_by_mobile(self, vendor_id: UUID, mobile_number: str) -> Optional[Customer]:
        stmt = select(Customer).where(
            Customer.vendor_id == vendor_id,
            Customer.mobile_number == mobile_number,
            Customer.is_active == True,  # noqa: E712
        )
        return self.db.execute(stmt).scalars().first()

    # ===== Create / update =====

    def create(
        self,
        vendor_id: UUID,
        fields: dict[str, Any],
        subscription: Optional[dict[str, Any]] = None,
        advance_amount: int = 0,
        payment_mode: PaymentMode = PaymentMode.CASH,
    ) -> Customer:
        """
        Add a customer, optionally with a first subscription and an advance
        payment recorded against it. All rows commit together.
        """
        values = {k: v for k, v in fields.items() if k in CUSTOMER_FIELDS and v is not None}
        values.setdefault("whatsapp_number", values.get("mobile_number"))
        customer = Customer(vendor_id=vendor_id, **values)
        self.db.add(customer)
        self.db.flush()

        if subscription is not None:
            self.subscriptions.start(
                customer,
                start_date=subscription["start_date"],
                end_date=subscription["end_date"],
                plan_amount=subscription.get("plan_amount", 0),
                meal_frequency=subscription.get("meal_frequency") or MealFrequency.ONE_TIME,
                advance_amount=advance_amount,
                payment_mode=payment_mode,
            )

        self.db.commit()
        self.db.refresh(customer)

        get_metrics_collector().increment_onboarded(CustomerType(customer.customer_type).value)
        logger.info(
            "Customer created",
            extra={
                "vendor_id": str(vendor_id),
                "customer_id": str(customer.id),
                "with_subscription": subscription is not None,
            },
        )
        return customer

    def update(self, vendor_id: UUID, customer_id: UUID, fields: dict[str, Any]) -> Customer:
        customer = self.get(vendor_id, customer_id)
        for name in CUSTOMER_FIELDS:
            if name in fields and fields[name] is not None:
                setattr(customer, name, fields[name])
        self.db.commit()
        self.db.refresh(customer)
        return customer

    # ===== Read models =====

    def _overview(
        self,
        customer: Customer,
        ledger: CustomerLedger,
        today: date,
    ) -> CustomerOverview:
        current = ledger.current_subscription
        return CustomerOverview(
            customer=customer,
            subscription=current,
            bill=self.billing.bill_for(customer.vendor_id, customer, ledger),
            attendance_days=len(ledger.attendance),
            can_renew=can_renew(current, today),
        )

    def list_customers(
        self,
        vendor_id: UUID,
        today: date,
        flt: CustomerFilter = CustomerFilter.ALL,
        search: Optional[str] = None,
    ) -> list[CustomerOverview]:
        stmt = select(Customer).where(
            Customer.vendor_id == vendor_id,
            Customer.is_active == True,  # noqa: E712
        )
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Customer.full_name.ilike(pattern), Customer.mobile_number.like(pattern)))
        customers = list(self.db.execute(stmt.order_by(Customer.full_name)).scalars().all())
        if not customers:
            return []

        ledgers = self.billing.load_ledgers(vendor_id, [c.id for c in customers])
        window_end = today + timedelta(days=get_billing_defaults().expiring_window_days)

        rows = [self._overview(c, ledgers.get(c.id, CustomerLedger()), today) for c in customers]
        return [row for row in rows if _matches(row, flt, today, window_end)]

    def detail(self, vendor_id: UUID, customer_id: UUID, today: date) -> CustomerOverview:
        customer = self.get(vendor_id, customer_id)
        ledger = self.billing.load_ledger(vendor_id, customer.id)
        return self._overview(customer, ledger, today)

    # ===== Recycle bin =====

    def soft_delete(self, vendor_id: UUID, customer_id: UUID) -> Customer:
        customer = self.get(vendor_id, customer_id)
        customer.is_active = False
        customer.deleted_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(customer)

        get_metrics_collector().increment_lifecycle("soft_deleted")
        logger.info("Customer moved to recycle bin", extra={"customer_id": str(customer.id)})
        return customer

    def list_deleted(self, vendor_id: UUID) -> list[Customer]:
        stmt = (
            select(Customer)
            .where(
                Customer.vendor_id == vendor_id,
                Customer.is_active == False,  # noqa: E712
                Customer.deleted_at.is_not(None),
            )
            .order_by(Customer.deleted_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def _deleted(self, vendor_id: UUID, customer_id: UUID, target: str) -> Customer:
        customer = self.get(vendor_id, customer_id, include_deleted=True)
        if not customer.is_soft_deleted:
            raise InvalidStateTransition("Customer", "active", target)
        return customer

    def restore(self, vendor_id: UUID, customer_id: UUID) -> Customer:
        customer = self._deleted(vendor_id, customer_id, "restored")
        customer.is_active = True
        customer.deleted_at = None
        self.db.commit()
        self.db.refresh(customer)

        get_metrics_collector().increment_lifecycle("restored")
        logger.info("Customer restored", extra={"customer_id": str(customer.id)})
        return customer

    def purge(self, vendor_id: UUID, customer_id: UUID) -> None:
        """Permanently remove a soft-deleted customer and everything recorded for them."""
        customer = self._deleted(vendor_id, customer_id, "purged")

        self.db.execute(delete(Attendance).where(Attendance.customer_id == customer.id))
        self.db.execute(delete(Payment).where(Payment.customer_id == customer.id))
        self.db.execute(delete(Subscription).where(Subscription.customer_id == customer.id))
        self.db.delete(customer)
        self.db.commit()

        get_metrics_collector().increment_lifecycle("purged")
        logger.info("Customer purged", extra={"customer_id": str(customer_id)})
