"""
Subscription lifecycle: create, renew, cancel.

State machine (enforced here, not in the database):
    active -> completed   on renewal
    active -> cancelled   manual
completed and cancelled are terminal. A customer has at most one active plan.
"""
from calendar import monthrange
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import (
    BadRequestException,
    InvalidStateTransition,
    NotFoundException,
)
from tiffinos.lib.config_flags import get_billing_defaults
from tiffinos.lib.logging import get_logger
from tiffinos.lib.metrics import get_metrics_collector
from tiffinos.models.customers import Customer
from tiffinos.models.payments import Payment, PaymentMode, PaymentStatus, PaymentType
from tiffinos.models.subscriptions import MealFrequency, Subscription, SubscriptionStatus


logger = get_logger(__name__)


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    return date(y, m, min(start.day, monthrange(y, m)[1]))


def default_renewal_period(current: Optional[Subscription], today: date) -> tuple[date, date]:
    """New plan starts the day after the current one ends (or today) and runs one month."""
    start = current.end_date + timedelta(days=1) if current else today
    return start, add_months(start, 1)


def can_renew(subscription: Optional[Subscription], today: date) -> bool:
    """Renewal is offered once the plan is within the renewal window or over."""
    if subscription is None:
        return True
    return subscription.days_left(today) <= get_billing_defaults().renewal_window_days


class SubscriptionService:
    """Vendor-scoped subscription operations."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get(self, vendor_id: UUID, subscription_id: UUID) -> Subscription:
        sub = self.db.get(Subscription, subscription_id)
        if sub is None or sub.vendor_id != vendor_id:
            raise NotFoundException("Subscription", str(subscription_id))
        return sub

    def active_for(self, vendor_id: UUID, customer_id: UUID) -> Optional[Subscription]:
        stmt = select(Subscription).where(
            Subscription.vendor_id == vendor_id,
            Subscription.customer_id == customer_id,
            Subscription.status == SubscriptionStatus.ACTIVE,
        )
        return self.db.execute(stmt).scalars().first()

    def history(self, vendor_id: UUID, customer_id: UUID) -> list[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.vendor_id == vendor_id, Subscription.customer_id == customer_id)
            .order_by(Subscription.end_date.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def _insert(
        self,
        customer: Customer,
        start_date: date,
        end_date: date,
        plan_amount: int,
        meal_frequency: MealFrequency,
    ) -> Subscription:
        if end_date < start_date:
            raise BadRequestException(
                "End date must not be before start date",
                details={"start_date": str(start_date), "end_date": str(end_date)},
            )
        sub = Subscription(
            customer_id=customer.id,
            vendor_id=customer.vendor_id,
            start_date=start_date,
            end_date=end_date,
            meal_frequency=meal_frequency,
            plan_amount=plan_amount,
            status=SubscriptionStatus.ACTIVE,
        )
        self.db.add(sub)
        self.db.flush()
        return sub

    def _advance_payment(
        self,
        customer: Customer,
        sub: Subscription,
        amount: int,
        payment_mode: PaymentMode,
        payment_date: date,
    ) -> Payment:
        payment = Payment(
            vendor_id=customer.vendor_id,
            customer_id=customer.id,
            subscription_id=sub.id,
            amount=amount,
            payment_type=PaymentType.ADVANCE,
            payment_mode=payment_mode,
            payment_date=payment_date,
            status=PaymentStatus.COMPLETED,
        )
        self.db.add(payment)
        get_metrics_collector().increment_payments(
            payment_mode=PaymentMode(payment_mode).value,
            payment_type=PaymentType.ADVANCE.value,
            amount=amount,
        )
        return payment

    def start(
        self,
        customer: Customer,
        start_date: date,
        end_date: date,
        plan_amount: int,
        meal_frequency: MealFrequency = MealFrequency.ONE_TIME,
        advance_amount: int = 0,
        payment_mode: PaymentMode = PaymentMode.CASH,
    ) -> Subscription:
        """First plan for a customer. Caller commits."""
        if self.active_for(customer.vendor_id, customer.id) is not None:
            raise InvalidStateTransition("Customer subscription", "active", "active")
        sub = self._insert(customer, start_date, end_date, plan_amount, meal_frequency)
        if advance_amount > 0:
            self._advance_payment(customer, sub, advance_amount, payment_mode, start_date)
        return sub

    def renew(
        self,
        customer: Customer,
        plan_amount: int,
        today: date,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        advance_amount: int = 0,
        payment_mode: PaymentMode = PaymentMode.CASH,
    ) -> Subscription:
        """
        Close the active plan as completed and open the next one.

        The meal frequency carries over. Dates default to the day after the
        old plan ends through one month later.
        """
        current = self.active_for(customer.vendor_id, customer.id)
        default_start, default_end = default_renewal_period(current, today)
        start_date = start_date or default_start
        end_date = end_date or (add_months(start_date, 1) if start_date != default_start else default_end)

        frequency = current.meal_frequency if current else MealFrequency.ONE_TIME
        sub = self._insert(customer, start_date, end_date, plan_amount, frequency)
        if current is not None:
            current.status = SubscriptionStatus.COMPLETED
        if advance_amount > 0:
            self._advance_payment(customer, sub, advance_amount, payment_mode, start_date)

        self.db.commit()
        self.db.refresh(sub)

        logger.info(
            "Subscription renewed",
            extra={
                "customer_id": str(customer.id),
                "previous_subscription_id": str(current.id) if current else None,
                "subscription_id": str(sub.id),
                "plan_amount": plan_amount,
            },
        )
        return sub

    def cancel(self, vendor_id: UUID, subscription_id: UUID) -> Subscription:
        sub = self.get(vendor_id, subscription_id)
        if sub.status != SubscriptionStatus.ACTIVE:
            raise InvalidStateTransition(
                "Subscription",
                SubscriptionStatus(sub.status).value,
                SubscriptionStatus.CANCELLED.value,
            )
        sub.status = SubscriptionStatus.CANCELLED
        self.db.commit()
        self.db.refresh(sub)
        logger.info("Subscription cancelled", extra={"subscription_id": str(sub.id)})
        return sub
