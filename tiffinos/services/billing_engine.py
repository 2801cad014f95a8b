"""
Billing reconciliation engine.

Turns one customer's subscription, attendance and payments into a bill and
an outstanding balance. Every screen that shows money owed (customer list,
dashboard, pending payments, customer report, business report) goes through
compute_bill so they can never disagree.

The engine is a pure function: no I/O, no hidden state, inputs are never
mutated, and it never raises for missing or empty data.
"""
import enum
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from tiffinos.models.subscriptions import MealFrequency, SubscriptionStatus
from tiffinos.models.payments import PaymentMode, PaymentStatus, PaymentType


DEFAULT_GUEST_RATE = 40
DEFAULT_LUNCH_PRICE = 50
DEFAULT_DINNER_PRICE = 70


class BillingMode(str, enum.Enum):
    """Fixed monthly plan or pay for what was eaten."""
    FIXED_PLAN = "fixed_plan"
    PER_MEAL = "per_meal"


class GuestValuation(str, enum.Enum):
    """How a guest meal is priced."""
    FLAT_RATE = "flat_rate"
    MEAL_AVERAGE = "meal_average"


class SubscriptionView(BaseModel):
    """The parts of a subscription billing needs."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    plan_amount: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    meal_frequency: MealFrequency = MealFrequency.ONE_TIME
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE


class AttendanceRecordView(BaseModel):
    """One day of attendance. guest_count is not range-checked here."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    attendance_date: date
    lunch_taken: bool = False
    dinner_taken: bool = False
    guest_count: int = 0
    is_cancelled: bool = False
    notes: Optional[str] = None


class PaymentView(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    amount: int
    payment_type: PaymentType = PaymentType.PARTIAL
    payment_mode: PaymentMode = PaymentMode.CASH
    payment_date: Optional[date] = None
    status: PaymentStatus = PaymentStatus.COMPLETED


class MenuPrices(BaseModel):
    model_config = ConfigDict(frozen=True)

    lunch_price: int = DEFAULT_LUNCH_PRICE
    dinner_price: int = DEFAULT_DINNER_PRICE

    @property
    def average(self) -> Decimal:
        return (Decimal(self.lunch_price) + Decimal(self.dinner_price)) / 2


class BillInput(BaseModel):
    """Everything compute_bill looks at."""
    model_config = ConfigDict(frozen=True)

    subscription: Optional[SubscriptionView] = None
    attendance: tuple[AttendanceRecordView, ...] = ()
    payments: tuple[PaymentView, ...] = ()
    billing_mode: BillingMode = BillingMode.FIXED_PLAN
    menu_prices: MenuPrices = Field(default_factory=MenuPrices)
    guest_rate: int = DEFAULT_GUEST_RATE
    guest_valuation: GuestValuation = GuestValuation.FLAT_RATE
    excluded_payment_statuses: frozenset[PaymentStatus] = frozenset({PaymentStatus.FAILED})
    void_cancelled_meals: bool = True


class Bill(BaseModel):
    """Result of a reconciliation. Amounts are whole rupees."""
    model_config = ConfigDict(frozen=True)

    billing_mode: BillingMode
    meal_charges: int
    guest_charges: int
    total_due: int
    total_paid: int
    pending_signed: int
    pending_clamped: int
    days_present: int
    lunch_count: int
    dinner_count: int
    total_meals: int
    guest_count: int
    lunch_price: int
    dinner_price: int

    @property
    def balance_state(self) -> str:
        """'pending', 'refund' (overpaid / carry forward) or 'settled'."""
        if self.pending_signed > 0:
            return "pending"
        if self.pending_signed < 0:
            return "refund"
        return "settled"


def _meal_flags(record: AttendanceRecordView, void_cancelled: bool) -> tuple[bool, bool]:
    if void_cancelled and record.is_cancelled:
        return False, False
    return record.lunch_taken, record.dinner_taken


def sum_paid(
    payments: Iterable[PaymentView],
    excluded_statuses: Iterable[PaymentStatus] = (PaymentStatus.FAILED,),
) -> int:
    """Total of payments whose status is not excluded."""
    excluded = {PaymentStatus(s) for s in excluded_statuses}
    return sum(p.amount for p in payments if p.status not in excluded)


def guest_charge(
    guest_count: int,
    valuation: GuestValuation,
    guest_rate: int,
    menu_prices: MenuPrices,
) -> int:
    if valuation == GuestValuation.MEAL_AVERAGE:
        value = Decimal(guest_count) * menu_prices.average
        return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return guest_count * guest_rate


def compute_bill(bill_input: BillInput) -> Bill:
    """
    Reconcile one customer's account.

    Fixed plan bills the active subscription's plan_amount (0 without one);
    per meal bills each lunch and dinner taken at the menu price. Guest
    meals are added on top in both modes. pending_signed is due minus paid
    and goes negative on overpayment; pending_clamped never does.
    """
    prices = bill_input.menu_prices

    lunch_count = 0
    dinner_count = 0
    guest_count = 0
    present_days = set()
    for record in bill_input.attendance:
        lunch, dinner = _meal_flags(record, bill_input.void_cancelled_meals)
        if lunch:
            lunch_count += 1
        if dinner:
            dinner_count += 1
        if lunch or dinner:
            present_days.add(record.attendance_date)
        guest_count += max(0, record.guest_count)

    if bill_input.billing_mode == BillingMode.PER_MEAL:
        meal_charges = lunch_count * prices.lunch_price + dinner_count * prices.dinner_price
    else:
        subscription = bill_input.subscription
        if subscription is not None and subscription.status == SubscriptionStatus.ACTIVE:
            meal_charges = subscription.plan_amount
        else:
            meal_charges = 0

    guest_charges = guest_charge(
        guest_count,
        bill_input.guest_valuation,
        bill_input.guest_rate,
        prices,
    )
    total_paid = sum_paid(bill_input.payments, bill_input.excluded_payment_statuses)
    total_due = meal_charges + guest_charges
    pending = total_due - total_paid

    return Bill(
        billing_mode=bill_input.billing_mode,
        meal_charges=meal_charges,
        guest_charges=guest_charges,
        total_due=total_due,
        total_paid=total_paid,
        pending_signed=pending,
        pending_clamped=max(0, pending),
        days_present=len(present_days),
        lunch_count=lunch_count,
        dinner_count=dinner_count,
        total_meals=lunch_count + dinner_count,
        guest_count=guest_count,
        lunch_price=prices.lunch_price,
        dinner_price=prices.dinner_price,
    )
