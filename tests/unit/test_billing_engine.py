"""
Unit tests for the billing reconciliation engine.
"""
from datetime import date, timedelta

import pytest

from tiffinos.models.payments import PaymentStatus
from tiffinos.models.subscriptions import SubscriptionStatus
from tiffinos.services.billing_engine import (
    AttendanceRecordView,
    BillInput,
    BillingMode,
    GuestValuation,
    MenuPrices,
    PaymentView,
    SubscriptionView,
    compute_bill,
    guest_charge,
    sum_paid,
)


START = date(2025, 3, 1)


def plan(amount: int = 3000, status: SubscriptionStatus = SubscriptionStatus.ACTIVE) -> SubscriptionView:
    return SubscriptionView(
        plan_amount=amount,
        start_date=START,
        end_date=date(2025, 3, 31),
        status=status,
    )


def day(offset: int, lunch: bool = False, dinner: bool = False, guests: int = 0, cancelled: bool = False):
    return AttendanceRecordView(
        attendance_date=START + timedelta(days=offset),
        lunch_taken=lunch,
        dinner_taken=dinner,
        guest_count=guests,
        is_cancelled=cancelled,
    )


def paid(amount: int, status: PaymentStatus = PaymentStatus.COMPLETED) -> PaymentView:
    return PaymentView(amount=amount, payment_date=START, status=status)


@pytest.mark.unit
def test_empty_input_is_all_zero():
    bill = compute_bill(BillInput())

    assert bill.meal_charges == 0
    assert bill.guest_charges == 0
    assert bill.total_due == 0
    assert bill.total_paid == 0
    assert bill.pending_signed == 0
    assert bill.pending_clamped == 0
    assert bill.days_present == 0
    assert bill.total_meals == 0
    assert bill.guest_count == 0
    assert bill.balance_state == "settled"


@pytest.mark.unit
def test_fixed_plan_without_payment_owes_plan_amount():
    bill = compute_bill(BillInput(subscription=plan(3000), attendance=[day(0, lunch=True)]))

    assert bill.meal_charges == 3000
    assert bill.total_due == 3000
    assert bill.pending_signed == 3000
    assert bill.pending_clamped == 3000
    assert bill.lunch_count == 1
    assert bill.days_present == 1
    assert bill.balance_state == "pending"


@pytest.mark.unit
def test_fixed_plan_fully_paid():
    bill = compute_bill(BillInput(
        subscription=plan(3000),
        attendance=[day(0, lunch=True)],
        payments=[paid(3000)],
    ))

    assert bill.pending_signed == 0
    assert bill.pending_clamped == 0
    assert bill.balance_state == "settled"


@pytest.mark.unit
def test_overpayment_goes_negative_but_clamps_to_zero():
    bill = compute_bill(BillInput(subscription=plan(3000), payments=[paid(3500)]))

    assert bill.pending_signed == -500
    assert bill.pending_clamped == 0
    assert bill.balance_state == "refund"


@pytest.mark.unit
def test_per_meal_with_guests():
    attendance = [day(i, lunch=True) for i in range(10)]
    attendance += [day(20 + i, dinner=True) for i in range(5)]
    attendance[0] = day(0, lunch=True, guests=2)

    bill = compute_bill(BillInput(
        subscription=plan(3000),
        attendance=attendance,
        billing_mode=BillingMode.PER_MEAL,
        menu_prices=MenuPrices(lunch_price=50, dinner_price=70),
        guest_rate=40,
    ))

    assert bill.lunch_count == 10
    assert bill.dinner_count == 5
    assert bill.total_meals == 15
    assert bill.meal_charges == 850
    assert bill.guest_charges == 80
    assert bill.total_due == 930
    assert bill.days_present == 15


@pytest.mark.unit
@pytest.mark.parametrize("attendance", [
    [],
    [day(0, lunch=True, dinner=True)],
    [day(i, lunch=True, dinner=True) for i in range(31)],
])
def test_fixed_plan_ignores_attendance_for_meal_charges(attendance):
    bill = compute_bill(BillInput(subscription=plan(2500), attendance=attendance))
    assert bill.meal_charges == 2500


@pytest.mark.unit
def test_missing_subscription_means_no_plan_charge():
    bill = compute_bill(BillInput(attendance=[day(0, lunch=True)], payments=[paid(200)]))

    assert bill.meal_charges == 0
    assert bill.pending_signed == -200
    assert bill.pending_clamped == 0


@pytest.mark.unit
@pytest.mark.parametrize("status", [SubscriptionStatus.COMPLETED, SubscriptionStatus.CANCELLED])
def test_inactive_subscription_is_not_billed(status):
    bill = compute_bill(BillInput(subscription=plan(3000, status=status)))
    assert bill.meal_charges == 0


@pytest.mark.unit
def test_per_meal_charges_match_counts_and_prices():
    prices = MenuPrices(lunch_price=55, dinner_price=90)
    attendance = [day(0, lunch=True, dinner=True), day(1, dinner=True), day(2)]

    bill = compute_bill(BillInput(
        attendance=attendance,
        billing_mode=BillingMode.PER_MEAL,
        menu_prices=prices,
    ))

    assert bill.meal_charges == bill.lunch_count * 55 + bill.dinner_count * 90
    assert bill.meal_charges == 55 + 90 + 90
    assert bill.days_present == 2


@pytest.mark.unit
def test_guest_increase_only_moves_guest_fields():
    base_attendance = [day(0, lunch=True, guests=1), day(1, dinner=True)]
    more_guests = [day(0, lunch=True, guests=4), day(1, dinner=True)]
    common = dict(subscription=plan(3000), payments=[paid(1000)], guest_rate=40)

    before = compute_bill(BillInput(attendance=base_attendance, **common))
    after = compute_bill(BillInput(attendance=more_guests, **common))

    assert after.guest_charges - before.guest_charges == 3 * 40
    assert after.guest_count - before.guest_count == 3
    assert after.total_due - before.total_due == 120
    assert after.pending_signed - before.pending_signed == 120
    for name in ("meal_charges", "total_paid", "lunch_count", "dinner_count", "days_present"):
        assert getattr(after, name) == getattr(before, name)


@pytest.mark.unit
def test_meal_average_guest_valuation_rounds_half_up():
    prices = MenuPrices(lunch_price=50, dinner_price=75)

    bill = compute_bill(BillInput(
        attendance=[day(0, guests=1)],
        guest_valuation=GuestValuation.MEAL_AVERAGE,
        menu_prices=prices,
    ))

    # (50 + 75) / 2 = 62.5
    assert bill.guest_charges == 63


@pytest.mark.unit
def test_failed_payments_are_excluded_by_default():
    bill = compute_bill(BillInput(
        subscription=plan(3000),
        payments=[paid(1000), paid(2000, PaymentStatus.FAILED), paid(500, PaymentStatus.PENDING)],
    ))

    assert bill.total_paid == 1500
    assert bill.pending_signed == 1500


@pytest.mark.unit
def test_excluded_statuses_are_configurable():
    bill = compute_bill(BillInput(
        payments=[paid(1000), paid(500, PaymentStatus.PENDING)],
        excluded_payment_statuses=frozenset({PaymentStatus.FAILED, PaymentStatus.PENDING}),
    ))
    assert bill.total_paid == 1000


@pytest.mark.unit
def test_cancelled_day_keeps_guests_but_drops_meals():
    bill = compute_bill(BillInput(
        attendance=[day(0, lunch=True, dinner=True, guests=2, cancelled=True), day(1, lunch=True)],
        billing_mode=BillingMode.PER_MEAL,
    ))

    assert bill.lunch_count == 1
    assert bill.dinner_count == 0
    assert bill.days_present == 1
    assert bill.guest_count == 2
    assert bill.guest_charges == 80


@pytest.mark.unit
def test_cancelled_day_counts_when_voiding_disabled():
    bill = compute_bill(BillInput(
        attendance=[day(0, lunch=True, cancelled=True)],
        void_cancelled_meals=False,
    ))
    assert bill.lunch_count == 1


@pytest.mark.unit
def test_negative_guest_count_reads_as_zero():
    bill = compute_bill(BillInput(attendance=[day(0, lunch=True, guests=-3)]))

    assert bill.guest_count == 0
    assert bill.guest_charges == 0


@pytest.mark.unit
def test_compute_bill_is_idempotent_and_pure():
    bill_input = BillInput(
        subscription=plan(3000),
        attendance=[day(0, lunch=True, guests=1)],
        payments=[paid(1200)],
    )
    snapshot = bill_input.model_dump()

    first = compute_bill(bill_input)
    second = compute_bill(bill_input)

    assert first == second
    assert bill_input.model_dump() == snapshot


@pytest.mark.unit
def test_same_day_counted_once_for_days_present():
    bill = compute_bill(BillInput(attendance=[day(0, lunch=True, dinner=True)]))

    assert bill.days_present == 1
    assert bill.total_meals == 2


@pytest.mark.unit
def test_helpers():
    assert sum_paid([paid(100), paid(50, PaymentStatus.FAILED)]) == 100
    assert sum_paid([]) == 0
    assert guest_charge(3, GuestValuation.FLAT_RATE, 40, MenuPrices()) == 120
    assert guest_charge(2, GuestValuation.MEAL_AVERAGE, 40, MenuPrices(lunch_price=50, dinner_price=70)) == 120


@pytest.mark.unit
def test_resolved_prices_are_reported():
    bill = compute_bill(BillInput(menu_prices=MenuPrices(lunch_price=45, dinner_price=65)))

    assert bill.lunch_price == 45
    assert bill.dinner_price == 65
    assert bill.billing_mode == BillingMode.FIXED_PLAN
