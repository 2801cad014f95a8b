"""
WhatsApp text for bills, reminders and walk-in receipts.

Messages are plain text using WhatsApp's *bold* markup. Amounts are whole
rupees printed with Indian digit grouping (1,23,456).
"""
from datetime import date
from typing import Optional, Sequence
from urllib.parse import quote

from tiffinos.lib.settings import settings
from tiffinos.services.billing_engine import Bill, BillingMode


RULE = "--------------------"


def format_inr(amount: int) -> str:
    """Group digits the Indian way: last three, then pairs."""
    sign = "-" if amount < 0 else ""
    digits = str(abs(int(amount)))
    if len(digits) <= 3:
        return f"{sign}{digits}"
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return f"{sign}{','.join(groups)},{tail}"


def rupees(amount: int) -> str:
    return f"₹{format_inr(amount)}"


def format_day(day: date) -> str:
    return f"{day.day} {day.strftime('%b %Y')}"


def balance_line(pending_signed: int) -> str:
    if pending_signed > 0:
        return f"*PENDING: {rupees(pending_signed)}*"
    if pending_signed < 0:
        return f"*REFUND/CARRY FORWARD: {rupees(-pending_signed)}*"
    return "*FULLY PAID*"


def whatsapp_link(phone: str, text: Optional[str] = None) -> str:
    """wa.me share link; the country code is prefixed to bare 10-digit numbers."""
    digits = "".join(ch for ch in phone if ch.isdigit())
    if len(digits) == 10:
        digits = f"{settings.whatsapp_country_code}{digits}"
    link = f"https://wa.me/{digits}"
    if text:
        link += f"?text={quote(text, safe='')}"
    return link


def bill_statement(
    bill: Bill,
    business_name: str,
    vendor_mobile: str,
    customer_name: str,
    customer_mobile: str,
    period: Optional[tuple[date, date]] = None,
) -> str:
    """Full bill with meal summary, charges and the balance line."""
    lines = [
        f"*{business_name}*",
        "",
        f"Customer: {customer_name}",
        f"Mobile: {customer_mobile}",
    ]
    if period is not None:
        lines.append(f"Period: {format_day(period[0])} - {format_day(period[1])}")

    lines += [
        "",
        "*MEAL SUMMARY*",
        RULE,
        f"Days Present: {bill.days_present} days",
        f"Lunch: {bill.lunch_count} meals",
        f"Dinner: {bill.dinner_count} meals",
        f"Total: {bill.total_meals} meals",
    ]
    if bill.guest_count > 0:
        lines.append(f"Guests: {bill.guest_count} meals")

    mode_label = "Per Meal" if bill.billing_mode == BillingMode.PER_MEAL else "Monthly"
    lines += ["", f"*BILL DETAILS ({mode_label})*", RULE]
    if bill.billing_mode == BillingMode.PER_MEAL:
        lines += [
            f"Lunch: {bill.lunch_count} x {rupees(bill.lunch_price)} = "
            f"{rupees(bill.lunch_count * bill.lunch_price)}",
            f"Dinner: {bill.dinner_count} x {rupees(bill.dinner_price)} = "
            f"{rupees(bill.dinner_count * bill.dinner_price)}",
            f"Meal Total: {rupees(bill.meal_charges)}",
        ]
    else:
        lines.append(f"Plan Amount: {rupees(bill.meal_charges)}")
    if bill.guest_charges > 0:
        lines.append(f"Guest Charges: {rupees(bill.guest_charges)}")

    lines += [
        "",
        f"*Total Bill: {rupees(bill.total_due)}*",
        f"Paid: {rupees(bill.total_paid)}",
        RULE,
        balance_line(bill.pending_signed),
        "",
        "Thank you!",
        vendor_mobile,
    ]
    return "\n".join(lines)


def pending_reminder(customer_name: str, business_name: str, bill: Bill) -> str:
    """Short dues reminder used from the pending payments screen."""
    if bill.billing_mode == BillingMode.PER_MEAL:
        charge = f"Meal Charges: {rupees(bill.meal_charges)}"
    else:
        charge = f"Plan Amount: {rupees(bill.meal_charges)}"
    lines = [
        f"Hi {customer_name},",
        "",
        f"This is a friendly reminder from *{business_name}*.",
        "",
        charge,
    ]
    if bill.guest_charges > 0:
        lines.append(f"Guest Charges: {rupees(bill.guest_charges)}")
    lines += [
        "",
        f"*Pending: {rupees(bill.pending_clamped)}*",
        "",
        "Please clear your dues at your earliest convenience.",
        "",
        "Thank you!",
        f"_{business_name}_",
    ]
    return "\n".join(lines)


def sale_receipt(items: Sequence[tuple[str, int, int]]) -> str:
    """Receipt for a walk-in sale; items are (name, quantity, unit price)."""
    lines = ["*Receipt*", RULE]
    total = 0
    for name, quantity, price in items:
        line_total = quantity * price
        total += line_total
        lines.append(f"{name} x{quantity} = {rupees(line_total)}")
    lines += [RULE, f"*Total: {rupees(total)}*", "", "Thank you!"]
    return "\n".join(lines)
