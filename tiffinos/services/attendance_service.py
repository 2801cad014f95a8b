"""
Daily attendance: one row per customer per day, upserted as the vendor taps
lunch / dinner / guests on the quick attendance sheet.
"""
import enum
from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import BadRequestException, NotFoundException
from tiffinos.lib.logging import get_logger
from tiffinos.lib.metrics import get_metrics_collector
from tiffinos.models.attendance import Attendance
from tiffinos.models.customers import Customer
from tiffinos.models.subscriptions import Subscription, SubscriptionStatus


logger = get_logger(__name__)


class MealSlot(str, enum.Enum):
    LUNCH = "lunch"
    DINNER = "dinner"
    BOTH = "both"


@dataclass
class SheetRow:
    """A customer on the daily sheet and their record for that day, if any."""
    customer: Customer
    subscription: Subscription
    record: Optional[Attendance]


class AttendanceService:
    """Vendor-scoped attendance operations."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def _customer(self, vendor_id: UUID, customer_id: UUID) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if customer is None or customer.vendor_id != vendor_id or not customer.is_active:
            raise NotFoundException("Customer", str(customer_id))
        return customer

    def _record(self, customer_id: UUID, day: date) -> Optional[Attendance]:
        stmt = select(Attendance).where(
            Attendance.customer_id == customer_id,
            Attendance.attendance_date == day,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _covering_subscriptions(self, vendor_id: UUID, day: date) -> dict[UUID, Subscription]:
        stmt = select(Subscription).where(
            Subscription.vendor_id == vendor_id,
            Subscription.status == SubscriptionStatus.ACTIVE,
            Subscription.start_date <= day,
            Subscription.end_date >= day,
        )
        return {sub.customer_id: sub for sub in self.db.execute(stmt).scalars()}

    def mark(
        self,
        vendor_id: UUID,
        customer_id: UUID,
        day: date,
        today: date,
        lunch_taken: bool = False,
        dinner_taken: bool = False,
        guest_count: int = 0,
        is_cancelled: bool = False,
        notes: Optional[str] = None,
    ) -> Attendance:
        """
        Create or overwrite the customer's record for a day.

        A cancelled day stores no meals; guests are kept as entered.
        """
        if day > today:
            raise BadRequestException(
                "Attendance cannot be marked for a future date",
                details={"attendance_date": str(day)},
            )
        if guest_count < 0:
            raise BadRequestException("guest_count must not be negative", details={"guest_count": guest_count})

        customer = self._customer(vendor_id, customer_id)
        if is_cancelled:
            lunch_taken = dinner_taken = False

        record = self._record(customer.id, day)
        if record is None:
            record = Attendance(customer_id=customer.id, vendor_id=vendor_id, attendance_date=day)
            self.db.add(record)

        sub = self._covering_subscriptions(vendor_id, day).get(customer.id)
        record.subscription_id = sub.id if sub else None
        record.lunch_taken = lunch_taken
        record.dinner_taken = dinner_taken
        record.guest_count = guest_count
        record.is_cancelled = is_cancelled
        record.notes = notes

        self.db.commit()
        self.db.refresh(record)

        metrics = get_metrics_collector()
        if lunch_taken:
            metrics.increment_attendance("lunch")
        if dinner_taken:
            metrics.increment_attendance("dinner")
        if guest_count:
            metrics.increment_attendance("guest", guest_count)
        return record

    def clear(self, vendor_id: UUID, customer_id: UUID, day: date) -> None:
        customer = self._customer(vendor_id, customer_id)
        record = self._record(customer.id, day)
        if record is None:
            raise NotFoundException("Attendance", f"{customer_id}@{day}")
        self.db.delete(record)
        self.db.commit()

    def mark_all_present(self, vendor_id: UUID, day: date, today: date, slot: MealSlot) -> int:
        """
        Tick the slot for every active customer whose active plan covers the day.

        Existing records keep their other slot, guests and notes; cancelled
        days are left alone. Returns the number of records written.
        """
        if day > today:
            raise BadRequestException(
                "Attendance cannot be marked for a future date",
                details={"attendance_date": str(day)},
            )
        rows = self.daily_sheet(vendor_id, day)
        lunch = slot in (MealSlot.LUNCH, MealSlot.BOTH)
        dinner = slot in (MealSlot.DINNER, MealSlot.BOTH)

        written = 0
        for row in rows:
            record = row.record
            if record is not None and record.is_cancelled:
                continue
            if record is None:
                record = Attendance(
                    customer_id=row.customer.id,
                    vendor_id=vendor_id,
                    attendance_date=day,
                    subscription_id=row.subscription.id,
                    guest_count=0,
                )
                self.db.add(record)
            if lunch:
                record.lunch_taken = True
            if dinner:
                record.dinner_taken = True
            written += 1

        self.db.commit()

        metrics = get_metrics_collector()
        if lunch and written:
            metrics.increment_attendance("lunch", written)
        if dinner and written:
            metrics.increment_attendance("dinner", written)
        logger.info(
            "Marked all present",
            extra={"vendor_id": str(vendor_id), "date": str(day), "slot": slot.value, "records": written},
        )
        return written

    def daily_sheet(self, vendor_id: UUID, day: date) -> list[SheetRow]:
        """Active customers with a plan covering the day, sorted by name."""
        subs = self._covering_subscriptions(vendor_id, day)
        if not subs:
            return []

        customers = self.db.execute(
            select(Customer)
            .where(
                Customer.vendor_id == vendor_id,
                Customer.is_active == True,  # noqa: E712
                Customer.id.in_(list(subs)),
            )
            .order_by(Customer.full_name)
        ).scalars().all()

        records = {
            r.customer_id: r
            for r in self.db.execute(
                select(Attendance).where(
                    Attendance.vendor_id == vendor_id,
                    Attendance.attendance_date == day,
                )
            ).scalars()
        }
        return [SheetRow(customer=c, subscription=subs[c.id], record=records.get(c.id)) for c in customers]

    def history(
        self,
        vendor_id: UUID,
        customer_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Attendance]:
        customer = self._customer(vendor_id, customer_id)
        stmt = select(Attendance).where(Attendance.customer_id == customer.id)
        if start is not None:
            stmt = stmt.where(Attendance.attendance_date >= start)
        if end is not None:
            stmt = stmt.where(Attendance.attendance_date <= end)
        return list(self.db.execute(stmt.order_by(Attendance.attendance_date.desc())).scalars().all())
