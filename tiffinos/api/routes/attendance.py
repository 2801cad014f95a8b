"""
Attendance routes: daily sheet, per-customer marks and mark-all-present.
"""
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from tiffinos.api.dependencies import get_current_vendor, get_db, get_today
from tiffinos.api.middleware.error_handler import BadRequestException
from tiffinos.models.subscriptions import MealFrequency
from tiffinos.models.vendors import Vendor
from tiffinos.services.attendance_service import AttendanceService, MealSlot


class AttendanceResponse(BaseModel):
    id: UUID
    customer_id: UUID
    subscription_id: Optional[UUID] = None
    attendance_date: date
    lunch_taken: bool
    dinner_taken: bool
    guest_count: int
    is_cancelled: bool
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class AttendanceMarkRequest(BaseModel):
    customer_id: UUID
    attendance_date: date
    lunch_taken: bool = False
    dinner_taken: bool = False
    guest_count: int = Field(0, ge=0, le=100)
    is_cancelled: bool = False
    notes: Optional[str] = Field(None, max_length=500)


class MarkAllRequest(BaseModel):
    attendance_date: date
    slot: MealSlot = MealSlot.LUNCH


class MarkAllResponse(BaseModel):
    attendance_date: date
    slot: MealSlot
    records_marked: int


class SheetRowResponse(BaseModel):
    customer_id: UUID
    full_name: str
    mobile_number: str
    meal_frequency: MealFrequency
    attendance: Optional[AttendanceResponse] = None


router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get("/daily", response_model=List[SheetRowResponse])
def daily_sheet(
    attendance_date: Optional[date] = Query(None, description="Defaults to today"),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Customers whose active plan covers the date, with that day's record."""
    rows = AttendanceService(db).daily_sheet(vendor.id, attendance_date or today)
    return [
        SheetRowResponse(
            customer_id=row.customer.id,
            full_name=row.customer.full_name,
            mobile_number=row.customer.mobile_number,
            meal_frequency=row.subscription.meal_frequency,
            attendance=AttendanceResponse.model_validate(row.record) if row.record else None,
        )
        for row in rows
    ]


@router.post("", response_model=AttendanceResponse)
def mark_attendance(
    payload: AttendanceMarkRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Create or overwrite a customer's record for the day."""
    return AttendanceService(db).mark(
        vendor.id,
        payload.customer_id,
        payload.attendance_date,
        today,
        lunch_taken=payload.lunch_taken,
        dinner_taken=payload.dinner_taken,
        guest_count=payload.guest_count,
        is_cancelled=payload.is_cancelled,
        notes=payload.notes,
    )


@router.post("/mark-all", response_model=MarkAllResponse)
def mark_all_present(
    payload: MarkAllRequest,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    count = AttendanceService(db).mark_all_present(vendor.id, payload.attendance_date, today, payload.slot)
    return MarkAllResponse(attendance_date=payload.attendance_date, slot=payload.slot, records_marked=count)


@router.delete("/{customer_id}/{attendance_date}", status_code=status.HTTP_204_NO_CONTENT)
def clear_attendance(
    customer_id: UUID,
    attendance_date: date,
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    AttendanceService(db).clear(vendor.id, customer_id, attendance_date)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/customer/{customer_id}", response_model=List[AttendanceResponse])
def customer_attendance(
    customer_id: UUID,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    vendor: Vendor = Depends(get_current_vendor),
    db: Session = Depends(get_db),
):
    """A customer's records, newest first, optionally limited to a date range."""
    if start and end and end < start:
        raise BadRequestException("end must not be before start", details={"start": str(start), "end": str(end)})
    return AttendanceService(db).history(vendor.id, customer_id, start, end)
