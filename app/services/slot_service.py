"""Capacity accounting per (service, day) and the shop-wide time-slot check."""

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.appointment import Appointment, AppointmentStatus
from app.models.service import Service
from app.services.catalog_service import get_service
from app.services.exceptions import InvalidTimeSlot


def time_slots() -> list[str]:
    return settings.time_slots_list


def validate_time_slot(time_slot: str) -> str:
    if time_slot not in time_slots():
        raise InvalidTimeSlot(f"Unknown time slot {time_slot!r}; expected one of {', '.join(time_slots())}")
    return time_slot


def slot_order(time_slot: str) -> int:
    """Position of a label in the configured slot list, for sorting."""
    try:
        return time_slots().index(time_slot)
    except ValueError:
        return len(time_slots())


async def count_active_bookings(
    session: AsyncSession,
    service_id: int,
    d: date,
    exclude_appointment_id: int | None = None,
) -> int:
    q = select(func.count(Appointment.id)).where(
        Appointment.service_id == service_id,
        Appointment.appointment_date == d,
        Appointment.status != AppointmentStatus.CANCELLED,
    )
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(q)
    return int(result.scalar_one())


def remaining_for(service: Service, booked: int) -> int:
    return max(service.max_daily_slots - booked, 0)


async def remaining_slots(session: AsyncSession, service_id: int, d: date) -> int:
    service = await get_service(session, service_id)
    booked = await count_active_bookings(session, service_id, d)
    return remaining_for(service, booked)


def is_bookable(service: Service, remaining: int) -> bool:
    return service.is_active and remaining > 0


async def get_booked_slots(
    session: AsyncSession, d: date, exclude_appointment_id: int | None = None
) -> set[str]:
    """Occupied time slots for the day across all services."""
    q = select(Appointment.time_slot).where(
        Appointment.appointment_date == d,
        Appointment.status != AppointmentStatus.CANCELLED,
    )
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(q)
    return {row[0] for row in result.all()}


async def is_time_slot_taken(
    session: AsyncSession, d: date, time_slot: str, exclude_appointment_id: int | None = None
) -> bool:
    q = select(func.count(Appointment.id)).where(
        Appointment.appointment_date == d,
        Appointment.time_slot == time_slot,
        Appointment.status != AppointmentStatus.CANCELLED,
    )
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(q)
    return int(result.scalar_one()) > 0


async def get_available_slots_for_date(session: AsyncSession, d: date) -> list[tuple[str, bool]]:
    """Returns list of (time_slot, available) in display order."""
    booked = await get_booked_slots(session, d)
    return [(s, s not in booked) for s in time_slots()]
