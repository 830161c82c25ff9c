import logging
from datetime import UTC, date, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from app.models.service import Service
from app.models.user import User, UserRole
from app.services.catalog_service import get_service
from app.services.exceptions import (
    AppointmentNotFound,
    CapacityExceeded,
    EmployeeInactive,
    EmployeeNotFound,
    InvalidTransition,
    NotEditable,
    PastDate,
    PermissionDenied,
    ServiceInactive,
    SlotConflict,
)
from app.services.slot_service import (
    count_active_bookings,
    is_time_slot_taken,
    slot_order,
    validate_time_slot,
)
from app.services.state_machine import EDITABLE_STATUSES, AppointmentAction, Transition, resolve_transition

logger = logging.getLogger(__name__)


def _utc_naive_now() -> datetime:
    """Naive UTC for comparison with TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


def _sorted_by_slot(appointments: list[Appointment]) -> list[Appointment]:
    return sorted(appointments, key=lambda a: (a.appointment_date, slot_order(a.time_slot)))


async def get_appointment(session: AsyncSession, appointment_id: int) -> Appointment:
    result = await session.execute(select(Appointment).where(Appointment.id == appointment_id))
    appointment = result.scalar_one_or_none()
    if not appointment:
        raise AppointmentNotFound(appointment_id)
    return appointment


async def get_customer_appointment(
    session: AsyncSession, appointment_id: int, customer_id: int
) -> Appointment:
    """Customers only ever see their own bookings; anything else is reported as missing."""
    appointment = await get_appointment(session, appointment_id)
    if appointment.customer_id != customer_id:
        raise AppointmentNotFound(appointment_id)
    return appointment


async def check_slot_request(
    session: AsyncSession,
    service: Service,
    d: date,
    time_slot: str,
    exclude_appointment_id: int | None = None,
) -> None:
    """Pre-checks shared by booking and edit-in-place.

    Read-only: the database index and the post-insert recount in
    ``flush_reservation`` are what close the race with concurrent writers.
    """
    if not service.is_active:
        raise ServiceInactive(f"Service {service.name!r} is not currently bookable")
    if d < date.today():
        raise PastDate(f"Cannot book {d.isoformat()}: date is in the past")
    validate_time_slot(time_slot)
    booked = await count_active_bookings(session, service.id, d, exclude_appointment_id)
    if booked >= service.max_daily_slots:
        raise CapacityExceeded(
            f"{service.name} is fully booked on {d.isoformat()} ({service.max_daily_slots} per day)"
        )
    if await is_time_slot_taken(session, d, time_slot, exclude_appointment_id):
        raise SlotConflict(f"Time slot {time_slot} on {d.isoformat()} is already taken")


async def flush_reservation(session: AsyncSession, appointment: Appointment, service: Service) -> None:
    """Write the reservation and re-verify capacity inside the same transaction."""
    # Rollback expires loaded rows, so capture what the error messages need first
    d, time_slot = appointment.appointment_date, appointment.time_slot
    service_id, service_name, ceiling = service.id, service.name, service.max_daily_slots
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        logger.info("Lost race for slot %s %s: %s", d, time_slot, exc)
        raise SlotConflict(f"Time slot {time_slot} on {d.isoformat()} is already taken", cause=exc) from exc
    booked = await count_active_bookings(session, service_id, d)
    if booked > ceiling:
        await session.rollback()
        logger.info("Capacity race on service %s %s: %d > %d", service_id, d, booked, ceiling)
        raise CapacityExceeded(f"{service_name} is fully booked on {d.isoformat()}")
    await session.refresh(appointment)


async def create_appointment(
    session: AsyncSession, customer_id: int, data: AppointmentCreate
) -> Appointment:
    service = await get_service(session, data.service_id, for_update=True)
    await check_slot_request(session, service, data.appointment_date, data.time_slot)
    appointment = Appointment(
        customer_id=customer_id,
        status=AppointmentStatus.PENDING,
        **data.model_dump(),
    )
    session.add(appointment)
    await flush_reservation(session, appointment, service)
    logger.info(
        "Appointment %s booked: customer=%s service=%s %s %s",
        appointment.id,
        customer_id,
        service.id,
        appointment.appointment_date,
        appointment.time_slot,
    )
    return appointment


async def list_appointments_for_customer(session: AsyncSession, customer_id: int) -> list[Appointment]:
    result = await session.execute(select(Appointment).where(Appointment.customer_id == customer_id))
    return _sorted_by_slot(list(result.scalars().all()))


async def list_appointments(
    session: AsyncSession,
    status: AppointmentStatus | None = None,
    d: date | None = None,
    assigned_employee_id: int | None = None,
) -> list[Appointment]:
    q = select(Appointment)
    if status is not None:
        q = q.where(Appointment.status == status)
    if d is not None:
        q = q.where(Appointment.appointment_date == d)
    if assigned_employee_id is not None:
        q = q.where(Appointment.assigned_employee_id == assigned_employee_id)
    result = await session.execute(q)
    return _sorted_by_slot(list(result.scalars().all()))


async def get_active_employee(session: AsyncSession, employee_id: int) -> User:
    result = await session.execute(select(User).where(User.id == employee_id))
    employee = result.scalar_one_or_none()
    if not employee or employee.role != UserRole.EMPLOYEE:
        raise EmployeeNotFound(employee_id)
    if not employee.is_active:
        raise EmployeeInactive(f"Employee {employee_id} is inactive")
    return employee


async def _compare_and_set_status(
    session: AsyncSession, appointment: Appointment, transition: Transition, **values: object
) -> Appointment:
    """Write the transition only if nobody moved the appointment since it was read."""
    result = await session.execute(
        update(Appointment)
        .where(Appointment.id == appointment.id, Appointment.status == transition.source)
        .values(status=transition.target, updated_at=_utc_naive_now(), **values)
        .execution_options(synchronize_session=False)
    )
    await session.refresh(appointment)
    if result.rowcount != 1:
        logger.info(
            "Transition of appointment %s to %s lost a race (now %s)",
            appointment.id,
            transition.target.value,
            appointment.status.value,
        )
        raise InvalidTransition(appointment.status.value, transition.target.value)
    return appointment


async def apply_transition(
    session: AsyncSession, appointment_id: int, action: AppointmentAction, actor: User
) -> Appointment:
    if action == AppointmentAction.ASSIGN_EMPLOYEE:
        raise ValueError("use assign_employee() to assign an appointment")
    appointment = await get_appointment(session, appointment_id)
    if actor.role == UserRole.CUSTOMER and appointment.customer_id != actor.id:
        raise AppointmentNotFound(appointment_id)
    if actor.role == UserRole.EMPLOYEE and appointment.assigned_employee_id != actor.id:
        raise PermissionDenied(f"Appointment {appointment_id} is not assigned to you")
    transition = resolve_transition(action, appointment.status, actor.role)
    await _compare_and_set_status(session, appointment, transition)
    logger.info(
        "Appointment %s: %s -> %s by %s %s",
        appointment.id,
        transition.source.value,
        transition.target.value,
        actor.role.value,
        actor.id,
    )
    return appointment


async def assign_employee(
    session: AsyncSession, appointment_id: int, employee_id: int, actor: User
) -> Appointment:
    appointment = await get_appointment(session, appointment_id)
    transition = resolve_transition(AppointmentAction.ASSIGN_EMPLOYEE, appointment.status, actor.role)
    employee = await get_active_employee(session, employee_id)
    await _compare_and_set_status(session, appointment, transition, assigned_employee_id=employee.id)
    logger.info("Appointment %s assigned to employee %s (IN_SERVICE)", appointment.id, employee.id)
    return appointment


async def claim_for_edit(session: AsyncSession, appointment: Appointment) -> None:
    """Conditional touch that holds the row for the rest of the transaction.

    Fails with NotEditable if the appointment has left PENDING/CONFIRMED since it was read.
    """
    result = await session.execute(
        update(Appointment)
        .where(Appointment.id == appointment.id, Appointment.status.in_(EDITABLE_STATUSES))
        .values(updated_at=_utc_naive_now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await session.refresh(appointment)
        raise NotEditable(
            f"Appointment {appointment.id} is {appointment.status.value} and can no longer be edited"
        )
