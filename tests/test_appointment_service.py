import asyncio
from datetime import date, timedelta

import pytest

from app.models.appointment import AppointmentStatus
from app.models.service import Service
from app.models.user import UserRole
from app.services.appointment_service import (
    apply_transition,
    assign_employee,
    create_appointment,
    get_customer_appointment,
    list_appointments,
    list_appointments_for_customer,
)
from app.services.exceptions import (
    AppointmentNotFound,
    CapacityExceeded,
    EmployeeInactive,
    EmployeeNotFound,
    InvalidTimeSlot,
    InvalidTransition,
    PastDate,
    PermissionDenied,
    ServiceInactive,
    ServiceNotFound,
    SlotConflict,
)
from app.services.slot_service import count_active_bookings, remaining_slots
from app.services.state_machine import AppointmentAction
from tests.factories import DAY, booking, make_user


async def test_new_booking_is_pending(run, customer, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    assert appointment.id is not None
    assert appointment.status == AppointmentStatus.PENDING
    assert appointment.customer_id == customer.id
    assert appointment.assigned_employee_id is None
    assert appointment.vehicle_brand == "Toyota"


async def test_capacity_is_enforced_per_service_and_day(run, customer, oil_change):
    for slot in ("09:00 AM", "09:30 AM", "10:00 AM"):
        await run(create_appointment, customer.id, booking(oil_change.id, time_slot=slot))
    assert await run(remaining_slots, oil_change.id, DAY) == 0

    with pytest.raises(CapacityExceeded):
        await run(create_appointment, customer.id, booking(oil_change.id, time_slot="10:30 AM"))
    assert await run(remaining_slots, oil_change.id, DAY) == 0

    # Another day has its own budget
    await run(create_appointment, customer.id, booking(oil_change.id, DAY + timedelta(days=1), "10:30 AM"))


async def test_time_slot_is_shared_across_services(run, customer, other_customer, oil_change, brake_repair):
    await run(create_appointment, customer.id, booking(oil_change.id, time_slot="03:00 PM"))
    with pytest.raises(SlotConflict):
        await run(create_appointment, other_customer.id, booking(brake_repair.id, time_slot="03:00 PM"))
    assert await run(remaining_slots, brake_repair.id, DAY) == 5


async def test_capacity_checked_before_slot_conflict(run, customer, add):
    tiny = await add(Service(name="Wheel Alignment", category="Repair", max_daily_slots=1))
    await run(create_appointment, customer.id, booking(tiny.id, time_slot="09:00 AM"))
    with pytest.raises(CapacityExceeded):
        await run(create_appointment, customer.id, booking(tiny.id, time_slot="09:00 AM"))


async def test_cancelled_slot_can_be_rebooked(run, customer, other_customer, oil_change):
    first = await run(create_appointment, customer.id, booking(oil_change.id, time_slot="04:00 PM"))
    await run(apply_transition, first.id, AppointmentAction.CANCEL, customer)
    second = await run(create_appointment, other_customer.id, booking(oil_change.id, time_slot="04:00 PM"))
    assert second.status == AppointmentStatus.PENDING


async def test_rejected_booking_frees_capacity(run, customer, admin, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    rejected = await run(apply_transition, appointment.id, AppointmentAction.REJECT, admin)
    assert rejected.status == AppointmentStatus.CANCELLED
    assert await run(remaining_slots, oil_change.id, DAY) == 3


@pytest.mark.parametrize(
    "payload,error",
    [
        ({"time_slot": "12:15 PM"}, InvalidTimeSlot),
        ({"d": date.today() - timedelta(days=1)}, PastDate),
    ],
)
async def test_booking_input_rejected(run, customer, oil_change, payload, error):
    with pytest.raises(error):
        await run(create_appointment, customer.id, booking(oil_change.id, **payload))


async def test_booking_inactive_service(run, customer, retired_service):
    with pytest.raises(ServiceInactive):
        await run(create_appointment, customer.id, booking(retired_service.id))


async def test_booking_unknown_service(run, customer):
    with pytest.raises(ServiceNotFound):
        await run(create_appointment, customer.id, booking(4242))


async def test_booking_today_is_allowed(run, customer, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id, date.today(), "04:30 PM"))
    assert appointment.appointment_date == date.today()


async def test_concurrent_bookings_for_one_slot(run, customer, other_customer, oil_change, brake_repair):
    results = await asyncio.gather(
        run(create_appointment, customer.id, booking(oil_change.id, time_slot="11:00 AM")),
        run(create_appointment, other_customer.id, booking(brake_repair.id, time_slot="11:00 AM")),
        return_exceptions=True,
    )
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], SlotConflict)


async def test_concurrent_bookings_exhaust_capacity(run, add, customer, other_customer):
    single = await add(Service(name="Engine Diagnostics", category="Repair", max_daily_slots=1))
    results = await asyncio.gather(
        run(create_appointment, customer.id, booking(single.id, time_slot="09:00 AM")),
        run(create_appointment, other_customer.id, booking(single.id, time_slot="02:00 PM")),
        return_exceptions=True,
    )
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], CapacityExceeded)
    assert await run(count_active_bookings, single.id, DAY) == 1


async def test_full_lifecycle(run, customer, admin, employee, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))

    confirmed = await run(apply_transition, appointment.id, AppointmentAction.APPROVE, admin)
    assert confirmed.status == AppointmentStatus.CONFIRMED

    in_service = await run(assign_employee, appointment.id, employee.id, admin)
    assert in_service.status == AppointmentStatus.IN_SERVICE
    assert in_service.assigned_employee_id == employee.id

    ready = await run(apply_transition, appointment.id, AppointmentAction.MARK_READY, employee)
    assert ready.status == AppointmentStatus.READY

    done = await run(apply_transition, appointment.id, AppointmentAction.MARK_COMPLETED, admin)
    assert done.status == AppointmentStatus.COMPLETED
    assert done.updated_at >= done.created_at

    # Completed work still occupies the day's capacity
    assert await run(remaining_slots, oil_change.id, DAY) == 2


async def test_assign_requires_confirmed(run, customer, admin, employee, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    with pytest.raises(InvalidTransition):
        await run(assign_employee, appointment.id, employee.id, admin)
    assert (await run(get_customer_appointment, appointment.id, customer.id)).status == AppointmentStatus.PENDING


async def test_assign_inactive_employee(run, customer, admin, inactive_employee, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    await run(apply_transition, appointment.id, AppointmentAction.APPROVE, admin)
    with pytest.raises(EmployeeInactive):
        await run(assign_employee, appointment.id, inactive_employee.id, admin)
    unchanged = await run(get_customer_appointment, appointment.id, customer.id)
    assert unchanged.status == AppointmentStatus.CONFIRMED
    assert unchanged.assigned_employee_id is None


async def test_assign_non_employee(run, customer, admin, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    await run(apply_transition, appointment.id, AppointmentAction.APPROVE, admin)
    with pytest.raises(EmployeeNotFound):
        await run(assign_employee, appointment.id, customer.id, admin)


async def test_customer_cannot_cancel_confirmed(run, customer, admin, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    await run(apply_transition, appointment.id, AppointmentAction.APPROVE, admin)
    with pytest.raises(InvalidTransition):
        await run(apply_transition, appointment.id, AppointmentAction.CANCEL, customer)


async def test_customer_cannot_touch_someone_elses_booking(run, customer, other_customer, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    with pytest.raises(AppointmentNotFound):
        await run(apply_transition, appointment.id, AppointmentAction.CANCEL, other_customer)
    with pytest.raises(AppointmentNotFound):
        await run(get_customer_appointment, appointment.id, other_customer.id)


async def test_only_assigned_employee_may_progress(run, add, customer, admin, employee, oil_change):
    colleague = await add(make_user("colleague@example.com", UserRole.EMPLOYEE))
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    await run(apply_transition, appointment.id, AppointmentAction.APPROVE, admin)
    await run(assign_employee, appointment.id, employee.id, admin)
    with pytest.raises(PermissionDenied):
        await run(apply_transition, appointment.id, AppointmentAction.MARK_READY, colleague)


async def test_completed_is_terminal(run, customer, admin, employee, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    await run(apply_transition, appointment.id, AppointmentAction.APPROVE, admin)
    await run(assign_employee, appointment.id, employee.id, admin)
    await run(apply_transition, appointment.id, AppointmentAction.MARK_READY, admin)
    await run(apply_transition, appointment.id, AppointmentAction.MARK_COMPLETED, admin)
    with pytest.raises(InvalidTransition):
        await run(apply_transition, appointment.id, AppointmentAction.MARK_READY, admin)


async def test_concurrent_approve_and_reject(run, customer, admin, oil_change):
    appointment = await run(create_appointment, customer.id, booking(oil_change.id))
    results = await asyncio.gather(
        run(apply_transition, appointment.id, AppointmentAction.APPROVE, admin),
        run(apply_transition, appointment.id, AppointmentAction.REJECT, admin),
        return_exceptions=True,
    )
    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], InvalidTransition)


async def test_listings_are_in_slot_order(run, customer, other_customer, admin, oil_change, brake_repair):
    later = DAY + timedelta(days=2)
    await run(create_appointment, customer.id, booking(oil_change.id, later, "09:00 AM"))
    await run(create_appointment, customer.id, booking(oil_change.id, DAY, "02:00 PM"))
    await run(create_appointment, customer.id, booking(brake_repair.id, DAY, "11:30 AM"))
    await run(create_appointment, other_customer.id, booking(brake_repair.id, DAY, "09:00 AM"))

    mine = await run(list_appointments_for_customer, customer.id)
    assert [(a.appointment_date, a.time_slot) for a in mine] == [
        (DAY, "11:30 AM"),
        (DAY, "02:00 PM"),
        (later, "09:00 AM"),
    ]

    on_day = await run(list_appointments, d=DAY)
    assert [a.time_slot for a in on_day] == ["09:00 AM", "11:30 AM", "02:00 PM"]
    assert await run(list_appointments, status=AppointmentStatus.CONFIRMED) == []
