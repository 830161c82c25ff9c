"""Edit-in-place of a submitted appointment, gated by an approved change request."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentUpdate
from app.services.appointment_service import (
    check_slot_request,
    claim_for_edit,
    flush_reservation,
    get_customer_appointment,
)
from app.services.catalog_service import get_service
from app.services.change_request_service import consume_approval
from app.services.exceptions import NotEditable
from app.services.state_machine import is_editable

logger = logging.getLogger(__name__)


async def edit_appointment(
    session: AsyncSession, appointment_id: int, customer_id: int, data: AppointmentUpdate
) -> Appointment:
    """Apply a new payload to a PENDING/CONFIRMED appointment.

    The approval is consumed and the slot re-checked in one transaction: any
    failure rolls back both, leaving the approval usable for another attempt.
    The appointment's own reservation is excluded from the capacity and slot
    counts, so re-saving the same date and time is allowed.
    """
    appointment = await get_customer_appointment(session, appointment_id, customer_id)
    if not is_editable(appointment.status):
        raise NotEditable(f"Appointment {appointment_id} is {appointment.status.value} and can no longer be edited")
    await claim_for_edit(session, appointment)
    approval = await consume_approval(session, appointment_id)

    service = await get_service(session, data.service_id, for_update=True)
    await check_slot_request(
        session, service, data.appointment_date, data.time_slot, exclude_appointment_id=appointment.id
    )
    for field, value in data.model_dump().items():
        setattr(appointment, field, value)
    session.add(appointment)
    await flush_reservation(session, appointment, service)
    logger.info(
        "Appointment %s edited under change request %s: service=%s %s %s",
        appointment.id,
        approval.id,
        appointment.service_id,
        appointment.appointment_date,
        appointment.time_slot,
    )
    return appointment
