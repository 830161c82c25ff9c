from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, require_customer
from app.api.schemas.appointment import (
    AppointmentStatusResponse,
    BookAppointmentRequest,
    EditAppointmentRequest,
)
from app.models.appointment import Appointment, AppointmentCreate, AppointmentPublic, AppointmentUpdate
from app.models.user import User
from app.services.appointment_service import (
    apply_transition,
    create_appointment,
    get_customer_appointment,
    list_appointments_for_customer,
)
from app.services.edit_service import edit_appointment
from app.services.state_machine import AppointmentAction

router = APIRouter(prefix="/appointments", tags=["appointments"])


def to_public(a: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(a)


@router.post("", response_model=AppointmentPublic, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: BookAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> AppointmentPublic:
    appointment = await create_appointment(
        session, current_user.id, AppointmentCreate.model_validate(body.model_dump())
    )
    return to_public(appointment)


@router.get("", response_model=list[AppointmentPublic])
async def list_my_appointments(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> list[AppointmentPublic]:
    return [to_public(a) for a in await list_appointments_for_customer(session, current_user.id)]


@router.get("/{appointment_id}", response_model=AppointmentPublic)
async def get_my_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> AppointmentPublic:
    return to_public(await get_customer_appointment(session, appointment_id, current_user.id))


@router.get("/{appointment_id}/status", response_model=AppointmentStatusResponse)
async def get_my_appointment_status(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> AppointmentStatusResponse:
    appointment = await get_customer_appointment(session, appointment_id, current_user.id)
    return AppointmentStatusResponse(id=appointment.id, status=appointment.status.value)


@router.post("/{appointment_id}/cancel", response_model=AppointmentPublic)
async def cancel_my_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> AppointmentPublic:
    """Self-service cancellation; only allowed while the booking is still PENDING."""
    appointment = await apply_transition(session, appointment_id, AppointmentAction.CANCEL, current_user)
    return to_public(appointment)


@router.put("/{appointment_id}", response_model=AppointmentPublic)
async def edit_my_appointment(
    appointment_id: int,
    body: EditAppointmentRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> AppointmentPublic:
    """Edit-in-place; requires an approved, unused change request for this appointment."""
    appointment = await edit_appointment(
        session, appointment_id, current_user.id, AppointmentUpdate.model_validate(body.model_dump())
    )
    return to_public(appointment)
