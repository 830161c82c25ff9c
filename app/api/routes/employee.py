from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, require_staff
from app.api.routes.appointments import to_public
from app.models.appointment import AppointmentPublic
from app.models.user import User
from app.services.appointment_service import apply_transition, list_appointments
from app.services.state_machine import AppointmentAction

router = APIRouter(prefix="/employee", tags=["employee"])


@router.get("/appointments", response_model=list[AppointmentPublic])
async def list_assigned_appointments(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
) -> list[AppointmentPublic]:
    appointments = await list_appointments(session, assigned_employee_id=current_user.id)
    return [to_public(a) for a in appointments]


@router.put("/appointments/{appointment_id}/ready", response_model=AppointmentPublic)
async def mark_ready(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
) -> AppointmentPublic:
    appointment = await apply_transition(session, appointment_id, AppointmentAction.MARK_READY, current_user)
    return to_public(appointment)


@router.put("/appointments/{appointment_id}/complete", response_model=AppointmentPublic)
async def mark_completed(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
) -> AppointmentPublic:
    appointment = await apply_transition(session, appointment_id, AppointmentAction.MARK_COMPLETED, current_user)
    return to_public(appointment)
