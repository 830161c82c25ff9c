from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, require_admin
from app.api.routes.appointments import to_public
from app.api.schemas.auth import EmployeeCreateRequest
from app.api.schemas.change_request import ResolveChangeRequest
from app.models.appointment import AppointmentPublic, AppointmentStatus
from app.models.change_request import ChangeRequestPublic, ChangeRequestStatus
from app.models.user import User, UserCreate, UserPublic, UserRole
from app.services.appointment_service import apply_transition, assign_employee, list_appointments
from app.services.auth_service import create_employee, list_users, set_user_active, user_to_public
from app.services.change_request_service import Decision, list_change_requests, resolve_change_request
from app.services.state_machine import AppointmentAction

router = APIRouter(prefix="/admin", tags=["admin"])


# --- Appointments ---


@router.get("/appointments", response_model=list[AppointmentPublic])
async def list_all_appointments(
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    date_param: date | None = Query(None, alias="date"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> list[AppointmentPublic]:
    appointments = await list_appointments(session, status=status_filter, d=date_param)
    return [to_public(a) for a in appointments]


async def _transition(
    session: AsyncSession, appointment_id: int, action: AppointmentAction, actor: User
) -> AppointmentPublic:
    return to_public(await apply_transition(session, appointment_id, action, actor))


@router.put("/appointments/{appointment_id}/approve", response_model=AppointmentPublic)
async def approve_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> AppointmentPublic:
    return await _transition(session, appointment_id, AppointmentAction.APPROVE, current_user)


@router.put("/appointments/{appointment_id}/reject", response_model=AppointmentPublic)
async def reject_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> AppointmentPublic:
    return await _transition(session, appointment_id, AppointmentAction.REJECT, current_user)


@router.put("/appointments/{appointment_id}/assign/{employee_id}", response_model=AppointmentPublic)
async def assign_appointment(
    appointment_id: int,
    employee_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> AppointmentPublic:
    return to_public(await assign_employee(session, appointment_id, employee_id, current_user))


@router.put("/appointments/{appointment_id}/ready", response_model=AppointmentPublic)
async def mark_ready(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> AppointmentPublic:
    return await _transition(session, appointment_id, AppointmentAction.MARK_READY, current_user)


@router.put("/appointments/{appointment_id}/complete", response_model=AppointmentPublic)
async def mark_completed(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> AppointmentPublic:
    return await _transition(session, appointment_id, AppointmentAction.MARK_COMPLETED, current_user)


# --- Change requests ---


@router.get("/change-requests", response_model=list[ChangeRequestPublic])
async def list_all_change_requests(
    status_filter: ChangeRequestStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> list[ChangeRequestPublic]:
    requests = await list_change_requests(session, status=status_filter)
    return [ChangeRequestPublic.model_validate(r) for r in requests]


@router.put("/change-requests/{request_id}/approve", response_model=ChangeRequestPublic)
async def approve_change_request(
    request_id: int,
    body: ResolveChangeRequest | None = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> ChangeRequestPublic:
    request = await resolve_change_request(
        session, request_id, Decision.APPROVE, body.admin_response if body else None
    )
    return ChangeRequestPublic.model_validate(request)


@router.put("/change-requests/{request_id}/reject", response_model=ChangeRequestPublic)
async def reject_change_request(
    request_id: int,
    body: ResolveChangeRequest | None = None,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> ChangeRequestPublic:
    request = await resolve_change_request(
        session, request_id, Decision.REJECT, body.admin_response if body else None
    )
    return ChangeRequestPublic.model_validate(request)


# --- Staff ---


@router.post("/employees", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def add_employee(
    body: EmployeeCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> UserPublic:
    employee = await create_employee(
        session,
        UserCreate(email=body.email, password=body.password, full_name=body.full_name, phone=body.phone),
    )
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    return user_to_public(employee)


@router.get("/employees", response_model=list[UserPublic])
async def list_employees(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> list[UserPublic]:
    return [user_to_public(u) for u in await list_users(session, UserRole.EMPLOYEE)]


async def _set_active(session: AsyncSession, user_id: int, active: bool, actor: User) -> UserPublic:
    if user_id == actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot change your own account status")
    user = await set_user_active(session, user_id, active)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user_to_public(user)


@router.put("/users/{user_id}/activate", response_model=UserPublic)
async def activate_user(
    user_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> UserPublic:
    return await _set_active(session, user_id, True, current_user)


@router.put("/users/{user_id}/deactivate", response_model=UserPublic)
async def deactivate_user(
    user_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_admin),
) -> UserPublic:
    return await _set_active(session, user_id, False, current_user)
