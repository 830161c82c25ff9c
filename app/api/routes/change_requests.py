from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session, require_customer
from app.api.schemas.change_request import CanEditResponse, ChangeRequestCreate
from app.models.change_request import ChangeRequestPublic
from app.models.user import User
from app.services.appointment_service import get_customer_appointment
from app.services.change_request_service import (
    can_edit,
    create_change_request,
    list_change_requests_for_customer,
)

router = APIRouter(prefix="/change-requests", tags=["change-requests"])


@router.post("", response_model=ChangeRequestPublic, status_code=status.HTTP_201_CREATED)
async def request_change(
    body: ChangeRequestCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> ChangeRequestPublic:
    request = await create_change_request(session, current_user.id, body.appointment_id, body.reason)
    return ChangeRequestPublic.model_validate(request)


@router.get("/mine", response_model=list[ChangeRequestPublic])
async def list_my_change_requests(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> list[ChangeRequestPublic]:
    requests = await list_change_requests_for_customer(session, current_user.id)
    return [ChangeRequestPublic.model_validate(r) for r in requests]


@router.get("/can-edit/{appointment_id}", response_model=CanEditResponse)
async def can_edit_appointment(
    appointment_id: int,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_customer),
) -> CanEditResponse:
    await get_customer_appointment(session, appointment_id, current_user.id)
    return CanEditResponse(appointment_id=appointment_id, can_edit=await can_edit(session, appointment_id))
