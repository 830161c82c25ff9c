from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session
from app.api.schemas.service import ServiceAvailability
from app.models.service import Service
from app.services.catalog_service import get_service, list_services
from app.services.slot_service import count_active_bookings, is_bookable, remaining_for, remaining_slots

router = APIRouter(prefix="/services", tags=["services"])


async def _availability(session: AsyncSession, service: Service, d: date) -> ServiceAvailability:
    remaining = remaining_for(service, await count_active_bookings(session, service.id, d))
    return ServiceAvailability(
        id=service.id,
        name=service.name,
        category=service.category,
        description=service.description,
        max_daily_slots=service.max_daily_slots,
        is_active=service.is_active,
        date=d.isoformat(),
        remaining_slots=remaining,
        bookable=is_bookable(service, remaining),
    )


@router.get("", response_model=list[ServiceAvailability])
async def list_catalog(
    date_param: date | None = Query(None, alias="date"),
    session: AsyncSession = Depends(get_session),
) -> list[ServiceAvailability]:
    """Active services with remaining daily capacity for the date (default today)."""
    d = date_param or date.today()
    return [await _availability(session, s, d) for s in await list_services(session)]


@router.get("/{service_id}", response_model=ServiceAvailability)
async def get_catalog_entry(
    service_id: int,
    date_param: date | None = Query(None, alias="date"),
    session: AsyncSession = Depends(get_session),
) -> ServiceAvailability:
    service = await get_service(session, service_id)
    return await _availability(session, service, date_param or date.today())


@router.get("/{service_id}/availability")
async def service_remaining_slots(
    service_id: int,
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
) -> dict:
    remaining = await remaining_slots(session, service_id, date_param)
    return {"service_id": service_id, "date": date_param.isoformat(), "remaining_slots": remaining}
