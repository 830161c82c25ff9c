from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_session
from app.api.schemas.appointment import AvailableSlotsResponse, BookedSlotsResponse, SlotInfo
from app.services.slot_service import get_available_slots_for_date, get_booked_slots, slot_order

router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("", response_model=AvailableSlotsResponse)
async def available_slots(
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
) -> AvailableSlotsResponse:
    """Every configured time slot for the day, flagged available unless a live booking holds it."""
    slots = await get_available_slots_for_date(session, date_param)
    return AvailableSlotsResponse(
        date=date_param.isoformat(),
        slots=[SlotInfo(time_slot=s, available=avail) for s, avail in slots],
    )


@router.get("/booked", response_model=BookedSlotsResponse)
async def booked_slots(
    date_param: date = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
) -> BookedSlotsResponse:
    booked = await get_booked_slots(session, date_param)
    return BookedSlotsResponse(date=date_param.isoformat(), booked=sorted(booked, key=slot_order))
