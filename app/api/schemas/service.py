from pydantic import BaseModel


class ServiceAvailability(BaseModel):
    id: int
    name: str
    category: str
    description: str | None = None
    max_daily_slots: int
    is_active: bool
    date: str  # YYYY-MM-DD
    remaining_slots: int
    bookable: bool
