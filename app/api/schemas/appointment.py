from datetime import date

from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    time_slot: str
    available: bool


class AvailableSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    slots: list[SlotInfo]


class BookedSlotsResponse(BaseModel):
    date: str  # YYYY-MM-DD
    booked: list[str]


class BookAppointmentRequest(BaseModel):
    service_id: int
    appointment_date: date
    time_slot: str
    vehicle_type: str = Field(min_length=1)
    vehicle_brand: str = Field(min_length=1)
    vehicle_model: str = Field(min_length=1)
    year_of_manufacture: str = Field(min_length=4, max_length=4)
    registration_number: str = Field(min_length=1)
    fuel_type: str = Field(min_length=1)
    additional_requirements: str | None = None


class EditAppointmentRequest(BookAppointmentRequest):
    pass


class AppointmentStatusResponse(BaseModel):
    id: int
    status: str
