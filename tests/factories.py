"""Builders shared by the test modules."""

from datetime import date, timedelta

from app.core.security import create_access_token, hash_password
from app.models import AppointmentCreate, User, UserRole

PASSWORD = "correct-horse-battery"
PASSWORD_HASH = hash_password(PASSWORD)

DAY = date.today() + timedelta(days=7)


def make_user(email: str, role: UserRole, active: bool = True) -> User:
    return User(
        email=email,
        full_name=email.split("@")[0],
        hashed_password=PASSWORD_HASH,
        role=role,
        is_active=active,
    )


def booking(service_id: int, d: date = DAY, time_slot: str = "10:00 AM", **overrides) -> AppointmentCreate:
    data = {
        "service_id": service_id,
        "appointment_date": d,
        "time_slot": time_slot,
        "vehicle_type": "Car",
        "vehicle_brand": "Toyota",
        "vehicle_model": "Corolla",
        "year_of_manufacture": "2019",
        "registration_number": "CAB-1234",
        "fuel_type": "Petrol",
    }
    data.update(overrides)
    return AppointmentCreate(**data)


def booking_json(service_id: int, d: date = DAY, time_slot: str = "10:00 AM", **overrides) -> dict:
    return booking(service_id, d, time_slot, **overrides).model_dump(mode="json")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}
