from pydantic import BaseModel, Field


class ChangeRequestCreate(BaseModel):
    appointment_id: int
    reason: str = Field(min_length=1, max_length=2000)


class ResolveChangeRequest(BaseModel):
    admin_response: str | None = Field(default=None, max_length=2000)


class CanEditResponse(BaseModel):
    appointment_id: int
    can_edit: bool
