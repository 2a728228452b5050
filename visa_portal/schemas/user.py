from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AppointmentType(str, Enum):
    employment_visa = "employment_visa"
    family_visa = "family_visa"
    visit_visa = "visit_visa"
    student_visa = "student_visa"
    business_visa = "business_visa"
    other = "other"


class AppointmentDetails(BaseModel):
    appointment_type: AppointmentType
    preferred_date: date
    medical_center: str = Field(..., min_length=1, max_length=255)
    country: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=1000)


class AppointmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    passport_number: str = Field(..., min_length=6, max_length=20, alias="passportNumber")
    appointment_details: AppointmentDetails


class UserSummary(BaseModel):
    id: int
    phone: str
    name: str
    email: str
    payment_status: str
    has_appointment_details: bool

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    passport_number: str
    appointment_details: dict[str, Any]
    payment_status: str
    payment_id: str | None
    appointment_slip_path: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
