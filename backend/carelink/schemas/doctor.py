from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from carelink.schemas.auth import AccountResponse, CamelModel
from carelink.schemas.hospital import HospitalResponse
from carelink.schemas.profile import ProfileResponse, ProfileSummary


class DoctorProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile_id: str
    specialization: Optional[str] = None
    hospital_id: Optional[str] = None
    license_number: Optional[str] = None
    cnic: Optional[str] = None
    approval_status: str


class DoctorMeResponse(BaseModel):
    user: AccountResponse
    profile: ProfileResponse
    doctor_profile: Optional[DoctorProfileResponse] = None
    hospital: Optional[HospitalResponse] = None


class AssistantCreate(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    password: str = Field(..., min_length=8)


class CreatedAssistant(BaseModel):
    id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    approval_status: str


class CreatedAssistantResponse(BaseModel):
    assistant: CreatedAssistant


class AssistantSummary(BaseModel):
    profile_id: str
    full_name: str
    phone: Optional[str] = None
    approval_status: str


class AssistantListResponse(BaseModel):
    assistants: list[AssistantSummary]


class HospitalPatient(BaseModel):
    id: str
    full_name: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    cnic: str
    created_at: datetime


class HospitalPatientsResponse(BaseModel):
    patients: list[HospitalPatient]


class AssistantLinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    doctor_profile_id: str
    hospital_id: Optional[str] = None
    approval_status: str


class AssistantMeResponse(BaseModel):
    user: AccountResponse
    profile: ProfileResponse
    assistant_link: Optional[AssistantLinkResponse] = None
    doctor: Optional[ProfileSummary] = None
    hospital: Optional[HospitalResponse] = None
