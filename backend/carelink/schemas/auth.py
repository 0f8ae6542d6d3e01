from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies arrive in camelCase from the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _RegistrationBase(CamelModel):
    email: EmailStr = Field(..., description="Login e-mail address")
    password: str = Field(..., min_length=8, description="Password (minimum 8 characters)")
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    gender: str = Field(..., min_length=1, max_length=20)
    dob: date


class DoctorRegistration(_RegistrationBase):
    """Self-registration of a doctor at an approved hospital."""

    role: Literal["doctor"]
    specialization: str = Field(..., min_length=1, max_length=255)
    hospital_id: str = Field(..., min_length=1)
    license_number: str = Field(..., min_length=1, max_length=100)
    cnic: str = Field(..., min_length=1, max_length=32)


class HospitalAdminRegistration(_RegistrationBase):
    """Self-registration of a hospital admin together with the hospital."""

    role: Literal["hospital_admin", "admin"]
    hospital_name: str = Field(..., min_length=1, max_length=255)
    hospital_address: str = Field(..., min_length=1)
    hospital_type: str = Field(..., min_length=1, max_length=100)


RegistrationRequest = Annotated[
    Union[DoctorRegistration, HospitalAdminRegistration],
    Field(discriminator="role"),
]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Refresh token")


class SessionResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiry in seconds")


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    user_metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None


class UserEnvelope(BaseModel):
    user: AccountResponse


class LoginResponse(BaseModel):
    user: AccountResponse
    session: SessionResponse
