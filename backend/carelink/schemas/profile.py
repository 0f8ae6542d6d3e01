from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict

from carelink.schemas.auth import AccountResponse


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    role: str
    approval_status: str


class ProfileSummary(BaseModel):
    """Name and contact details shown next to another entity."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    approval_status: Optional[str] = None


class MeResponse(BaseModel):
    user: AccountResponse
    profile: ProfileResponse
