from datetime import date, datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, model_validator

from carelink.models import ApprovalStatus, UserRole
from carelink.schemas.hospital import HospitalRef, HospitalResponse
from carelink.schemas.profile import ProfileSummary


class Decision(StrEnum):
    """Approver action taken from the URL path."""

    approve = "approve"
    reject = "reject"

    @property
    def target(self) -> ApprovalStatus:
        return ApprovalStatus.approved if self is Decision.approve else ApprovalStatus.rejected


class ActionResult(BaseModel):
    success: bool = True


class PendingHospitalAdmin(BaseModel):
    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    approval_status: str
    hospital: Optional[HospitalResponse] = None


class PendingHospitalAdminsResponse(BaseModel):
    admins: list[PendingHospitalAdmin]


class PendingDoctor(BaseModel):
    profile_id: str
    full_name: str
    phone: Optional[str] = None
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    cnic: Optional[str] = None
    approval_status: str
    hospital: Optional[HospitalRef] = None


class PendingDoctorsResponse(BaseModel):
    doctors: list[PendingDoctor]


class PendingAssistant(BaseModel):
    profile_id: str
    full_name: str
    phone: Optional[str] = None
    approval_status: str
    doctor: Optional[ProfileSummary] = None
    hospital: Optional[HospitalRef] = None


class PendingAssistantsResponse(BaseModel):
    assistants: list[PendingAssistant]


class UserSummary(BaseModel):
    id: str
    email: str
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    approval_status: Optional[str] = None


class UserListResponse(BaseModel):
    users: list[UserSummary]


class UserUpdate(BaseModel):
    """Super-admin override of a profile's approval status and role."""

    approval_status: Optional[ApprovalStatus] = None
    role: Optional[UserRole] = None

    @model_validator(mode="after")
    def require_change(self) -> "UserUpdate":
        if self.approval_status is None and self.role is None:
            raise ValueError("Nothing to update (role or approval_status required)")
        return self
