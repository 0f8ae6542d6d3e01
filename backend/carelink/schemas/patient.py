from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from carelink.schemas.auth import CamelModel
from carelink.schemas.hospital import HospitalRef


class PatientCreate(CamelModel):
    """Patient details submitted by an assistant."""

    full_name: str = Field(..., min_length=1, max_length=255)
    cnic: str = Field(..., min_length=1, max_length=32)
    phone: Optional[str] = Field(None, max_length=50)
    gender: Optional[str] = Field(None, max_length=20)
    dob: Optional[date] = None

    @field_validator("full_name", "cnic")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class PatientRecord(BaseModel):
    id: str = Field(..., description="Canonical patient profile id")
    full_name: Optional[str] = None
    cnic: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    hospital_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


class PatientCreateResponse(BaseModel):
    status: Literal["created", "already_exists", "linked"]
    patient: PatientRecord


class PatientSearchResponse(BaseModel):
    found: bool
    patient: Optional[PatientRecord] = None
    hospitals: Optional[list[HospitalRef]] = None
