from typing import Optional

from pydantic import BaseModel, ConfigDict

from carelink.schemas.profile import ProfileSummary


class HospitalRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class HospitalPublic(HospitalRef):
    address: Optional[str] = None
    hospital_type: Optional[str] = None


class HospitalResponse(HospitalPublic):
    status: str
    admin_profile_id: Optional[str] = None


class HospitalWithAdmin(HospitalResponse):
    admin: Optional[ProfileSummary] = None


class ApprovedHospitalsResponse(BaseModel):
    hospitals: list[HospitalPublic]


class HospitalListResponse(BaseModel):
    hospitals: list[HospitalWithAdmin]
