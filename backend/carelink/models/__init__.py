from carelink.models.account import Account
from carelink.models.base import Base, TimestampMixin, new_id
from carelink.models.doctor_profile import DoctorAssistantProfile, DoctorProfile
from carelink.models.hospital import Hospital, HospitalAdminProfile
from carelink.models.patient_profile import PatientProfile
from carelink.models.profile import ApprovalStatus, Profile, UserRole

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "new_id",
    # Identity
    "Account",
    "Profile",
    "UserRole",
    "ApprovalStatus",
    # Hospitals and roles
    "Hospital",
    "HospitalAdminProfile",
    "DoctorProfile",
    "DoctorAssistantProfile",
    "PatientProfile",
]
