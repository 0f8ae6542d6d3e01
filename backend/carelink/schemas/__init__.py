from carelink.schemas.approvals import (
    ActionResult,
    Decision,
    PendingAssistant,
    PendingAssistantsResponse,
    PendingDoctor,
    PendingDoctorsResponse,
    PendingHospitalAdmin,
    PendingHospitalAdminsResponse,
    UserListResponse,
    UserSummary,
    UserUpdate,
)
from carelink.schemas.auth import (
    AccountResponse,
    DoctorRegistration,
    HospitalAdminRegistration,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegistrationRequest,
    SessionResponse,
    UserEnvelope,
)
from carelink.schemas.doctor import (
    AssistantCreate,
    AssistantLinkResponse,
    AssistantListResponse,
    AssistantMeResponse,
    AssistantSummary,
    CreatedAssistant,
    CreatedAssistantResponse,
    DoctorMeResponse,
    DoctorProfileResponse,
    HospitalPatient,
    HospitalPatientsResponse,
)
from carelink.schemas.hospital import (
    ApprovedHospitalsResponse,
    HospitalListResponse,
    HospitalPublic,
    HospitalRef,
    HospitalResponse,
    HospitalWithAdmin,
)
from carelink.schemas.patient import (
    PatientCreate,
    PatientCreateResponse,
    PatientRecord,
    PatientSearchResponse,
)
from carelink.schemas.profile import MeResponse, ProfileResponse, ProfileSummary

__all__ = [
    # Auth
    "AccountResponse",
    "DoctorRegistration",
    "HospitalAdminRegistration",
    "LoginRequest",
    "LoginResponse",
    "RefreshTokenRequest",
    "RegistrationRequest",
    "SessionResponse",
    "UserEnvelope",
    # Profile
    "MeResponse",
    "ProfileResponse",
    "ProfileSummary",
    # Hospitals
    "ApprovedHospitalsResponse",
    "HospitalListResponse",
    "HospitalPublic",
    "HospitalRef",
    "HospitalResponse",
    "HospitalWithAdmin",
    # Approvals
    "ActionResult",
    "Decision",
    "PendingAssistant",
    "PendingAssistantsResponse",
    "PendingDoctor",
    "PendingDoctorsResponse",
    "PendingHospitalAdmin",
    "PendingHospitalAdminsResponse",
    "UserListResponse",
    "UserSummary",
    "UserUpdate",
    # Doctor and assistant
    "AssistantCreate",
    "AssistantLinkResponse",
    "AssistantListResponse",
    "AssistantMeResponse",
    "AssistantSummary",
    "CreatedAssistant",
    "CreatedAssistantResponse",
    "DoctorMeResponse",
    "DoctorProfileResponse",
    "HospitalPatient",
    "HospitalPatientsResponse",
    # Patients
    "PatientCreate",
    "PatientCreateResponse",
    "PatientRecord",
    "PatientSearchResponse",
]
