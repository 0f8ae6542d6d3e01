from typing import Annotated

from fastapi import APIRouter, Depends, status

from carelink.api.deps import (
    RequestContext,
    get_registration,
    get_store,
    require_approved_role,
    require_role,
)
from carelink.models import UserRole
from carelink.schemas.auth import AccountResponse
from carelink.schemas.doctor import (
    AssistantCreate,
    AssistantListResponse,
    AssistantSummary,
    CreatedAssistant,
    CreatedAssistantResponse,
    DoctorMeResponse,
    DoctorProfileResponse,
    HospitalPatient,
    HospitalPatientsResponse,
)
from carelink.schemas.hospital import HospitalResponse
from carelink.schemas.profile import ProfileResponse
from carelink.services.errors import NotLinkedError
from carelink.services.registration import RegistrationService
from carelink.services.store import ClinicStore

router = APIRouter(prefix="/doctor", tags=["Doctor"])

Doctor = Annotated[RequestContext, Depends(require_role(UserRole.doctor))]
ApprovedDoctor = Annotated[RequestContext, Depends(require_approved_role(UserRole.doctor))]
Store = Annotated[ClinicStore, Depends(get_store)]


@router.get("/me", response_model=DoctorMeResponse)
async def read_doctor(ctx: Doctor, store: Store):
    """Account, profile, doctor record and hospital of the calling doctor."""
    doctor = await store.get_doctor_profile(ctx.profile_id)
    hospital = None
    if doctor is not None and doctor.hospital_id:
        hospital = await store.get_hospital(doctor.hospital_id)
    return DoctorMeResponse(
        user=AccountResponse.model_validate(ctx.account),
        profile=ProfileResponse.model_validate(ctx.profile),
        doctor_profile=DoctorProfileResponse.model_validate(doctor) if doctor else None,
        hospital=HospitalResponse.model_validate(hospital) if hospital else None,
    )


@router.get("/assistants", response_model=AssistantListResponse)
async def list_assistants(ctx: Doctor, store: Store):
    links = await store.list_assistant_links(doctor_profile_id=ctx.profile_id)
    profiles = {
        p.id: p
        for p in await store.list_profiles(
            ids=[link.profile_id for link in links],
            role=UserRole.doctor_assistant.value,
        )
    }
    assistants = []
    for link in links:
        profile = profiles.get(link.profile_id)
        assistants.append(
            AssistantSummary(
                profile_id=link.profile_id,
                full_name=(profile.full_name if profile else None) or "Unknown assistant",
                phone=profile.phone if profile else None,
                approval_status=link.approval_status,
            )
        )
    return AssistantListResponse(assistants=assistants)


@router.post(
    "/assistants",
    response_model=CreatedAssistantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assistant(
    data: AssistantCreate,
    ctx: ApprovedDoctor,
    registration: Annotated[RegistrationService, Depends(get_registration)],
):
    """Create a pending assistant for the calling doctor's hospital."""
    account, profile = await registration.create_assistant(ctx.profile_id, data)
    return CreatedAssistantResponse(
        assistant=CreatedAssistant(
            id=account.id,
            full_name=profile.full_name,
            email=account.email,
            phone=profile.phone,
            approval_status=profile.approval_status,
        )
    )


@router.get("/patients", response_model=HospitalPatientsResponse)
async def list_hospital_patients(ctx: Doctor, store: Store):
    """Patients registered at the doctor's hospital, newest first."""
    doctor = await store.get_doctor_profile(ctx.profile_id)
    if doctor is None or not doctor.hospital_id:
        raise NotLinkedError("Doctor not linked to a hospital")
    rows = await store.list_patient_profiles(hospital_id=doctor.hospital_id, newest_first=True)
    profiles = {p.id: p for p in await store.list_profiles(ids={r.profile_id for r in rows})}
    patients = []
    for row in rows:
        profile = profiles.get(row.profile_id)
        patients.append(
            HospitalPatient(
                id=row.profile_id,
                full_name=(profile.full_name if profile else None) or "Unknown",
                phone=profile.phone if profile else None,
                gender=profile.gender if profile else None,
                dob=profile.dob if profile else None,
                cnic=row.cnic,
                created_at=row.created_at,
            )
        )
    return HospitalPatientsResponse(patients=patients)
