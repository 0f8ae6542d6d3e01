from typing import Annotated

from fastapi import APIRouter, Depends

from carelink.api.deps import RequestContext, get_store, require_role
from carelink.models import UserRole
from carelink.schemas.auth import AccountResponse
from carelink.schemas.doctor import AssistantLinkResponse, AssistantMeResponse
from carelink.schemas.hospital import HospitalResponse
from carelink.schemas.profile import ProfileResponse, ProfileSummary
from carelink.services.store import ClinicStore

router = APIRouter(prefix="/assistant", tags=["Assistant"])


@router.get("/me", response_model=AssistantMeResponse)
async def read_assistant(
    ctx: Annotated[RequestContext, Depends(require_role(UserRole.doctor_assistant))],
    store: Annotated[ClinicStore, Depends(get_store)],
):
    """Account, profile, doctor link, doctor and hospital of the calling assistant."""
    link = await store.get_assistant_link(ctx.profile_id)
    doctor = hospital = None
    if link is not None:
        doctor = await store.get_profile(link.doctor_profile_id)
        if doctor is not None and doctor.role != UserRole.doctor:
            doctor = None
        if link.hospital_id:
            hospital = await store.get_hospital(link.hospital_id)
    return AssistantMeResponse(
        user=AccountResponse.model_validate(ctx.account),
        profile=ProfileResponse.model_validate(ctx.profile),
        assistant_link=AssistantLinkResponse.model_validate(link) if link else None,
        doctor=ProfileSummary.model_validate(doctor) if doctor else None,
        hospital=HospitalResponse.model_validate(hospital) if hospital else None,
    )
