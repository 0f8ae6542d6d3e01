from typing import Annotated, Any

from fastapi import APIRouter, Depends

from carelink.api.deps import get_current_account, get_registration
from carelink.logging import actor_id_var
from carelink.schemas.auth import AccountResponse
from carelink.schemas.profile import MeResponse, ProfileResponse
from carelink.services.registration import RegistrationService

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("/me", response_model=MeResponse)
async def read_my_profile(
    account: Annotated[Any, Depends(get_current_account)],
    registration: Annotated[RegistrationService, Depends(get_registration)],
):
    """Return the caller's account and profile, creating the profile if missing."""
    profile = await registration.ensure_profile(account)
    actor_id_var.set(profile.id)
    return MeResponse(
        user=AccountResponse.model_validate(account),
        profile=ProfileResponse.model_validate(profile),
    )
