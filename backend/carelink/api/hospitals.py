from typing import Annotated

from fastapi import APIRouter, Depends

from carelink.api.deps import get_store
from carelink.config import settings
from carelink.models import ApprovalStatus
from carelink.schemas.hospital import ApprovedHospitalsResponse, HospitalPublic
from carelink.services.store import ClinicStore
from carelink.utils.cache import CacheKeys, clear_cache, get_cached, set_cached

router = APIRouter(prefix="/hospitals", tags=["Hospitals"])


async def invalidate_hospital_listings() -> None:
    """Drop cached hospital listings after any hospital status change."""
    await clear_cache(CacheKeys.hospitals_prefix())


@router.get("/approved", response_model=ApprovedHospitalsResponse)
async def list_approved_hospitals(store: Annotated[ClinicStore, Depends(get_store)]):
    """Public list of approved hospitals for the registration form."""
    cache_key = CacheKeys.approved_hospitals()
    cached = await get_cached(cache_key)
    if cached is not None:
        return cached
    hospitals = await store.list_hospitals(status=ApprovalStatus.approved.value)
    response = ApprovedHospitalsResponse(
        hospitals=[HospitalPublic.model_validate(h) for h in hospitals]
    )
    await set_cached(cache_key, response, ttl_seconds=settings.response_cache_ttl_seconds)
    return response
