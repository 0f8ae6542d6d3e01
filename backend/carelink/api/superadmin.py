import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from carelink.api.deps import (
    RequestContext,
    get_identity,
    get_store,
    get_workflow,
    require_role,
)
from carelink.api.hospitals import invalidate_hospital_listings
from carelink.models import ApprovalStatus, UserRole
from carelink.schemas.approvals import (
    ActionResult,
    Decision,
    PendingHospitalAdmin,
    PendingHospitalAdminsResponse,
    UserListResponse,
    UserSummary,
    UserUpdate,
)
from carelink.schemas.hospital import HospitalListResponse, HospitalResponse, HospitalWithAdmin
from carelink.schemas.profile import ProfileSummary
from carelink.services.errors import NotFoundError
from carelink.services.identity import LocalIdentityProvider
from carelink.services.store import ClinicStore
from carelink.services.workflow import ApprovalWorkflow, EntityRef, Gate

logger = logging.getLogger("carelink.api.superadmin")

router = APIRouter(
    prefix="/superadmin",
    tags=["Super Admin"],
    dependencies=[Depends(require_role(UserRole.super_admin))],
)

SuperAdmin = Annotated[RequestContext, Depends(require_role(UserRole.super_admin))]
Store = Annotated[ClinicStore, Depends(get_store)]
Workflow = Annotated[ApprovalWorkflow, Depends(get_workflow)]


async def _with_admins(store: ClinicStore, hospitals: list) -> list[HospitalWithAdmin]:
    admin_ids = {h.admin_profile_id for h in hospitals if h.admin_profile_id}
    admins = {p.id: p for p in await store.list_profiles(ids=admin_ids)}
    enriched = []
    for hospital in hospitals:
        item = HospitalWithAdmin.model_validate(hospital)
        admin = admins.get(hospital.admin_profile_id)
        if admin is not None:
            item.admin = ProfileSummary.model_validate(admin)
        enriched.append(item)
    return enriched


@router.get("/pending-hospital-admins", response_model=PendingHospitalAdminsResponse)
async def list_pending_hospital_admins(store: Store):
    """Pending hospital admins, each with the hospital they registered."""
    profiles = await store.list_profiles(
        role=UserRole.hospital_admin.value,
        approval_status=ApprovalStatus.pending.value,
    )
    hospitals = await store.list_hospitals(admin_profile_ids=[p.id for p in profiles])
    by_admin = {}
    for hospital in hospitals:
        by_admin.setdefault(hospital.admin_profile_id, hospital)
    return PendingHospitalAdminsResponse(
        admins=[
            PendingHospitalAdmin(
                id=p.id,
                full_name=p.full_name,
                phone=p.phone,
                gender=p.gender,
                dob=p.dob,
                approval_status=p.approval_status,
                hospital=(
                    HospitalResponse.model_validate(by_admin[p.id]) if p.id in by_admin else None
                ),
            )
            for p in profiles
        ]
    )


@router.post("/hospital-admins/{profile_id}/{decision}", response_model=ActionResult)
async def decide_hospital_admin(profile_id: str, decision: Decision, workflow: Workflow):
    """Approve or reject a hospital admin; rejection also rejects their hospitals."""
    outcome = await workflow.set_approval_state(
        EntityRef(Gate.hospital_admin, profile_id), decision.target
    )
    if outcome.applied and decision is Decision.reject:
        await invalidate_hospital_listings()
    outcome.raise_for_status()
    return ActionResult()


@router.get("/pending-hospitals", response_model=HospitalListResponse)
async def list_pending_hospitals(store: Store):
    hospitals = await store.list_hospitals(status=ApprovalStatus.pending.value)
    return HospitalListResponse(hospitals=await _with_admins(store, hospitals))


@router.get("/hospitals", response_model=HospitalListResponse)
async def list_hospitals(store: Store):
    hospitals = await store.list_hospitals()
    return HospitalListResponse(hospitals=await _with_admins(store, hospitals))


@router.post("/hospitals/{hospital_id}/{decision}", response_model=ActionResult)
async def decide_hospital(hospital_id: str, decision: Decision, workflow: Workflow):
    outcome = await workflow.set_approval_state(EntityRef(Gate.hospital, hospital_id), decision.target)
    if outcome.applied:
        await invalidate_hospital_listings()
    outcome.raise_for_status()
    return ActionResult()


@router.get("/users", response_model=UserListResponse)
async def list_users(store: Store):
    """Approved users other than super admins, merged with their profiles."""
    accounts = await store.list_accounts()
    profiles = {
        p.id: p
        for p in await store.list_profiles(
            ids=[a.id for a in accounts],
            approval_status=ApprovalStatus.approved.value,
        )
    }
    users = []
    for account in accounts:
        profile = profiles.get(account.id)
        if profile is None or profile.role == UserRole.super_admin:
            continue
        users.append(
            UserSummary(
                id=account.id,
                email=account.email,
                created_at=account.created_at,
                last_sign_in_at=account.last_sign_in_at,
                full_name=profile.full_name,
                phone=profile.phone,
                role=profile.role,
                approval_status=profile.approval_status,
            )
        )
    return UserListResponse(users=users)


@router.patch("/users/{user_id}", response_model=ActionResult)
async def update_user(user_id: str, body: UserUpdate, workflow: Workflow, ctx: SuperAdmin):
    """Override a profile's approval status or role, regardless of its current state."""
    await workflow.override_profile(user_id, approval_status=body.approval_status, role=body.role)
    logger.info("Super admin %s updated user %s", ctx.profile_id, user_id)
    return ActionResult()


@router.delete("/users/{user_id}", response_model=ActionResult)
async def delete_user(
    user_id: str,
    identity: Annotated[LocalIdentityProvider, Depends(get_identity)],
    ctx: SuperAdmin,
):
    """Delete the account together with its profile and dependent records."""
    if not await identity.delete_account(user_id):
        raise NotFoundError("User not found")
    await invalidate_hospital_listings()
    logger.info("Super admin %s deleted user %s", ctx.profile_id, user_id)
    return ActionResult()
