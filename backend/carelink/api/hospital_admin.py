from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from carelink.api.deps import RequestContext, get_store, get_workflow, require_approved_role
from carelink.models import ApprovalStatus, UserRole
from carelink.schemas.approvals import (
    ActionResult,
    Decision,
    PendingAssistant,
    PendingAssistantsResponse,
    PendingDoctor,
    PendingDoctorsResponse,
)
from carelink.schemas.hospital import HospitalRef
from carelink.schemas.profile import ProfileSummary
from carelink.services.store import ClinicStore
from carelink.services.workflow import ApprovalWorkflow, EntityRef, Gate

router = APIRouter(prefix="/hospital-admin", tags=["Hospital Admin"])

Approver = Annotated[
    RequestContext,
    Depends(require_approved_role(UserRole.hospital_admin, UserRole.super_admin)),
]
Store = Annotated[ClinicStore, Depends(get_store)]
Workflow = Annotated[ApprovalWorkflow, Depends(get_workflow)]


def _scope_admin(ctx: RequestContext) -> Optional[str]:
    """Hospital admins act on their own hospitals; super admins are unscoped."""
    return ctx.profile_id if ctx.role == UserRole.hospital_admin else None


async def _scope_hospitals(ctx: RequestContext, workflow: ApprovalWorkflow) -> Optional[dict]:
    admin_id = _scope_admin(ctx)
    if admin_id is None:
        return None
    return {h.id: h for h in await workflow.hospitals_owned_by(admin_id)}


async def _hospital_names(store: ClinicStore, owned: Optional[dict], ids: set) -> dict:
    if owned is not None:
        return owned
    return {h.id: h for h in await store.list_hospitals(ids=ids)}


@router.get("/pending-doctors", response_model=PendingDoctorsResponse)
async def list_pending_doctors(ctx: Approver, store: Store, workflow: Workflow):
    """Pending doctors registered at the caller's hospitals."""
    owned = await _scope_hospitals(ctx, workflow)
    if owned is not None and not owned:
        return PendingDoctorsResponse(doctors=[])
    doctors = await store.list_doctor_profiles(
        hospital_ids=None if owned is None else owned.keys(),
        approval_status=ApprovalStatus.pending.value,
    )
    profiles = {p.id: p for p in await store.list_profiles(ids=[d.profile_id for d in doctors])}
    hospitals = await _hospital_names(store, owned, {d.hospital_id for d in doctors if d.hospital_id})

    items = []
    for doctor in doctors:
        profile = profiles.get(doctor.profile_id)
        hospital = hospitals.get(doctor.hospital_id)
        items.append(
            PendingDoctor(
                profile_id=doctor.profile_id,
                full_name=(profile.full_name if profile else None) or "",
                phone=profile.phone if profile else None,
                specialization=doctor.specialization,
                license_number=doctor.license_number,
                cnic=doctor.cnic,
                approval_status=doctor.approval_status,
                hospital=HospitalRef.model_validate(hospital) if hospital else None,
            )
        )
    return PendingDoctorsResponse(doctors=items)


@router.get("/pending-assistants", response_model=PendingAssistantsResponse)
async def list_pending_assistants(ctx: Approver, store: Store, workflow: Workflow):
    """Pending assistants at the caller's hospitals, with their doctor."""
    owned = await _scope_hospitals(ctx, workflow)
    if owned is not None and not owned:
        return PendingAssistantsResponse(assistants=[])
    links = await store.list_assistant_links(
        hospital_ids=None if owned is None else owned.keys(),
        approval_status=ApprovalStatus.pending.value,
    )
    profile_ids = {link.profile_id for link in links} | {link.doctor_profile_id for link in links}
    profiles = {p.id: p for p in await store.list_profiles(ids=profile_ids)}
    hospitals = await _hospital_names(store, owned, {link.hospital_id for link in links if link.hospital_id})

    items = []
    for link in links:
        profile = profiles.get(link.profile_id)
        doctor = profiles.get(link.doctor_profile_id)
        hospital = hospitals.get(link.hospital_id)
        items.append(
            PendingAssistant(
                profile_id=link.profile_id,
                full_name=(profile.full_name if profile else None) or "",
                phone=profile.phone if profile else None,
                approval_status=link.approval_status,
                doctor=ProfileSummary.model_validate(doctor) if doctor else None,
                hospital=HospitalRef.model_validate(hospital) if hospital else None,
            )
        )
    return PendingAssistantsResponse(assistants=items)


@router.post("/doctors/{profile_id}/{decision}", response_model=ActionResult)
async def decide_doctor(profile_id: str, decision: Decision, ctx: Approver, workflow: Workflow):
    outcome = await workflow.set_approval_state(
        EntityRef(Gate.doctor, profile_id),
        decision.target,
        scope_admin_id=_scope_admin(ctx),
    )
    outcome.raise_for_status()
    return ActionResult()


@router.post("/assistants/{profile_id}/{decision}", response_model=ActionResult)
async def decide_assistant(profile_id: str, decision: Decision, ctx: Approver, workflow: Workflow):
    outcome = await workflow.set_approval_state(
        EntityRef(Gate.assistant, profile_id),
        decision.target,
        scope_admin_id=_scope_admin(ctx),
    )
    outcome.raise_for_status()
    return ActionResult()
