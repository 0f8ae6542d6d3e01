import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from carelink.api.deps import RequestContext, get_reconciler, require_approved_role
from carelink.models import UserRole
from carelink.schemas.patient import PatientCreate, PatientCreateResponse, PatientSearchResponse
from carelink.services.reconciliation import PatientReconciler, ReconciliationStatus

logger = logging.getLogger("carelink.api.patients")

router = APIRouter(prefix="/patients", tags=["Patients"])

Reconciler = Annotated[PatientReconciler, Depends(get_reconciler)]


@router.post("", response_model=PatientCreateResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(
    data: PatientCreate,
    response: Response,
    ctx: Annotated[RequestContext, Depends(require_approved_role(UserRole.doctor_assistant))],
    reconciler: Reconciler,
):
    """Register a patient at the assistant's hospital.

    Answers 201 when a new identity was created and 200 when the cnic was
    already registered here or has been relinked to this hospital.
    """
    result = await reconciler.register_patient(ctx.profile_id, data)
    if result.status is not ReconciliationStatus.created:
        response.status_code = status.HTTP_200_OK
    return PatientCreateResponse(status=result.status.value, patient=result.patient)


@router.get("/search", response_model=PatientSearchResponse, response_model_exclude_none=True)
async def search_patient(
    ctx: Annotated[
        RequestContext,
        Depends(
            require_approved_role(
                UserRole.doctor_assistant,
                UserRole.doctor,
                UserRole.hospital_admin,
                UserRole.super_admin,
            )
        ),
    ],
    reconciler: Reconciler,
    cnic: str = Query(..., min_length=1, max_length=32),
):
    """Look a patient up by cnic across all hospitals."""
    found = await reconciler.search_by_cnic(cnic)
    if found is None:
        return PatientSearchResponse(found=False)
    return PatientSearchResponse(found=True, patient=found.patient, hospitals=found.hospitals)
