"""Patient identity reconciliation by national id (cnic).

The cnic is the only stable key for a person across hospitals, so an assistant's
submission either creates the identity, finds it already registered at the
assistant's hospital, or re-homes the existing linkage to that hospital. A cnic
on record under a different name is rejected before anything is written.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional

from carelink.models import ApprovalStatus, UserRole, new_id
from carelink.schemas.hospital import HospitalRef
from carelink.schemas.patient import PatientCreate, PatientRecord
from carelink.services.errors import (
    ConflictError,
    NameMismatchError,
    NotFoundError,
    NotLinkedError,
    PartialFailureError,
    ServiceError,
    UpstreamError,
)
from carelink.services.store import ClinicStore

logger = logging.getLogger("carelink.reconciliation")


def normalize_name(value: Optional[str]) -> str:
    """Trim, collapse internal whitespace and lowercase."""
    return " ".join((value or "").split()).lower()


def normalize_cnic(value: str) -> str:
    return value.strip()


class KeyedLock:
    """One asyncio lock per key, dropped once nobody holds or waits for it."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


_cnic_locks = KeyedLock()


class ReconciliationStatus(StrEnum):
    created = "created"
    already_exists = "already_exists"
    linked = "linked"


@dataclass
class ReconciliationResult:
    status: ReconciliationStatus
    patient: PatientRecord


@dataclass
class PatientSearchResult:
    patient: PatientRecord
    hospitals: list[HospitalRef]


def _record(row, profile) -> PatientRecord:
    return PatientRecord(
        id=profile.id,
        full_name=profile.full_name,
        cnic=row.cnic,
        phone=profile.phone,
        gender=profile.gender,
        dob=profile.dob,
        hospital_id=row.hospital_id,
        created_by=row.created_by,
        created_at=row.created_at,
    )


class PatientReconciler:
    def __init__(self, store: ClinicStore, locks: Optional[KeyedLock] = None):
        self.store = store
        self.locks = locks if locks is not None else _cnic_locks

    async def resolve_assistant_hospital(self, assistant_profile_id: str) -> str:
        link = await self.store.get_assistant_link(assistant_profile_id)
        if link is None or not link.hospital_id:
            raise NotLinkedError("Assistant is not linked to a hospital")
        return link.hospital_id

    async def register_patient(
        self, assistant_profile_id: str, data: PatientCreate
    ) -> ReconciliationResult:
        """Create, find or relink the patient identity for ``data.cnic``."""
        hospital_id = await self.resolve_assistant_hospital(assistant_profile_id)
        cnic = normalize_cnic(data.cnic)
        async with self.locks.hold(cnic):
            try:
                return await self._reconcile(assistant_profile_id, hospital_id, cnic, data)
            except ConflictError:
                # Another process inserted the same cnic for this hospital first.
                logger.warning("Concurrent registration of cnic at hospital %s; re-reading", hospital_id)
                return await self._reconcile(assistant_profile_id, hospital_id, cnic, data)

    async def search_by_cnic(self, cnic: str) -> Optional[PatientSearchResult]:
        rows = await self.store.list_patient_profiles(cnic=normalize_cnic(cnic))
        if not rows:
            return None
        profile = await self.store.get_profile(rows[0].profile_id)
        if profile is None:
            raise NotFoundError("Patient profile not found")
        hospital_ids = {r.hospital_id for r in rows if r.hospital_id}
        hospitals = await self.store.list_hospitals(ids=hospital_ids)
        return PatientSearchResult(
            patient=_record(rows[0], profile),
            hospitals=[HospitalRef(id=h.id, name=h.name) for h in hospitals],
        )

    async def _reconcile(
        self,
        assistant_profile_id: str,
        hospital_id: str,
        cnic: str,
        data: PatientCreate,
    ) -> ReconciliationResult:
        rows = await self.store.list_patient_profiles(cnic=cnic)
        if not rows:
            return await self._create(assistant_profile_id, hospital_id, cnic, data)

        canonical = rows[0]
        others = sorted({r.profile_id for r in rows} - {canonical.profile_id})
        if others:
            logger.warning(
                "cnic rows reference %d profiles; using %s, ignoring %s",
                len(others) + 1,
                canonical.profile_id,
                ", ".join(others),
            )

        profile = await self.store.get_profile(canonical.profile_id)
        if profile is None:
            raise NotFoundError("Patient profile not found")
        stored_name = normalize_name(profile.full_name)
        if stored_name and stored_name != normalize_name(data.full_name):
            raise NameMismatchError(
                "A patient with this CNIC is already registered under a different name"
            )

        await self._refresh_demographics(profile, data)

        for row in rows:
            if row.hospital_id == hospital_id:
                return ReconciliationResult(
                    status=ReconciliationStatus.already_exists,
                    patient=_record(row, profile),
                )

        try:
            relinked = await self.store.update_patient_profile(
                canonical.id,
                hospital_id=hospital_id,
                created_by=assistant_profile_id,
            )
        except ConflictError:
            raise
        except ServiceError as exc:
            raise UpstreamError("Failed to link patient to hospital") from exc
        if relinked is None:
            raise NotFoundError("Patient profile not found")
        logger.info(
            "Patient %s relinked from hospital %s to %s",
            profile.id,
            canonical.hospital_id,
            hospital_id,
        )
        return ReconciliationResult(
            status=ReconciliationStatus.linked, patient=_record(relinked, profile)
        )

    async def _create(
        self,
        assistant_profile_id: str,
        hospital_id: str,
        cnic: str,
        data: PatientCreate,
    ) -> ReconciliationResult:
        try:
            profile = await self.store.insert_profile(
                new_id(),
                full_name=data.full_name,
                phone=data.phone,
                gender=data.gender,
                dob=data.dob,
                role=UserRole.patient.value,
                approval_status=ApprovalStatus.approved.value,
            )
        except ServiceError as exc:
            raise UpstreamError("Failed to create patient profile") from exc

        try:
            row = await self.store.insert_patient_profile(
                profile_id=profile.id,
                hospital_id=hospital_id,
                cnic=cnic,
                created_by=assistant_profile_id,
            )
        except ConflictError:
            logger.warning("Patient profile %s left without a hospital link", profile.id)
            raise
        except ServiceError as exc:
            raise PartialFailureError(
                "Patient profile created but failed to link to hospital",
                applied=["profile"],
            ) from exc
        logger.info("Patient %s created at hospital %s", profile.id, hospital_id)
        return ReconciliationResult(
            status=ReconciliationStatus.created, patient=_record(row, profile)
        )

    async def _refresh_demographics(self, profile, data: PatientCreate) -> None:
        """Patch changed demographics onto the canonical profile, best effort."""
        profile_id = profile.id
        changes: dict[str, Any] = {}
        if data.full_name != profile.full_name:
            changes["full_name"] = data.full_name
        for name in ("phone", "gender", "dob"):
            value = getattr(data, name)
            if value is not None and value != getattr(profile, name):
                changes[name] = value
        if not changes:
            return
        try:
            await self.store.update_profile(profile_id, **changes)
        except ServiceError:
            logger.warning(
                "Demographic refresh of patient %s failed; continuing", profile_id, exc_info=True
            )
            return
        for name, value in changes.items():
            setattr(profile, name, value)
