"""Self-registration, assistant creation and profile auto-provisioning.

Each step is a separate store call. Once the account exists a later failure is
reported as a partial failure naming what was created, since nothing is rolled
back.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from carelink.models import ApprovalStatus, UserRole
from carelink.schemas.auth import DoctorRegistration, HospitalAdminRegistration
from carelink.schemas.doctor import AssistantCreate
from carelink.services.errors import (
    NotFoundError,
    NotLinkedError,
    PartialFailureError,
    ServiceError,
    UpstreamError,
    ValidationError,
)
from carelink.services.identity import IdentityProvider
from carelink.services.store import ClinicStore

logger = logging.getLogger("carelink.registration")

# Roles provisioned without review; everybody else waits for an approver.
AUTO_APPROVED_ROLES = {UserRole.patient, UserRole.super_admin}


def registration_role(raw: str) -> UserRole:
    """The web client sends ``admin`` for hospital admins."""
    return UserRole.hospital_admin if raw == "admin" else UserRole(raw)


def _parse_dob(value: Any) -> Optional[date]:
    if isinstance(value, date) or value is None:
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        logger.warning("Ignoring malformed dob %r in account metadata", value)
        return None


class RegistrationService:
    def __init__(self, store: ClinicStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    async def register(self, data: DoctorRegistration | HospitalAdminRegistration):
        """Create the account, its pending profile and the role records."""
        role = registration_role(data.role)
        if isinstance(data, DoctorRegistration):
            await self._check_hospital_open(data.hospital_id)

        account = await self.identity.create_account(
            data.email,
            data.password,
            {
                "full_name": data.full_name,
                "phone": data.phone,
                "gender": data.gender,
                "dob": data.dob.isoformat(),
                "role": role.value,
            },
        )

        await self._step(
            "User created but failed to create profile",
            ["account"],
            self.store.insert_profile(
                account.id,
                full_name=data.full_name,
                phone=data.phone,
                gender=data.gender,
                dob=data.dob,
                role=role.value,
                approval_status=ApprovalStatus.pending.value,
            ),
        )

        if isinstance(data, DoctorRegistration):
            await self._step(
                "User created but failed to create doctor profile. Contact support.",
                ["account", "profile"],
                self.store.insert_doctor_profile(
                    account.id,
                    specialization=data.specialization,
                    hospital_id=data.hospital_id,
                    license_number=data.license_number,
                    cnic=data.cnic,
                    approval_status=ApprovalStatus.pending.value,
                ),
            )
        else:
            hospital = await self._step(
                "User created but failed to create hospital. Contact support.",
                ["account", "profile"],
                self.store.insert_hospital(
                    name=data.hospital_name,
                    address=data.hospital_address,
                    hospital_type=data.hospital_type,
                    admin_profile_id=account.id,
                    status=ApprovalStatus.pending.value,
                ),
            )
            await self._step(
                "User created but failed to create hospital admin profile. Contact support.",
                ["account", "profile", "hospital"],
                self.store.insert_hospital_admin_link(account.id, hospital.id),
            )

        logger.info("Registered %s account %s", role.value, account.id)
        return account

    async def create_assistant(self, doctor_profile_id: str, data: AssistantCreate):
        """Create a pending assistant linked to the doctor and the doctor's hospital."""
        doctor = await self.store.get_doctor_profile(doctor_profile_id)
        if doctor is None:
            raise NotLinkedError("Doctor profile not found. Please complete setup.")

        account = await self.identity.create_account(
            data.email,
            data.password,
            {
                "full_name": data.full_name,
                "phone": data.phone,
                "role": UserRole.doctor_assistant.value,
            },
        )
        profile = await self._step(
            "Assistant user created but failed to create profile",
            ["account"],
            self.store.insert_profile(
                account.id,
                full_name=data.full_name,
                phone=data.phone,
                role=UserRole.doctor_assistant.value,
                approval_status=ApprovalStatus.pending.value,
            ),
        )
        await self._step(
            "Assistant user created but failed to link to doctor. Contact support.",
            ["account", "profile"],
            self.store.insert_assistant_link(
                account.id,
                doctor_profile_id=doctor_profile_id,
                hospital_id=doctor.hospital_id,
                approval_status=ApprovalStatus.pending.value,
            ),
        )
        logger.info("Doctor %s created assistant %s", doctor_profile_id, account.id)
        return account, profile

    async def ensure_profile(self, account):
        """Return the account's profile, provisioning one from its metadata."""
        profile = await self.store.get_profile(account.id)
        if profile is not None:
            return profile

        logger.warning("Profile not found, auto-creating for account %s", account.id)
        metadata = account.user_metadata or {}
        try:
            role = UserRole(metadata.get("role") or UserRole.patient)
        except ValueError:
            logger.warning("Unknown role %r in metadata of %s", metadata.get("role"), account.id)
            role = UserRole.patient
        status = ApprovalStatus.approved if role in AUTO_APPROVED_ROLES else ApprovalStatus.pending
        try:
            return await self.store.insert_profile(
                account.id,
                full_name=metadata.get("full_name") or account.email,
                phone=metadata.get("phone"),
                gender=metadata.get("gender"),
                dob=_parse_dob(metadata.get("dob")),
                role=role.value,
                approval_status=status.value,
            )
        except ServiceError as exc:
            raise UpstreamError("Failed to create profile") from exc

    async def _check_hospital_open(self, hospital_id: str) -> None:
        hospital = await self.store.get_hospital(hospital_id)
        if hospital is None:
            raise NotFoundError("Selected hospital not found", status_code=400)
        if hospital.status != ApprovalStatus.approved:
            raise ValidationError("Selected hospital is not approved yet")

    @staticmethod
    async def _step(message: str, applied: list[str], call):
        try:
            return await call
        except ServiceError as exc:
            logger.error("%s (already created: %s)", message, ", ".join(applied))
            raise PartialFailureError(message, applied=applied) from exc
