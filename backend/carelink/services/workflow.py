"""Approval workflow for hospital admins, hospitals, doctors and assistants.

Role-specific approval (a doctor's credentials, an assistant's link to a doctor)
lives on the role table, while permission to use the application lives on the
generic profile. Both are flipped together: the role record first, then the
profile. The store has no cross-table transaction, so when the second write
fails the outcome reports which writes already took effect instead of rolling
back. Re-applying the same target is a no-op on records already in that state,
which makes a retry after a partial failure safe.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

from carelink.models import ApprovalStatus, UserRole
from carelink.services.errors import (
    InvalidTransitionError,
    NotFoundError,
    PartialFailureError,
    ServiceError,
    UpstreamError,
)
from carelink.services.store import ClinicStore

logger = logging.getLogger("carelink.workflow")


class Gate(StrEnum):
    hospital_admin = "hospital_admin"
    hospital = "hospital"
    doctor = "doctor"
    assistant = "assistant"


_LABELS = {
    Gate.hospital_admin: "Hospital admin",
    Gate.hospital: "Hospital",
    Gate.doctor: "Doctor",
    Gate.assistant: "Assistant",
}


@dataclass(frozen=True)
class EntityRef:
    gate: Gate
    id: str

    @property
    def label(self) -> str:
        return _LABELS[self.gate]


class OutcomeStatus(StrEnum):
    updated = "updated"
    partially_updated = "partially_updated"
    failed = "failed"


@dataclass
class ApprovalOutcome:
    """Result of one approval action: which of its writes took effect."""

    ref: EntityRef
    target: ApprovalStatus
    status: OutcomeStatus
    applied: list[str] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.updated

    def raise_for_status(self) -> None:
        if self.status is OutcomeStatus.partially_updated:
            raise PartialFailureError(self.message or "Update partially applied", self.applied)
        if self.status is OutcomeStatus.failed:
            raise UpstreamError(self.message or "Update failed")


@dataclass
class _Write:
    name: str
    description: str
    run: Callable[[], Awaitable[int]]


def check_transition(label: str, current: str, target: ApprovalStatus) -> None:
    """Gates only leave ``pending``; re-applying the current state is allowed."""
    if current == target or current == ApprovalStatus.pending:
        return
    raise InvalidTransitionError(f"{label} is already {current}")


class ApprovalWorkflow:
    """Applies approval transitions and their cascades against the store."""

    def __init__(self, store: ClinicStore):
        self.store = store

    async def hospitals_owned_by(self, admin_profile_id: str) -> list:
        return await self.store.list_hospitals(admin_profile_ids=[admin_profile_id])

    async def set_approval_state(
        self,
        ref: EntityRef,
        target: ApprovalStatus,
        scope_admin_id: Optional[str] = None,
    ) -> ApprovalOutcome:
        """Move ``ref`` to ``target``, applying the coupled writes in order.

        ``scope_admin_id`` restricts doctor and assistant actions to hospitals
        owned by that hospital admin; ``None`` means unscoped (super admin).
        Lookups that fail raise immediately; write failures are reported on the
        returned outcome.
        """
        target = ApprovalStatus(target)
        if ref.gate is Gate.hospital_admin:
            writes = await self._hospital_admin_writes(ref, target)
        elif ref.gate is Gate.hospital:
            writes = await self._hospital_writes(ref, target)
        elif ref.gate is Gate.doctor:
            writes = await self._doctor_writes(ref, target, scope_admin_id)
        else:
            writes = await self._assistant_writes(ref, target, scope_admin_id)
        return await self._run(ref, target, writes)

    async def override_profile(
        self,
        profile_id: str,
        approval_status: Optional[ApprovalStatus] = None,
        role: Optional[UserRole] = None,
    ) -> None:
        """Super-admin override of a profile; bypasses the transition rules."""
        if await self.store.get_profile(profile_id) is None:
            raise NotFoundError("User profile not found")
        fields = {}
        if approval_status is not None:
            fields["approval_status"] = ApprovalStatus(approval_status).value
        if role is not None:
            fields["role"] = UserRole(role).value
        try:
            await self.store.update_profile(profile_id, **fields)
        except ServiceError as exc:
            raise UpstreamError("Failed to update user profile") from exc
        logger.info("Profile %s overridden with %s", profile_id, fields)

    async def _hospital_admin_writes(self, ref: EntityRef, target: ApprovalStatus) -> list[_Write]:
        profile = await self.store.get_profile(ref.id)
        if profile is None or profile.role != UserRole.hospital_admin:
            raise NotFoundError("Hospital admin not found")
        check_transition(ref.label, profile.approval_status, target)
        writes = [
            _Write(
                "profile",
                "profile",
                lambda: self.store.update_profile(ref.id, approval_status=target.value),
            )
        ]
        # Approving the admin leaves the hospital pending; it has its own gate.
        if target is ApprovalStatus.rejected:
            writes.append(
                _Write(
                    "hospitals",
                    "hospital",
                    lambda: self.store.update_hospital_status(
                        ApprovalStatus.rejected.value, admin_profile_id=ref.id
                    ),
                )
            )
        return writes

    async def _hospital_writes(self, ref: EntityRef, target: ApprovalStatus) -> list[_Write]:
        hospital = await self.store.get_hospital(ref.id)
        if hospital is None:
            raise NotFoundError("Hospital not found")
        check_transition(ref.label, hospital.status, target)
        return [
            _Write(
                "hospital",
                "hospital",
                lambda: self.store.update_hospital_status(target.value, hospital_id=ref.id),
            )
        ]

    async def _scope_ids(self, scope_admin_id: Optional[str]) -> Optional[set[str]]:
        if scope_admin_id is None:
            return None
        return {h.id for h in await self.hospitals_owned_by(scope_admin_id)}

    async def _doctor_writes(
        self, ref: EntityRef, target: ApprovalStatus, scope_admin_id: Optional[str]
    ) -> list[_Write]:
        doctor = await self.store.get_doctor_profile(ref.id)
        scope = await self._scope_ids(scope_admin_id)
        if doctor is None or (scope is not None and doctor.hospital_id not in scope):
            raise NotFoundError("Doctor not found")
        check_transition(ref.label, doctor.approval_status, target)
        return [
            _Write(
                "doctor_profile",
                "doctor profile",
                lambda: self.store.update_doctor_approval(ref.id, target.value),
            ),
            _Write(
                "profile",
                "profile",
                lambda: self.store.update_profile(ref.id, approval_status=target.value),
            ),
        ]

    async def _assistant_writes(
        self, ref: EntityRef, target: ApprovalStatus, scope_admin_id: Optional[str]
    ) -> list[_Write]:
        link = await self.store.get_assistant_link(ref.id)
        scope = await self._scope_ids(scope_admin_id)
        if link is None or (scope is not None and link.hospital_id not in scope):
            raise NotFoundError("Assistant not found")
        check_transition(ref.label, link.approval_status, target)
        return [
            _Write(
                "assistant_link",
                "assistant link",
                lambda: self.store.update_assistant_approval(ref.id, target.value),
            ),
            _Write(
                "profile",
                "profile",
                lambda: self.store.update_profile(ref.id, approval_status=target.value),
            ),
        ]

    async def _run(
        self, ref: EntityRef, target: ApprovalStatus, writes: list[_Write]
    ) -> ApprovalOutcome:
        applied: list[str] = []
        for write in writes:
            try:
                await write.run()
            except ServiceError:
                if not applied:
                    logger.exception("%s %s: %s update failed", ref.label, ref.id, write.name)
                    return ApprovalOutcome(
                        ref=ref,
                        target=target,
                        status=OutcomeStatus.failed,
                        message=f"Failed to update {write.description}",
                    )
                logger.exception(
                    "%s %s %s, then %s update failed; %s already applied",
                    ref.label,
                    ref.id,
                    target.value,
                    write.name,
                    ", ".join(applied),
                )
                return ApprovalOutcome(
                    ref=ref,
                    target=target,
                    status=OutcomeStatus.partially_updated,
                    applied=applied,
                    message=f"{ref.label} {target.value} but {write.description} update failed",
                )
            applied.append(write.name)
        logger.info("%s %s %s", ref.label, ref.id, target.value)
        return ApprovalOutcome(ref=ref, target=target, status=OutcomeStatus.updated, applied=applied)
