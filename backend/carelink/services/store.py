"""Relational store implementations.

The services talk to the store one call at a time, the way they would talk to a
hosted database over the network: every write is its own unit of work and
there is no transaction spanning two calls. ``SQLClinicStore`` is the
production implementation; ``InMemoryClinicStore`` backs tests and local demos.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.models import (
    Account,
    ApprovalStatus,
    DoctorAssistantProfile,
    DoctorProfile,
    Hospital,
    HospitalAdminProfile,
    PatientProfile,
    Profile,
    UserRole,
    new_id,
)
from carelink.services.errors import ConflictError, UpstreamError

logger = logging.getLogger("carelink.store")


class ClinicStore(Protocol):
    async def create_account(
        self, email: str, hashed_password: str, user_metadata: dict[str, Any]
    ):
        ...

    async def get_account(self, account_id: str):
        ...

    async def get_account_by_email(self, email: str):
        ...

    async def list_accounts(self) -> list:
        ...

    async def record_sign_in(self, account_id: str) -> None:
        ...

    async def delete_account(self, account_id: str) -> bool:
        ...

    async def get_profile(self, profile_id: str):
        ...

    async def list_profiles(
        self,
        ids: Optional[Iterable[str]] = None,
        role: Optional[str] = None,
        approval_status: Optional[str] = None,
    ) -> list:
        ...

    async def insert_profile(self, profile_id: str, **fields: Any):
        ...

    async def update_profile(self, profile_id: str, **fields: Any) -> int:
        ...

    async def get_hospital(self, hospital_id: str):
        ...

    async def list_hospitals(
        self,
        status: Optional[str] = None,
        admin_profile_ids: Optional[Iterable[str]] = None,
        ids: Optional[Iterable[str]] = None,
    ) -> list:
        ...

    async def insert_hospital(self, **fields: Any):
        ...

    async def update_hospital_status(
        self,
        status: str,
        hospital_id: Optional[str] = None,
        admin_profile_id: Optional[str] = None,
    ) -> int:
        ...

    async def insert_hospital_admin_link(self, profile_id: str, hospital_id: str):
        ...

    async def get_doctor_profile(self, profile_id: str):
        ...

    async def list_doctor_profiles(
        self,
        hospital_ids: Optional[Iterable[str]] = None,
        approval_status: Optional[str] = None,
    ) -> list:
        ...

    async def insert_doctor_profile(self, profile_id: str, **fields: Any):
        ...

    async def update_doctor_approval(self, profile_id: str, status: str) -> int:
        ...

    async def get_assistant_link(self, profile_id: str):
        ...

    async def list_assistant_links(
        self,
        hospital_ids: Optional[Iterable[str]] = None,
        doctor_profile_id: Optional[str] = None,
        approval_status: Optional[str] = None,
    ) -> list:
        ...

    async def insert_assistant_link(self, profile_id: str, **fields: Any):
        ...

    async def update_assistant_approval(self, profile_id: str, status: str) -> int:
        ...

    async def list_patient_profiles(
        self,
        cnic: Optional[str] = None,
        hospital_id: Optional[str] = None,
        newest_first: bool = False,
    ) -> list:
        ...

    async def insert_patient_profile(self, **fields: Any):
        ...

    async def update_patient_profile(self, row_id: str, **fields: Any):
        ...


def _store_call(action: str):
    """Translate SQLAlchemy failures into service errors, rolling back first."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self: "SQLClinicStore", *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except IntegrityError as exc:
                await self.db.rollback()
                logger.warning("Store rejected %s: %s", action, exc.orig)
                raise ConflictError(f"Failed to {action}: duplicate entry") from exc
            except SQLAlchemyError as exc:
                await self.db.rollback()
                logger.exception("Store error during %s", action)
                raise UpstreamError(f"Failed to {action}") from exc

        return wrapper

    return decorator


class SQLClinicStore:
    """Clinic store backed by SQLAlchemy; each write commits on its own."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _detach(self, obj):
        """Hand rows out detached; a rollback after a later failed write must not expire them."""
        if obj is not None:
            self.db.expunge(obj)
        return obj

    def _detach_all(self, objs) -> list:
        return [self._detach(obj) for obj in objs]

    async def _insert(self, obj):
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return self._detach(obj)

    async def _update(self, statement) -> int:
        result = await self.db.execute(statement)
        await self.db.commit()
        return result.rowcount or 0

    @_store_call("create account")
    async def create_account(
        self, email: str, hashed_password: str, user_metadata: dict[str, Any]
    ) -> Account:
        return await self._insert(
            Account(
                id=new_id(),
                email=email,
                hashed_password=hashed_password,
                user_metadata=dict(user_metadata),
                is_active=True,
            )
        )

    @_store_call("fetch account")
    async def get_account(self, account_id: str) -> Optional[Account]:
        result = await self.db.execute(select(Account).where(Account.id == account_id))
        return self._detach(result.scalar_one_or_none())

    @_store_call("fetch account")
    async def get_account_by_email(self, email: str) -> Optional[Account]:
        result = await self.db.execute(select(Account).where(Account.email == email))
        return self._detach(result.scalar_one_or_none())

    @_store_call("list accounts")
    async def list_accounts(self) -> list[Account]:
        result = await self.db.execute(select(Account).order_by(Account.created_at))
        return self._detach_all(result.scalars().all())

    @_store_call("record sign-in")
    async def record_sign_in(self, account_id: str) -> None:
        await self._update(
            update(Account)
            .where(Account.id == account_id)
            .values(last_sign_in_at=datetime.now(timezone.utc))
        )

    @_store_call("delete account")
    async def delete_account(self, account_id: str) -> bool:
        # Role links, owned hospitals and patient rows follow the profile through FK cascades.
        await self.db.execute(delete(Profile).where(Profile.id == account_id))
        return await self._update(delete(Account).where(Account.id == account_id)) > 0

    @_store_call("fetch profile")
    async def get_profile(self, profile_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        return self._detach(result.scalar_one_or_none())

    @_store_call("fetch profiles")
    async def list_profiles(
        self,
        ids: Optional[Iterable[str]] = None,
        role: Optional[str] = None,
        approval_status: Optional[str] = None,
    ) -> list[Profile]:
        query = select(Profile)
        if ids is not None:
            ids = list(ids)
            if not ids:
                return []
            query = query.where(Profile.id.in_(ids))
        if role:
            query = query.where(Profile.role == role)
        if approval_status:
            query = query.where(Profile.approval_status == approval_status)
        result = await self.db.execute(query.order_by(Profile.created_at))
        return self._detach_all(result.scalars().all())

    @_store_call("create profile")
    async def insert_profile(self, profile_id: str, **fields: Any) -> Profile:
        return await self._insert(Profile(id=profile_id, **fields))

    @_store_call("update profile")
    async def update_profile(self, profile_id: str, **fields: Any) -> int:
        return await self._update(
            update(Profile).where(Profile.id == profile_id).values(**fields)
        )

    @_store_call("fetch hospital")
    async def get_hospital(self, hospital_id: str) -> Optional[Hospital]:
        result = await self.db.execute(select(Hospital).where(Hospital.id == hospital_id))
        return self._detach(result.scalar_one_or_none())

    @_store_call("fetch hospitals")
    async def list_hospitals(
        self,
        status: Optional[str] = None,
        admin_profile_ids: Optional[Iterable[str]] = None,
        ids: Optional[Iterable[str]] = None,
    ) -> list[Hospital]:
        query = select(Hospital)
        if status:
            query = query.where(Hospital.status == status)
        if admin_profile_ids is not None:
            admin_profile_ids = list(admin_profile_ids)
            if not admin_profile_ids:
                return []
            query = query.where(Hospital.admin_profile_id.in_(admin_profile_ids))
        if ids is not None:
            ids = list(ids)
            if not ids:
                return []
            query = query.where(Hospital.id.in_(ids))
        result = await self.db.execute(query.order_by(Hospital.name))
        return self._detach_all(result.scalars().all())

    @_store_call("create hospital")
    async def insert_hospital(self, **fields: Any) -> Hospital:
        return await self._insert(Hospital(id=new_id(), **fields))

    @_store_call("update hospital")
    async def update_hospital_status(
        self,
        status: str,
        hospital_id: Optional[str] = None,
        admin_profile_id: Optional[str] = None,
    ) -> int:
        if hospital_id is None and admin_profile_id is None:
            raise ValueError("hospital_id or admin_profile_id is required")
        statement = update(Hospital).values(status=status)
        if hospital_id is not None:
            statement = statement.where(Hospital.id == hospital_id)
        if admin_profile_id is not None:
            statement = statement.where(Hospital.admin_profile_id == admin_profile_id)
        return await self._update(statement)

    @_store_call("create hospital admin link")
    async def insert_hospital_admin_link(
        self, profile_id: str, hospital_id: str
    ) -> HospitalAdminProfile:
        return await self._insert(
            HospitalAdminProfile(profile_id=profile_id, hospital_id=hospital_id)
        )

    @_store_call("fetch doctor profile")
    async def get_doctor_profile(self, profile_id: str) -> Optional[DoctorProfile]:
        result = await self.db.execute(
            select(DoctorProfile).where(DoctorProfile.profile_id == profile_id)
        )
        return self._detach(result.scalar_one_or_none())

    @_store_call("fetch doctor profiles")
    async def list_doctor_profiles(
        self,
        hospital_ids: Optional[Iterable[str]] = None,
        approval_status: Optional[str] = None,
    ) -> list[DoctorProfile]:
        query = select(DoctorProfile)
        if hospital_ids is not None:
            hospital_ids = list(hospital_ids)
            if not hospital_ids:
                return []
            query = query.where(DoctorProfile.hospital_id.in_(hospital_ids))
        if approval_status:
            query = query.where(DoctorProfile.approval_status == approval_status)
        result = await self.db.execute(query.order_by(DoctorProfile.created_at))
        return self._detach_all(result.scalars().all())

    @_store_call("create doctor profile")
    async def insert_doctor_profile(self, profile_id: str, **fields: Any) -> DoctorProfile:
        return await self._insert(DoctorProfile(profile_id=profile_id, **fields))

    @_store_call("update doctor profile")
    async def update_doctor_approval(self, profile_id: str, status: str) -> int:
        return await self._update(
            update(DoctorProfile)
            .where(DoctorProfile.profile_id == profile_id)
            .values(approval_status=status)
        )

    @_store_call("fetch assistant link")
    async def get_assistant_link(self, profile_id: str) -> Optional[DoctorAssistantProfile]:
        result = await self.db.execute(
            select(DoctorAssistantProfile).where(
                DoctorAssistantProfile.profile_id == profile_id
            )
        )
        return self._detach(result.scalar_one_or_none())

    @_store_call("fetch assistant links")
    async def list_assistant_links(
        self,
        hospital_ids: Optional[Iterable[str]] = None,
        doctor_profile_id: Optional[str] = None,
        approval_status: Optional[str] = None,
    ) -> list[DoctorAssistantProfile]:
        query = select(DoctorAssistantProfile)
        if hospital_ids is not None:
            hospital_ids = list(hospital_ids)
            if not hospital_ids:
                return []
            query = query.where(DoctorAssistantProfile.hospital_id.in_(hospital_ids))
        if doctor_profile_id:
            query = query.where(DoctorAssistantProfile.doctor_profile_id == doctor_profile_id)
        if approval_status:
            query = query.where(DoctorAssistantProfile.approval_status == approval_status)
        result = await self.db.execute(query.order_by(DoctorAssistantProfile.created_at))
        return self._detach_all(result.scalars().all())

    @_store_call("create assistant link")
    async def insert_assistant_link(
        self, profile_id: str, **fields: Any
    ) -> DoctorAssistantProfile:
        return await self._insert(DoctorAssistantProfile(profile_id=profile_id, **fields))

    @_store_call("update assistant link")
    async def update_assistant_approval(self, profile_id: str, status: str) -> int:
        return await self._update(
            update(DoctorAssistantProfile)
            .where(DoctorAssistantProfile.profile_id == profile_id)
            .values(approval_status=status)
        )

    @_store_call("fetch patient profiles")
    async def list_patient_profiles(
        self,
        cnic: Optional[str] = None,
        hospital_id: Optional[str] = None,
        newest_first: bool = False,
    ) -> list[PatientProfile]:
        query = select(PatientProfile)
        if cnic is not None:
            query = query.where(PatientProfile.cnic == cnic)
        if hospital_id is not None:
            query = query.where(PatientProfile.hospital_id == hospital_id)
        if newest_first:
            query = query.order_by(PatientProfile.created_at.desc())
        else:
            query = query.order_by(PatientProfile.created_at, PatientProfile.id)
        result = await self.db.execute(query)
        return self._detach_all(result.scalars().all())

    @_store_call("create patient profile")
    async def insert_patient_profile(self, **fields: Any) -> PatientProfile:
        return await self._insert(PatientProfile(id=new_id(), **fields))

    @_store_call("update patient profile")
    async def update_patient_profile(self, row_id: str, **fields: Any) -> Optional[PatientProfile]:
        await self._update(
            update(PatientProfile).where(PatientProfile.id == row_id).values(**fields)
        )
        result = await self.db.execute(
            select(PatientProfile)
            .where(PatientProfile.id == row_id)
            .execution_options(populate_existing=True)
        )
        return self._detach(result.scalar_one_or_none())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class InMemoryAccount:
    id: str
    email: str
    hashed_password: str
    user_metadata: dict[str, Any]
    is_active: bool = True
    last_sign_in_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class InMemoryProfile:
    id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[date] = None
    role: str = UserRole.patient.value
    approval_status: str = ApprovalStatus.pending.value
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class InMemoryHospital:
    id: str
    name: str
    address: Optional[str] = None
    hospital_type: Optional[str] = None
    admin_profile_id: Optional[str] = None
    status: str = ApprovalStatus.pending.value
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class InMemoryHospitalAdminLink:
    profile_id: str
    hospital_id: str
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class InMemoryDoctorProfile:
    profile_id: str
    specialization: Optional[str] = None
    hospital_id: Optional[str] = None
    license_number: Optional[str] = None
    cnic: Optional[str] = None
    approval_status: str = ApprovalStatus.pending.value
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class InMemoryAssistantLink:
    profile_id: str
    doctor_profile_id: str
    hospital_id: Optional[str] = None
    approval_status: str = ApprovalStatus.pending.value
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class InMemoryPatientProfile:
    id: str
    profile_id: str
    cnic: str
    hospital_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


def _apply(row, fields: dict[str, Any]) -> None:
    for name, value in fields.items():
        setattr(row, name, value)
    row.updated_at = _utcnow()


def _in(values: Optional[Iterable[str]]) -> Optional[set]:
    return None if values is None else set(values)


class InMemoryClinicStore:
    """In-memory clinic store for tests and local demos."""

    def __init__(self):
        self.accounts: dict[str, InMemoryAccount] = {}
        self.profiles: dict[str, InMemoryProfile] = {}
        self.hospitals: dict[str, InMemoryHospital] = {}
        self.hospital_admin_links: dict[str, InMemoryHospitalAdminLink] = {}
        self.doctor_profiles: dict[str, InMemoryDoctorProfile] = {}
        self.assistant_links: dict[str, InMemoryAssistantLink] = {}
        self.patient_profiles: dict[str, InMemoryPatientProfile] = {}

    async def create_account(
        self, email: str, hashed_password: str, user_metadata: dict[str, Any]
    ) -> InMemoryAccount:
        if any(a.email == email for a in self.accounts.values()):
            raise ConflictError("Failed to create account: duplicate entry")
        account = InMemoryAccount(
            id=new_id(),
            email=email,
            hashed_password=hashed_password,
            user_metadata=dict(user_metadata),
        )
        self.accounts[account.id] = account
        return account

    async def get_account(self, account_id: str) -> Optional[InMemoryAccount]:
        return self.accounts.get(account_id)

    async def get_account_by_email(self, email: str) -> Optional[InMemoryAccount]:
        for account in self.accounts.values():
            if account.email == email:
                return account
        return None

    async def list_accounts(self) -> list[InMemoryAccount]:
        return list(self.accounts.values())

    async def record_sign_in(self, account_id: str) -> None:
        account = self.accounts.get(account_id)
        if account:
            account.last_sign_in_at = _utcnow()

    async def delete_account(self, account_id: str) -> bool:
        if self.accounts.pop(account_id, None) is None:
            return False
        self.profiles.pop(account_id, None)
        self.hospital_admin_links.pop(account_id, None)
        self.assistant_links.pop(account_id, None)
        if self.doctor_profiles.pop(account_id, None) is not None:
            for link_id, link in list(self.assistant_links.items()):
                if link.doctor_profile_id == account_id:
                    del self.assistant_links[link_id]
        for row_id, row in list(self.patient_profiles.items()):
            if row.profile_id == account_id:
                del self.patient_profiles[row_id]
            elif row.created_by == account_id:
                row.created_by = None
        for hospital_id, hospital in list(self.hospitals.items()):
            if hospital.admin_profile_id == account_id:
                self._drop_hospital(hospital_id)
        return True

    def _drop_hospital(self, hospital_id: str) -> None:
        del self.hospitals[hospital_id]
        for profile_id, link in list(self.hospital_admin_links.items()):
            if link.hospital_id == hospital_id:
                del self.hospital_admin_links[profile_id]
        for row_id, row in list(self.patient_profiles.items()):
            if row.hospital_id == hospital_id:
                del self.patient_profiles[row_id]
        for doctor in self.doctor_profiles.values():
            if doctor.hospital_id == hospital_id:
                doctor.hospital_id = None
        for link in self.assistant_links.values():
            if link.hospital_id == hospital_id:
                link.hospital_id = None

    async def get_profile(self, profile_id: str) -> Optional[InMemoryProfile]:
        return self.profiles.get(profile_id)

    async def list_profiles(
        self,
        ids: Optional[Iterable[str]] = None,
        role: Optional[str] = None,
        approval_status: Optional[str] = None,
    ) -> list[InMemoryProfile]:
        wanted = _in(ids)
        return [
            p
            for p in self.profiles.values()
            if (wanted is None or p.id in wanted)
            and (not role or p.role == role)
            and (not approval_status or p.approval_status == approval_status)
        ]

    async def insert_profile(self, profile_id: str, **fields: Any) -> InMemoryProfile:
        if profile_id in self.profiles:
            raise ConflictError("Failed to create profile: duplicate entry")
        profile = InMemoryProfile(id=profile_id, **fields)
        self.profiles[profile_id] = profile
        return profile

    async def update_profile(self, profile_id: str, **fields: Any) -> int:
        profile = self.profiles.get(profile_id)
        if profile is None:
            return 0
        _apply(profile, fields)
        return 1

    async def get_hospital(self, hospital_id: str) -> Optional[InMemoryHospital]:
        return self.hospitals.get(hospital_id)

    async def list_hospitals(
        self,
        status: Optional[str] = None,
        admin_profile_ids: Optional[Iterable[str]] = None,
        ids: Optional[Iterable[str]] = None,
    ) -> list[InMemoryHospital]:
        admins = _in(admin_profile_ids)
        wanted = _in(ids)
        hospitals = [
            h
            for h in self.hospitals.values()
            if (not status or h.status == status)
            and (admins is None or h.admin_profile_id in admins)
            and (wanted is None or h.id in wanted)
        ]
        return sorted(hospitals, key=lambda h: h.name)

    async def insert_hospital(self, **fields: Any) -> InMemoryHospital:
        hospital = InMemoryHospital(id=new_id(), **fields)
        self.hospitals[hospital.id] = hospital
        return hospital

    async def update_hospital_status(
        self,
        status: str,
        hospital_id: Optional[str] = None,
        admin_profile_id: Optional[str] = None,
    ) -> int:
        if hospital_id is None and admin_profile_id is None:
            raise ValueError("hospital_id or admin_profile_id is required")
        count = 0
        for hospital in self.hospitals.values():
            if hospital_id is not None and hospital.id != hospital_id:
                continue
            if admin_profile_id is not None and hospital.admin_profile_id != admin_profile_id:
                continue
            _apply(hospital, {"status": status})
            count += 1
        return count

    async def insert_hospital_admin_link(
        self, profile_id: str, hospital_id: str
    ) -> InMemoryHospitalAdminLink:
        link = InMemoryHospitalAdminLink(profile_id=profile_id, hospital_id=hospital_id)
        self.hospital_admin_links[profile_id] = link
        return link

    async def get_doctor_profile(self, profile_id: str) -> Optional[InMemoryDoctorProfile]:
        return self.doctor_profiles.get(profile_id)

    async def list_doctor_profiles(
        self,
        hospital_ids: Optional[Iterable[str]] = None,
        approval_status: Optional[str] = None,
    ) -> list[InMemoryDoctorProfile]:
        hospitals = _in(hospital_ids)
        return [
            d
            for d in self.doctor_profiles.values()
            if (hospitals is None or d.hospital_id in hospitals)
            and (not approval_status or d.approval_status == approval_status)
        ]

    async def insert_doctor_profile(self, profile_id: str, **fields: Any) -> InMemoryDoctorProfile:
        doctor = InMemoryDoctorProfile(profile_id=profile_id, **fields)
        self.doctor_profiles[profile_id] = doctor
        return doctor

    async def update_doctor_approval(self, profile_id: str, status: str) -> int:
        doctor = self.doctor_profiles.get(profile_id)
        if doctor is None:
            return 0
        _apply(doctor, {"approval_status": status})
        return 1

    async def get_assistant_link(self, profile_id: str) -> Optional[InMemoryAssistantLink]:
        return self.assistant_links.get(profile_id)

    async def list_assistant_links(
        self,
        hospital_ids: Optional[Iterable[str]] = None,
        doctor_profile_id: Optional[str] = None,
        approval_status: Optional[str] = None,
    ) -> list[InMemoryAssistantLink]:
        hospitals = _in(hospital_ids)
        return [
            a
            for a in self.assistant_links.values()
            if (hospitals is None or a.hospital_id in hospitals)
            and (not doctor_profile_id or a.doctor_profile_id == doctor_profile_id)
            and (not approval_status or a.approval_status == approval_status)
        ]

    async def insert_assistant_link(self, profile_id: str, **fields: Any) -> InMemoryAssistantLink:
        link = InMemoryAssistantLink(profile_id=profile_id, **fields)
        self.assistant_links[profile_id] = link
        return link

    async def update_assistant_approval(self, profile_id: str, status: str) -> int:
        link = self.assistant_links.get(profile_id)
        if link is None:
            return 0
        _apply(link, {"approval_status": status})
        return 1

    async def list_patient_profiles(
        self,
        cnic: Optional[str] = None,
        hospital_id: Optional[str] = None,
        newest_first: bool = False,
    ) -> list[InMemoryPatientProfile]:
        rows = [
            r
            for r in self.patient_profiles.values()
            if (cnic is None or r.cnic == cnic)
            and (hospital_id is None or r.hospital_id == hospital_id)
        ]
        rows.sort(key=lambda r: r.created_at)
        if newest_first:
            # Equal timestamps keep insertion order, so reverse after the stable sort.
            rows.reverse()
        return rows

    def _check_unique(self, cnic: str, hospital_id: Optional[str], row_id: Optional[str] = None):
        # NULL hospital ids never collide, as in a SQL unique constraint.
        if hospital_id is None:
            return
        for row in self.patient_profiles.values():
            if row.id != row_id and row.cnic == cnic and row.hospital_id == hospital_id:
                raise ConflictError("Failed to create patient profile: duplicate entry")

    async def insert_patient_profile(self, **fields: Any) -> InMemoryPatientProfile:
        self._check_unique(fields["cnic"], fields.get("hospital_id"))
        row = InMemoryPatientProfile(id=new_id(), **fields)
        self.patient_profiles[row.id] = row
        return row

    async def update_patient_profile(self, row_id: str, **fields: Any) -> Optional[InMemoryPatientProfile]:
        row = self.patient_profiles.get(row_id)
        if row is None:
            return None
        self._check_unique(
            fields.get("cnic", row.cnic), fields.get("hospital_id", row.hospital_id), row_id
        )
        _apply(row, fields)
        return row
