import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from carelink.models import ApprovalStatus, UserRole
from carelink.services.errors import ConflictError, UpstreamError
from carelink.services.store import SQLClinicStore


class FakeDB:
    """Session double whose commit fails with a chosen SQLAlchemy error."""

    def __init__(self, error):
        self.error = error
        self.added = []
        self.rolled_back = 0

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        raise self.error

    async def rollback(self):
        self.rolled_back += 1

    async def refresh(self, _obj):
        return None


@pytest.mark.anyio
async def test_sql_store_maps_integrity_error_to_conflict():
    db = FakeDB(IntegrityError("INSERT", {}, Exception("duplicate key")))

    with pytest.raises(ConflictError, match="duplicate entry"):
        await SQLClinicStore(db).insert_patient_profile(
            profile_id="p", cnic="111-1-1", hospital_id="h"
        )

    assert db.rolled_back == 1
    assert db.added[0].cnic == "111-1-1"


@pytest.mark.anyio
async def test_sql_store_maps_other_errors_to_upstream():
    db = FakeDB(OperationalError("INSERT", {}, Exception("connection reset")))

    with pytest.raises(UpstreamError, match="Failed to create hospital"):
        await SQLClinicStore(db).insert_hospital(name="City Hospital", status="pending")

    assert db.rolled_back == 1


@pytest.mark.anyio
async def test_in_memory_store_enforces_cnic_per_hospital(store):
    await store.insert_patient_profile(profile_id="p1", cnic="111-1-1", hospital_id="h1")
    other = await store.insert_patient_profile(profile_id="p1", cnic="111-1-1", hospital_id="h2")

    with pytest.raises(ConflictError):
        await store.insert_patient_profile(profile_id="p2", cnic="111-1-1", hospital_id="h1")
    with pytest.raises(ConflictError):
        await store.update_patient_profile(other.id, hospital_id="h1")


@pytest.mark.anyio
async def test_in_memory_store_allows_repeated_cnic_without_hospital(store):
    first = await store.insert_patient_profile(profile_id="p1", cnic="111-1-1", hospital_id=None)
    second = await store.insert_patient_profile(profile_id="p2", cnic="111-1-1", hospital_id=None)
    linked = await store.insert_patient_profile(profile_id="p3", cnic="111-1-1", hospital_id="h1")

    await store.update_patient_profile(linked.id, hospital_id=None)

    assert first.id != second.id
    assert len(await store.list_patient_profiles(cnic="111-1-1")) == 3


@pytest.mark.anyio
async def test_in_memory_delete_account_cascades(store, seed):
    admin, hospital = seed.hospital_admin("admin@example.com", "City Hospital")
    doctor = seed.doctor("doc@example.com", hospital)
    assistant = seed.assistant("asst@example.com", doctor)
    patient = await store.insert_patient_profile(
        profile_id="patient-1", cnic="111-1-1", hospital_id=hospital.id, created_by=assistant.id
    )

    assert await store.delete_account(assistant.id) is True
    assert store.patient_profiles[patient.id].created_by is None

    assert await store.delete_account(doctor.id) is True
    assert doctor.id not in store.doctor_profiles

    assert await store.delete_account(admin.id) is True
    assert hospital.id not in store.hospitals
    assert admin.id not in store.hospital_admin_links
    assert patient.id not in store.patient_profiles

    assert await store.delete_account(admin.id) is False


@pytest.mark.anyio
async def test_in_memory_profile_filters(store, seed):
    pending = seed.account("p@example.com", UserRole.doctor, ApprovalStatus.pending)
    seed.account("a@example.com", UserRole.doctor)

    profiles = await store.list_profiles(approval_status="pending")

    assert [p.id for p in profiles] == [pending.id]
    assert await store.list_profiles(ids=[]) == []
