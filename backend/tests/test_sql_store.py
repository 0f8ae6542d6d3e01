"""SQLClinicStore against a real session on in-memory SQLite."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from carelink.models import ApprovalStatus, Base, UserRole, new_id
from carelink.schemas.patient import PatientCreate
from carelink.services.errors import UpstreamError
from carelink.services.reconciliation import PatientReconciler, ReconciliationStatus
from carelink.services.store import SQLClinicStore
from carelink.services.workflow import ApprovalWorkflow, EntityRef, Gate, OutcomeStatus

CNIC = "35202-1234567-3"


@pytest.fixture()
async def sql_engine(anyio_backend):
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def sql_store(sql_engine):
    async with async_sessionmaker(sql_engine, expire_on_commit=False)() as session:
        yield SQLClinicStore(session)


@contextmanager
def failing_statements(engine, prefix):
    """Make every statement starting with ``prefix`` fail like a locked database."""

    def _fail(_conn, _cursor, statement, _parameters, _context, _executemany):
        if statement.lstrip().upper().startswith(prefix):
            raise sqlite3.OperationalError("database is locked")

    event.listen(engine.sync_engine, "before_cursor_execute", _fail)
    try:
        yield
    finally:
        event.remove(engine.sync_engine, "before_cursor_execute", _fail)


async def _person(store, name, role, status=ApprovalStatus.approved):
    return await store.insert_profile(
        new_id(), full_name=name, role=role.value, approval_status=status.value
    )


async def _hospital_with_assistant(store, name):
    admin = await _person(store, f"{name} Admin", UserRole.hospital_admin)
    hospital = await store.insert_hospital(
        name=name, admin_profile_id=admin.id, status=ApprovalStatus.approved.value
    )
    await store.insert_hospital_admin_link(admin.id, hospital.id)
    doctor = await _person(store, f"{name} Doctor", UserRole.doctor)
    await store.insert_doctor_profile(
        doctor.id, hospital_id=hospital.id, approval_status=ApprovalStatus.approved.value
    )
    assistant = await _person(store, f"{name} Assistant", UserRole.doctor_assistant)
    await store.insert_assistant_link(
        assistant.id,
        doctor_profile_id=doctor.id,
        hospital_id=hospital.id,
        approval_status=ApprovalStatus.approved.value,
    )
    return {"admin": admin, "hospital": hospital, "doctor": doctor, "assistant": assistant}


@pytest.mark.anyio
async def test_reconciliation_lifecycle(sql_store):
    first = await _hospital_with_assistant(sql_store, "First Hospital")
    second = await _hospital_with_assistant(sql_store, "Second Hospital")
    reconciler = PatientReconciler(sql_store)
    data = PatientCreate(full_name="Ali Khan", cnic=CNIC)

    created = await reconciler.register_patient(first["assistant"].id, data)
    again = await reconciler.register_patient(first["assistant"].id, data)
    linked = await reconciler.register_patient(second["assistant"].id, data)

    assert created.status is ReconciliationStatus.created
    assert again.status is ReconciliationStatus.already_exists
    assert again.patient.id == created.patient.id
    assert linked.status is ReconciliationStatus.linked
    assert linked.patient.id == created.patient.id
    assert linked.patient.hospital_id == second["hospital"].id
    assert linked.patient.created_at == created.patient.created_at
    rows = await sql_store.list_patient_profiles(cnic=CNIC)
    assert [r.hospital_id for r in rows] == [second["hospital"].id]


@pytest.mark.anyio
async def test_relink_survives_failed_demographic_refresh(sql_engine, sql_store, caplog):
    first = await _hospital_with_assistant(sql_store, "First Hospital")
    second = await _hospital_with_assistant(sql_store, "Second Hospital")
    reconciler = PatientReconciler(sql_store)
    created = await reconciler.register_patient(
        first["assistant"].id, PatientCreate(full_name="Ali Khan", cnic=CNIC)
    )

    with failing_statements(sql_engine, "UPDATE PROFILES"):
        with caplog.at_level(logging.WARNING, logger="carelink.reconciliation"):
            result = await reconciler.register_patient(
                second["assistant"].id,
                PatientCreate(full_name="Ali Khan", cnic=CNIC, phone="0321-7654321"),
            )

    assert result.status is ReconciliationStatus.linked
    assert result.patient.hospital_id == second["hospital"].id
    assert result.patient.phone is None
    assert f"Demographic refresh of patient {created.patient.id} failed" in caplog.text
    profile = await sql_store.get_profile(created.patient.id)
    assert profile.phone is None


@pytest.mark.anyio
async def test_demographic_refresh_is_persisted(sql_store):
    first = await _hospital_with_assistant(sql_store, "First Hospital")
    reconciler = PatientReconciler(sql_store)
    created = await reconciler.register_patient(
        first["assistant"].id, PatientCreate(full_name="Ali Khan", cnic=CNIC)
    )

    result = await reconciler.register_patient(
        first["assistant"].id,
        PatientCreate(full_name="Ali Khan", cnic=CNIC, phone="0321-7654321", gender="male"),
    )

    assert result.status is ReconciliationStatus.already_exists
    assert result.patient.phone == "0321-7654321"
    profile = await sql_store.get_profile(created.patient.id)
    assert (profile.phone, profile.gender) == ("0321-7654321", "male")


@pytest.mark.anyio
async def test_doctor_approval_partial_failure_then_retry(sql_engine, sql_store):
    clinic = await _hospital_with_assistant(sql_store, "City Hospital")
    doctor = await _person(sql_store, "New Doctor", UserRole.doctor, ApprovalStatus.pending)
    await sql_store.insert_doctor_profile(doctor.id, hospital_id=clinic["hospital"].id)
    workflow = ApprovalWorkflow(sql_store)
    ref = EntityRef(Gate.doctor, doctor.id)

    with failing_statements(sql_engine, "UPDATE PROFILES"):
        first = await workflow.set_approval_state(ref, ApprovalStatus.approved, clinic["admin"].id)

    assert first.status is OutcomeStatus.partially_updated
    assert first.applied == ["doctor_profile"]
    assert (await sql_store.get_doctor_profile(doctor.id)).approval_status == "approved"
    assert (await sql_store.get_profile(doctor.id)).approval_status == "pending"

    second = await workflow.set_approval_state(ref, ApprovalStatus.approved, clinic["admin"].id)

    assert second.ok
    assert (await sql_store.get_profile(doctor.id)).approval_status == "approved"


@pytest.mark.anyio
async def test_failed_update_is_reported_as_upstream_error(sql_engine, sql_store):
    profile = await _person(sql_store, "Ali Khan", UserRole.patient)

    with failing_statements(sql_engine, "UPDATE PROFILES"):
        with pytest.raises(UpstreamError, match="Failed to update profile"):
            await sql_store.update_profile(profile.id, phone="0300-1")

    assert profile.full_name == "Ali Khan"
    assert await sql_store.update_profile(profile.id, phone="0300-1") == 1


@pytest.mark.anyio
async def test_patient_rows_filter_by_hospital_newest_first(sql_store):
    first = await _hospital_with_assistant(sql_store, "First Hospital")
    second = await _hospital_with_assistant(sql_store, "Second Hospital")
    for index, hospital in enumerate([first, first, second]):
        patient = await _person(sql_store, f"Patient {index}", UserRole.patient)
        await sql_store.insert_patient_profile(
            profile_id=patient.id,
            cnic=f"cnic-{index}",
            hospital_id=hospital["hospital"].id,
            created_at=datetime(2024, 1, 1 + index),
        )

    rows = await sql_store.list_patient_profiles(
        hospital_id=first["hospital"].id, newest_first=True
    )

    assert [r.cnic for r in rows] == ["cnic-1", "cnic-0"]


@pytest.mark.anyio
async def test_delete_account_cascades_to_owned_rows(sql_store):
    account = await sql_store.create_account(
        "admin@example.com", "hash", {"full_name": "Admin", "role": "hospital_admin"}
    )
    await sql_store.insert_profile(
        account.id, full_name="Admin", role=UserRole.hospital_admin.value
    )
    hospital = await sql_store.insert_hospital(name="City Hospital", admin_profile_id=account.id)
    await sql_store.insert_hospital_admin_link(account.id, hospital.id)

    assert await sql_store.delete_account(account.id) is True

    assert await sql_store.get_account(account.id) is None
    assert await sql_store.get_profile(account.id) is None
    assert await sql_store.get_hospital(hospital.id) is None
    assert await sql_store.delete_account(account.id) is False
