import pytest

from carelink.models import UserRole
from carelink.services.errors import ConflictError
from carelink.services.identity import verify_password
from scripts.create_superadmin import create_superadmin


@pytest.mark.anyio
async def test_creates_approved_super_admin(store):
    account = await create_superadmin(
        store, email="root@example.com", password="password123", full_name="Root"
    )

    profile = store.profiles[account.id]
    assert profile.role == "super_admin"
    assert profile.approval_status == "approved"
    assert verify_password("password123", store.accounts[account.id].hashed_password)


@pytest.mark.anyio
async def test_short_password_is_rejected(store):
    with pytest.raises(ValueError, match="at least 8"):
        await create_superadmin(store, email="root@example.com", password="short", full_name="Root")
    assert store.accounts == {}


@pytest.mark.anyio
async def test_existing_email_needs_promote(store, seed):
    doctor = seed.account("doc@example.com", UserRole.doctor)

    with pytest.raises(ConflictError):
        await create_superadmin(
            store, email="doc@example.com", password="password123", full_name="Doc"
        )

    account = await create_superadmin(
        store, email="doc@example.com", password="password123", full_name="Doc", promote=True
    )

    assert account.id == doctor.id
    assert store.profiles[doctor.id].role == "super_admin"


@pytest.mark.anyio
async def test_promote_creates_missing_profile(store, seed):
    orphan = seed.account("orphan@example.com", UserRole.patient)
    del store.profiles[orphan.id]

    await create_superadmin(
        store, email="orphan@example.com", password="password123", full_name="Orphan", promote=True
    )

    assert store.profiles[orphan.id].role == "super_admin"
    assert store.profiles[orphan.id].full_name == "Orphan"
