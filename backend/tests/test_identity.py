from datetime import timedelta

import pytest

from carelink.services.errors import AuthenticationError, ConflictError, PermissionDeniedError
from carelink.services.identity import (
    LocalIdentityProvider,
    create_access_token,
    get_password_hash,
    verify_password,
)
from conftest import PASSWORD


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret-pass")

    assert hashed != "secret-pass"
    assert verify_password("secret-pass", hashed)
    assert not verify_password("other-pass", hashed)


@pytest.mark.anyio
async def test_create_account_rejects_duplicate_email(store):
    identity = LocalIdentityProvider(store)
    await identity.create_account("a@example.com", PASSWORD, {"role": "doctor"})

    with pytest.raises(ConflictError, match="Email already registered"):
        await identity.create_account("a@example.com", PASSWORD, {})


@pytest.mark.anyio
async def test_sign_in_and_resolve(store):
    identity = LocalIdentityProvider(store)
    created = await identity.create_account("a@example.com", PASSWORD, {})

    account, session = await identity.sign_in("a@example.com", PASSWORD)
    resolved = await identity.resolve(session.access_token)

    assert account.id == created.id == resolved.id
    assert session.token_type == "bearer"


@pytest.mark.anyio
async def test_inactive_account_cannot_sign_in(store):
    identity = LocalIdentityProvider(store)
    created = await identity.create_account("a@example.com", PASSWORD, {})
    store.accounts[created.id].is_active = False

    with pytest.raises(PermissionDeniedError):
        await identity.sign_in("a@example.com", PASSWORD)


@pytest.mark.anyio
async def test_expired_token_is_rejected(store):
    identity = LocalIdentityProvider(store)
    created = await identity.create_account("a@example.com", PASSWORD, {})
    token = create_access_token({"sub": created.id}, expires_delta=timedelta(seconds=-5))

    with pytest.raises(AuthenticationError):
        await identity.resolve(token)


@pytest.mark.anyio
async def test_garbage_token_is_rejected(store):
    with pytest.raises(AuthenticationError, match="Invalid token"):
        await LocalIdentityProvider(store).resolve("not-a-jwt")


@pytest.mark.anyio
async def test_refresh_rejects_access_tokens(store):
    identity = LocalIdentityProvider(store)
    created = await identity.create_account("a@example.com", PASSWORD, {})

    with pytest.raises(AuthenticationError):
        await identity.refresh(LocalIdentityProvider.issue_session(created.id).access_token)
