"""Identity provider: accounts, password hashing and bearer tokens."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from jose import JWTError, jwt
from passlib.context import CryptContext

from carelink.config import settings
from carelink.services.errors import AuthenticationError, ConflictError, PermissionDeniedError
from carelink.services.store import ClinicStore

logger = logging.getLogger("carelink.identity")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using PBKDF2-SHA256."""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_token_expire_days)
    to_encode.update({"exp": expire, "type": "refresh", "jti": secrets.token_urlsafe(16)})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _decode(token: str, expected_type: str) -> str:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError("Invalid token") from exc
    account_id: str | None = payload.get("sub")
    if account_id is None or payload.get("type") != expected_type:
        raise AuthenticationError("Invalid token")
    return account_id


@dataclass
class Session:
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int


class IdentityProvider(Protocol):
    async def create_account(self, email: str, password: str, metadata: dict[str, Any]):
        ...

    async def sign_in(self, email: str, password: str) -> tuple[Any, Session]:
        ...

    async def refresh(self, refresh_token: str) -> tuple[Any, Session]:
        ...

    async def resolve(self, token: str):
        ...

    async def delete_account(self, account_id: str) -> bool:
        ...


class LocalIdentityProvider:
    """Identity provider backed by the accounts table of the clinic store."""

    def __init__(self, store: ClinicStore):
        self.store = store

    @staticmethod
    def issue_session(account_id: str) -> Session:
        access_token = create_access_token(
            data={"sub": account_id},
            expires_delta=timedelta(minutes=settings.jwt_access_token_expire_minutes),
        )
        return Session(
            access_token=access_token,
            refresh_token=create_refresh_token(data={"sub": account_id}),
            token_type="bearer",
            expires_in=settings.jwt_access_token_expire_minutes * 60,
        )

    async def create_account(self, email: str, password: str, metadata: dict[str, Any]):
        if await self.store.get_account_by_email(email):
            raise ConflictError("Email already registered")
        try:
            return await self.store.create_account(
                email=email,
                hashed_password=get_password_hash(password),
                user_metadata=metadata,
            )
        except ConflictError as exc:
            raise ConflictError("Email already registered") from exc

    async def sign_in(self, email: str, password: str):
        account = await self.store.get_account_by_email(email)
        if not account or not verify_password(password, account.hashed_password):
            raise AuthenticationError("Incorrect email or password")
        if not account.is_active:
            raise PermissionDeniedError("User account is inactive")
        await self.store.record_sign_in(account.id)
        logger.info("Account %s signed in", account.id)
        return account, self.issue_session(account.id)

    async def refresh(self, refresh_token: str):
        account_id = _decode(refresh_token, "refresh")
        account = await self.store.get_account(account_id)
        if not account or not account.is_active:
            raise AuthenticationError("Invalid refresh token")
        return account, self.issue_session(account.id)

    async def resolve(self, token: str):
        account_id = _decode(token, "access")
        account = await self.store.get_account(account_id)
        if account is None:
            raise AuthenticationError("Invalid token")
        if not account.is_active:
            raise PermissionDeniedError("User account is inactive")
        return account

    async def delete_account(self, account_id: str) -> bool:
        deleted = await self.store.delete_account(account_id)
        if deleted:
            logger.info("Deleted account %s and its dependent records", account_id)
        return deleted
