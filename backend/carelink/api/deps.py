"""Shared API dependencies."""

import asyncio
import time
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from carelink.config import settings
from carelink.database import get_db
from carelink.logging import actor_id_var
from carelink.models import ApprovalStatus, UserRole
from carelink.services.errors import AuthenticationError, PermissionDeniedError
from carelink.services.identity import LocalIdentityProvider
from carelink.services.reconciliation import PatientReconciler
from carelink.services.registration import RegistrationService
from carelink.services.store import ClinicStore, SQLClinicStore
from carelink.services.workflow import ApprovalWorkflow

security = HTTPBearer(auto_error=False)

_auth_rate_limit: dict[str, tuple[int, float]] = {}
_auth_rate_limit_lock = asyncio.Lock()


async def get_store(db: Annotated[AsyncSession, Depends(get_db)]) -> ClinicStore:
    """Relational store for the request; tests override this dependency."""
    return SQLClinicStore(db)


def get_identity(store: Annotated[ClinicStore, Depends(get_store)]) -> LocalIdentityProvider:
    return LocalIdentityProvider(store)


def get_registration(
    store: Annotated[ClinicStore, Depends(get_store)],
    identity: Annotated[LocalIdentityProvider, Depends(get_identity)],
) -> RegistrationService:
    return RegistrationService(store, identity)


def get_workflow(store: Annotated[ClinicStore, Depends(get_store)]) -> ApprovalWorkflow:
    return ApprovalWorkflow(store)


def get_reconciler(store: Annotated[ClinicStore, Depends(get_store)]) -> PatientReconciler:
    return PatientReconciler(store)


@dataclass
class RequestContext:
    """The authenticated caller: identity-provider account and its profile."""

    account: Any
    profile: Any

    @property
    def profile_id(self) -> str:
        return self.profile.id

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def approved(self) -> bool:
        return self.profile.approval_status == ApprovalStatus.approved


async def get_current_account(
    identity: Annotated[LocalIdentityProvider, Depends(get_identity)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
):
    """Resolve the bearer token to an account, without requiring a profile."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing or invalid token")
    return await identity.resolve(credentials.credentials)


async def get_request_context(
    account: Annotated[Any, Depends(get_current_account)],
    store: Annotated[ClinicStore, Depends(get_store)],
) -> RequestContext:
    profile = await store.get_profile(account.id)
    if profile is None:
        raise PermissionDeniedError("Profile not found")
    actor_id_var.set(profile.id)
    return RequestContext(account=account, profile=profile)


def require_role(*roles: UserRole):
    """Allow callers whose profile has one of ``roles``, approved or not."""
    allowed = {UserRole(r).value for r in roles}

    async def dependency(
        ctx: Annotated[RequestContext, Depends(get_request_context)],
    ) -> RequestContext:
        if ctx.role not in allowed:
            raise PermissionDeniedError("Forbidden")
        return ctx

    return dependency


def require_approved_role(*roles: UserRole):
    """Like ``require_role`` but the profile must also be approved."""
    check_role = require_role(*roles)

    async def dependency(
        ctx: Annotated[RequestContext, Depends(check_role)],
    ) -> RequestContext:
        if not ctx.approved:
            raise PermissionDeniedError("Account is pending approval. Please wait.")
        return ctx

    return dependency


async def rate_limit_auth(request: Request) -> None:
    """Basic in-memory rate limiter for auth endpoints."""
    window = settings.auth_rate_limit_window_seconds
    max_requests = settings.auth_rate_limit_max_requests
    client_ip = request.client.host if request.client else "unknown"
    now = time.monotonic()

    async with _auth_rate_limit_lock:
        count, reset_at = _auth_rate_limit.get(client_ip, (0, now + window))
        if now > reset_at:
            count = 0
            reset_at = now + window
        count += 1
        _auth_rate_limit[client_ip] = (count, reset_at)

        if count > max_requests:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
            )
