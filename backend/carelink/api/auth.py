from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from carelink.api.deps import (
    get_current_account,
    get_identity,
    get_registration,
    rate_limit_auth,
)
from carelink.schemas.auth import (
    AccountResponse,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegistrationRequest,
    SessionResponse,
    UserEnvelope,
)
from carelink.services.identity import LocalIdentityProvider, Session
from carelink.services.registration import RegistrationService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _session_response(session: Session) -> SessionResponse:
    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        token_type=session.token_type,
        expires_in=session.expires_in,
    )


@router.post(
    "/register",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit_auth)],
)
async def register(
    data: RegistrationRequest,
    registration: Annotated[RegistrationService, Depends(get_registration)],
):
    """Self-register a doctor or a hospital admin; both start out pending."""
    account = await registration.register(data)
    return UserEnvelope(user=AccountResponse.model_validate(account))


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limit_auth)],
)
async def login(
    credentials: LoginRequest,
    identity: Annotated[LocalIdentityProvider, Depends(get_identity)],
):
    """Authenticate and return an access and refresh token pair."""
    account, session = await identity.sign_in(credentials.email, credentials.password)
    return LoginResponse(
        user=AccountResponse.model_validate(account),
        session=_session_response(session),
    )


@router.post("/refresh", response_model=LoginResponse)
async def refresh_session(
    body: RefreshTokenRequest,
    identity: Annotated[LocalIdentityProvider, Depends(get_identity)],
):
    account, session = await identity.refresh(body.refresh_token)
    return LoginResponse(
        user=AccountResponse.model_validate(account),
        session=_session_response(session),
    )


@router.get("/me", response_model=UserEnvelope)
async def read_account(account: Annotated[Any, Depends(get_current_account)]):
    return UserEnvelope(user=AccountResponse.model_validate(account))
