"""Authentication endpoints."""

from fastapi import APIRouter, Depends, status

from skilltrack.core import auth
from skilltrack.core.auth import AuthSession, CurrentUser
from skilltrack.web.deps import get_current_user
from skilltrack.web.schemas import (
    MeResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordUpdate,
    ProfileResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        token=session.token,
        expires_at=session.expires_at,
        profile=ProfileResponse.model_validate(session.profile),
        impersonator_id=session.impersonator_id,
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(body: SignUpRequest) -> SessionResponse:
    """Register a student account."""
    session = auth.sign_up(
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        instructor_code=body.instructor_code,
    )
    return _session_response(session)


@router.post("/signin", response_model=SessionResponse)
async def sign_in(body: SignInRequest) -> SessionResponse:
    return _session_response(auth.sign_in(body.email, body.password))


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(user: CurrentUser = Depends(get_current_user)) -> None:
    auth.sign_out(user.token)


@router.get("/me", response_model=MeResponse)
async def me(user: CurrentUser = Depends(get_current_user)) -> MeResponse:
    """Get the caller's effective profile."""
    return MeResponse(
        profile=ProfileResponse.model_validate(user.profile),
        impersonator=ProfileResponse.model_validate(user.impersonator)
        if user.impersonator
        else None,
    )


# Sync handler: SMTP delivery blocks, so it runs in the threadpool
@router.post("/password-reset", response_model=MessageResponse)
def request_password_reset(body: PasswordResetRequest) -> MessageResponse:
    """Mail a reset link (always succeeds)."""
    auth.request_password_reset(body.email)
    return MessageResponse(
        message="If an account exists for this email, a reset link has been sent"
    )


@router.post("/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(body: PasswordResetConfirm) -> MessageResponse:
    auth.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password updated. Please sign in again")


@router.put("/password", response_model=MessageResponse)
async def update_password(
    body: PasswordUpdate,
    user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    """Change own password; every session is signed out."""
    auth.update_password(user, body.new_password)
    return MessageResponse(message="Password updated. Please sign in again")


@router.post("/impersonate/stop", response_model=ProfileResponse)
async def stop_impersonation(user: CurrentUser = Depends(get_current_user)) -> ProfileResponse:
    """End a delegated session; returns the admin profile."""
    return ProfileResponse.model_validate(auth.stop_impersonation(user))


@router.post("/impersonate/{profile_id}", response_model=SessionResponse)
async def start_impersonation(
    profile_id: str,
    user: CurrentUser = Depends(get_current_user),
) -> SessionResponse:
    """Issue a delegated session acting as another user (admins only)."""
    return _session_response(auth.start_impersonation(user, profile_id))
