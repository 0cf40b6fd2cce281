"""Admin account management endpoints."""

from fastapi import APIRouter, Depends, Query, status

from skilltrack.core import accounts
from skilltrack.core.auth import CurrentUser
from skilltrack.web.deps import require_admin
from skilltrack.web.schemas import (
    MessageResponse,
    ProfileResponse,
    StudentSummaryListResponse,
    StudentSummaryResponse,
    UserCreate,
    UserListResponse,
    UserUpdate,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: str | None = Query(default=None),
    user: CurrentUser = Depends(require_admin),
) -> UserListResponse:
    users = [ProfileResponse.model_validate(p) for p in accounts.list_users(user, role=role)]
    return UserListResponse(users=users, count=len(users))


# Sync handler: SMTP delivery blocks, so it runs in the threadpool
@router.post("/users", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    user: CurrentUser = Depends(require_admin),
) -> ProfileResponse:
    """Create an instructor or admin account."""
    profile = accounts.create_user(
        user,
        email=body.email,
        full_name=body.full_name,
        password=body.password,
        role=body.role,
    )
    return ProfileResponse.model_validate(profile)


@router.patch("/users/{profile_id}", response_model=ProfileResponse)
async def update_user(
    profile_id: str,
    body: UserUpdate,
    user: CurrentUser = Depends(require_admin),
) -> ProfileResponse:
    kwargs = {}
    if "affiliated_instructor" in body.model_fields_set:
        kwargs["affiliated_instructor"] = body.affiliated_instructor
    profile = accounts.update_user(
        user,
        profile_id,
        full_name=body.full_name,
        role=body.role,
        **kwargs,
    )
    return ProfileResponse.model_validate(profile)


# Sync handler: SMTP delivery blocks, so it runs in the threadpool
@router.post("/users/{profile_id}/password-reset", response_model=MessageResponse)
def send_password_reset(
    profile_id: str,
    user: CurrentUser = Depends(require_admin),
) -> MessageResponse:
    accounts.send_password_reset(user, profile_id)
    return MessageResponse(message="Password reset email sent")


@router.get("/students", response_model=StudentSummaryListResponse)
async def list_students(
    instructor: str = Query(default="all", description="'all', 'none' or an instructor id"),
    search: str | None = Query(default=None),
    user: CurrentUser = Depends(require_admin),
) -> StudentSummaryListResponse:
    students = [
        StudentSummaryResponse.model_validate(s)
        for s in accounts.list_students(user, instructor=instructor, search=search)
    ]
    return StudentSummaryListResponse(students=students, count=len(students))
