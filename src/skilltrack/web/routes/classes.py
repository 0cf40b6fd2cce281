"""Class and enrollment endpoints."""

from fastapi import APIRouter, Depends, Query, status

from skilltrack.core import classes
from skilltrack.core.auth import CurrentUser
from skilltrack.web.deps import get_current_user, require_instructor
from skilltrack.web.schemas import (
    ClassCreate,
    ClassListResponse,
    ClassmateResponse,
    ClassResponse,
    RosterResponse,
)

router = APIRouter(prefix="/api/classes", tags=["classes"])


@router.get("", response_model=ClassListResponse)
async def list_classes(
    archived: bool = Query(default=False),
    user: CurrentUser = Depends(require_instructor),
) -> ClassListResponse:
    items = [ClassResponse.model_validate(c) for c in classes.list_classes(user, archived=archived)]
    return ClassListResponse(classes=items, count=len(items))


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    body: ClassCreate,
    user: CurrentUser = Depends(require_instructor),
) -> ClassResponse:
    """Create a class; dates default to today and the configured term length."""
    record = classes.create_class(
        user,
        name=body.name,
        description=body.description,
        start_date=body.start_date,
        end_date=body.end_date,
    )
    return ClassResponse.model_validate(record)


@router.get("/classmates", response_model=list[ClassmateResponse])
async def list_classmates(
    user: CurrentUser = Depends(get_current_user),
) -> list[ClassmateResponse]:
    """Students sharing an active class with the caller."""
    return [ClassmateResponse.model_validate(c) for c in classes.list_classmates(user)]


@router.post("/{class_id}/archive", response_model=ClassResponse)
async def archive_class(
    class_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> ClassResponse:
    return ClassResponse.model_validate(classes.archive_class(user, class_id))


@router.post("/{class_id}/restore", response_model=ClassResponse)
async def restore_class(
    class_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> ClassResponse:
    return ClassResponse.model_validate(classes.restore_class(user, class_id))


@router.get("/{class_id}/roster", response_model=RosterResponse)
async def get_roster(
    class_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> RosterResponse:
    """Enrolled students and affiliated students available to add."""
    return RosterResponse.model_validate(classes.get_roster(user, class_id))


@router.post("/{class_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def enroll_student(
    class_id: str,
    student_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> None:
    classes.enroll_student(user, class_id, student_id)


@router.delete("/{class_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll_student(
    class_id: str,
    student_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> None:
    classes.unenroll_student(user, class_id, student_id)
