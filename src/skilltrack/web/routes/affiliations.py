"""Student-instructor affiliation endpoints."""

from fastapi import APIRouter, Depends, status

from skilltrack.core import affiliations
from skilltrack.core.auth import CurrentUser
from skilltrack.web.deps import require_instructor, require_student
from skilltrack.web.schemas import AffiliationCreate, AffiliationRequestResponse, MessageResponse

router = APIRouter(prefix="/api/affiliations", tags=["affiliations"])


@router.post("", response_model=AffiliationRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_affiliation(
    body: AffiliationCreate,
    user: CurrentUser = Depends(require_student),
) -> AffiliationRequestResponse:
    """Ask to join an instructor by their code."""
    record = affiliations.request_affiliation(user, body.instructor_code)
    return AffiliationRequestResponse.model_validate(record)


@router.get("/pending", response_model=list[AffiliationRequestResponse])
async def list_pending(
    user: CurrentUser = Depends(require_instructor),
) -> list[AffiliationRequestResponse]:
    return [
        AffiliationRequestResponse.model_validate(r)
        for r in affiliations.list_pending_requests(user)
    ]


@router.post("/{request_id}/approve", response_model=AffiliationRequestResponse)
async def approve_request(
    request_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> AffiliationRequestResponse:
    return AffiliationRequestResponse.model_validate(affiliations.approve_request(user, request_id))


@router.post("/{request_id}/reject", response_model=AffiliationRequestResponse)
async def reject_request(
    request_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> AffiliationRequestResponse:
    return AffiliationRequestResponse.model_validate(affiliations.reject_request(user, request_id))


@router.delete("/students/{student_id}", response_model=MessageResponse)
async def remove_affiliation(
    student_id: str,
    user: CurrentUser = Depends(require_instructor),
) -> MessageResponse:
    """Detach a student and drop them from the caller's classes."""
    removed = affiliations.remove_affiliation(user, student_id)
    return MessageResponse(message=f"Student removed from {removed} class(es)")
