"""Skill assignment endpoints."""

from fastapi import APIRouter, Depends, Query, Response

from skilltrack.core import assignments
from skilltrack.core.assignments import StudentTarget
from skilltrack.core.auth import CurrentUser
from skilltrack.core.reports import export_assignments_csv
from skilltrack.web.deps import require_instructor
from skilltrack.web.schemas import (
    AssignmentListingResponse,
    AssignRequest,
    AssignResponse,
    UnassignRequest,
    UnassignResponse,
)

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


@router.get("", response_model=AssignmentListingResponse)
async def list_students_for_skills(
    skill_ids: list[str] = Query(...),
    class_id: str | None = Query(default=None),
    search: str | None = Query(default=None),
    page: int = Query(default=1),
    user: CurrentUser = Depends(require_instructor),
) -> AssignmentListingResponse:
    """Affiliated students split by whether they hold the skills."""
    listing = assignments.list_students_for_skills(
        user,
        skill_ids,
        class_id=class_id,
        search=search,
        page=page,
    )
    return AssignmentListingResponse.model_validate(listing)


@router.post("", response_model=AssignResponse)
async def assign_skills(
    body: AssignRequest,
    user: CurrentUser = Depends(require_instructor),
) -> AssignResponse:
    """Assign every skill to every student; existing pairs are skipped."""
    targets = [
        StudentTarget(
            student_id=t.student_id,
            required_submissions=t.required_submissions,
            due_date=t.due_date,
        )
        for t in body.students
    ]
    result = assignments.assign_skills(user, body.skill_ids, targets)
    return AssignResponse(created=result.created, skipped=result.skipped)


@router.delete("", response_model=UnassignResponse)
async def unassign_skills(
    body: UnassignRequest,
    user: CurrentUser = Depends(require_instructor),
) -> UnassignResponse:
    removed = assignments.unassign_skills(user, body.skill_ids, body.student_id)
    return UnassignResponse(removed=removed)


@router.get("/export")
async def export_assignments(
    skill_ids: list[str] = Query(...),
    class_id: str | None = Query(default=None),
    user: CurrentUser = Depends(require_instructor),
) -> Response:
    """Download assigned students with their progress as CSV."""
    rows = assignments.list_assignment_rows(user, skill_ids, class_id=class_id)
    return Response(
        content=export_assignments_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="assignments.csv"'},
    )
