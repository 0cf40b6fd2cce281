"""Progress endpoints."""

from fastapi import APIRouter, Depends, Query

from skilltrack.core import progress
from skilltrack.core.auth import CurrentUser
from skilltrack.web.deps import require_instructor, require_student
from skilltrack.web.schemas import SkillProgressResponse, StudentOverviewResponse

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.get("/me", response_model=list[SkillProgressResponse])
async def my_progress(user: CurrentUser = Depends(require_student)) -> list[SkillProgressResponse]:
    return [SkillProgressResponse.model_validate(p) for p in progress.my_progress(user)]


@router.get("/students", response_model=list[StudentOverviewResponse])
async def student_overview(
    search: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    user: CurrentUser = Depends(require_instructor),
) -> list[StudentOverviewResponse]:
    """Per-student progress for the caller's affiliated students."""
    overview = progress.instructor_overview(user, search=search, class_id=class_id)
    return [StudentOverviewResponse.model_validate(o) for o in overview]
