"""Skill log endpoints."""

from fastapi import APIRouter, Depends, status

from skilltrack.core import skill_logs, skills
from skilltrack.core.auth import CurrentUser
from skilltrack.web.deps import require_instructor, require_student
from skilltrack.web.schemas import (
    AssignmentResponse,
    LogStatusUpdate,
    RecentSkillsResponse,
    SkillLogCreate,
    SkillLogListResponse,
    SkillLogResponse,
    SkillUsageResponse,
    SubmissionResponse,
)

router = APIRouter(prefix="/api/logs", tags=["logs"])


@router.get("", response_model=SkillLogListResponse)
async def list_my_logs(user: CurrentUser = Depends(require_student)) -> SkillLogListResponse:
    """The caller's own logs, newest first."""
    logs = [SkillLogResponse.model_validate(log) for log in skill_logs.list_my_logs(user)]
    return SkillLogListResponse(logs=logs, count=len(logs))


@router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_skill_log(
    body: SkillLogCreate,
    user: CurrentUser = Depends(require_student),
) -> SubmissionResponse:
    """Submit a filled verification form for an assigned skill."""
    result = skill_logs.submit_skill_log(
        user,
        skill_id=body.skill_id,
        responses=body.responses,
        evaluator_name=body.evaluator_name,
        evaluator_type=body.evaluator_type,
        instructor_signature=body.instructor_signature,
        classmate_id=body.classmate_id,
    )
    return SubmissionResponse.model_validate(result)


@router.get("/loggable", response_model=list[AssignmentResponse])
async def loggable_skills(user: CurrentUser = Depends(require_student)) -> list[AssignmentResponse]:
    return [AssignmentResponse.model_validate(a) for a in skill_logs.loggable_skills(user)]


@router.get("/recent-skills", response_model=RecentSkillsResponse)
async def recent_skills(user: CurrentUser = Depends(require_student)) -> RecentSkillsResponse:
    """Shortcut lists: most recent and most frequent skills."""
    return RecentSkillsResponse(
        recent=[SkillUsageResponse.model_validate(u) for u in skills.recent_skills(user.id)],
        frequent=[SkillUsageResponse.model_validate(u) for u in skills.frequent_skills(user.id)],
    )


@router.patch("/{log_id}/status", response_model=SkillLogResponse)
async def review_log(
    log_id: str,
    body: LogStatusUpdate,
    user: CurrentUser = Depends(require_instructor),
) -> SkillLogResponse:
    return SkillLogResponse.model_validate(skill_logs.review_log(user, log_id, body.status))
