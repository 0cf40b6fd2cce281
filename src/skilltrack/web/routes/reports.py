"""Instructor report endpoints."""

from fastapi import APIRouter, Depends, Query, Response

from skilltrack.core import reports
from skilltrack.core.auth import CurrentUser
from skilltrack.core.reports import LogReportFilter
from skilltrack.web.deps import require_instructor
from skilltrack.web.schemas import SkillLogListResponse, SkillLogResponse

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _filters(
    search: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    status: str | None = Query(default=None),
    student_ids: list[str] = Query(default=[]),
) -> LogReportFilter:
    return LogReportFilter(
        search=search,
        class_id=class_id,
        status=status,
        student_ids=student_ids,
    )


@router.get("/logs", response_model=SkillLogListResponse)
async def skill_log_report(
    filters: LogReportFilter = Depends(_filters),
    user: CurrentUser = Depends(require_instructor),
) -> SkillLogListResponse:
    logs = [SkillLogResponse.model_validate(log) for log in reports.skill_log_report(user, filters)]
    return SkillLogListResponse(logs=logs, count=len(logs))


@router.get("/logs/export")
async def export_skill_logs(
    filters: LogReportFilter = Depends(_filters),
    user: CurrentUser = Depends(require_instructor),
) -> Response:
    """Download the filtered skill-log report as CSV."""
    logs = reports.skill_log_report(user, filters)
    return Response(
        content=reports.export_logs_csv(logs),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="skill-logs.csv"'},
    )
