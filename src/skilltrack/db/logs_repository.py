"""Repository functions for skill_logs table."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import structlog

from skilltrack.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)

LOG_STATUSES = ("submitted", "verified", "rejected")

# Logs that count toward an assignment quota
COUNTED_STATUSES = ("submitted", "verified")


@dataclass
class SkillLogRecord:
    """Skill log joined with skill, category, class and student names."""

    id: str
    skill_id: str
    skill_name: str
    category_name: str
    student_id: str
    student_name: str
    student_email: str
    evaluated_student_id: str | None
    class_id: str | None
    class_name: str | None
    responses: dict[str, Any]
    status: str
    attempt_number: int
    evaluator_name: str
    evaluator_type: str
    instructor_signature: str | None
    created_at: str


@dataclass
class SkillUsage:
    """A skill with the number of logs a student has against it."""

    skill_id: str
    skill_name: str
    category_name: str
    log_count: int
    last_logged_at: str


_LOG_SELECT = """
    SELECT l.*, s.name AS skill_name, c.name AS category_name,
           p.full_name AS student_name, p.email AS student_email,
           cl.name AS class_name
    FROM skill_logs l
    JOIN skills s ON s.id = l.skill_id
    JOIN skill_categories c ON c.id = s.category_id
    JOIN profiles p ON p.id = l.student_id
    LEFT JOIN classes cl ON cl.id = l.class_id
"""


def insert_log(
    skill_id: str,
    student_id: str,
    responses: dict[str, Any],
    attempt_number: int,
    evaluator_name: str,
    evaluator_type: str,
    evaluated_student_id: str | None = None,
    class_id: str | None = None,
    instructor_signature: str | None = None,
) -> str:
    """Insert a submitted skill log.

    Returns:
        The new log id
    """
    log_id = new_id()

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO skill_logs (
                id, skill_id, student_id, evaluated_student_id, class_id,
                responses, status, attempt_number, evaluator_name,
                evaluator_type, instructor_signature, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, 'submitted', ?, ?, ?, ?, ?)
            """,
            (
                log_id,
                skill_id,
                student_id,
                evaluated_student_id,
                class_id,
                json.dumps(responses),
                attempt_number,
                evaluator_name,
                evaluator_type,
                instructor_signature,
                utc_now(),
            ),
        )

    logger.debug("skill_logs.inserted", log_id=log_id, skill_id=skill_id)
    return log_id


def get_log_by_id(log_id: str) -> SkillLogRecord | None:
    with get_db() as conn:
        row = conn.execute(_LOG_SELECT + " WHERE l.id = ?", (log_id,)).fetchone()

    return _row_to_record(row) if row else None


def count_logs(
    skill_id: str,
    student_id: str,
    statuses: tuple[str, ...] | None = None,
) -> int:
    """Count logs of a skill for a student, optionally limited to some statuses."""
    sql = "SELECT COUNT(*) FROM skill_logs WHERE skill_id = ? AND student_id = ?"
    params: list = [skill_id, student_id]
    if statuses:
        sql += f" AND status IN ({', '.join('?' for _ in statuses)})"
        params.extend(statuses)

    with get_db() as conn:
        return conn.execute(sql, params).fetchone()[0]


def count_submitted_by_skill(student_ids: list[str]) -> dict[tuple[str, str], int]:
    """Counted (submitted or verified) logs keyed by (skill_id, student_id)."""
    if not student_ids:
        return {}
    placeholders = ", ".join("?" for _ in student_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"""
            SELECT skill_id, student_id, COUNT(*) AS n
            FROM skill_logs
            WHERE status IN ('submitted', 'verified') AND student_id IN ({placeholders})
            GROUP BY skill_id, student_id
            """,
            student_ids,
        ).fetchall()

    return {(row["skill_id"], row["student_id"]): row["n"] for row in rows}


def list_logs(
    student_ids: list[str] | None = None,
    class_id: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> list[SkillLogRecord]:
    """List logs, newest first.

    Args:
        student_ids: Only logs of these students (None = all, [] = none)
        class_id: Only logs attributed to this class
        status: Only logs with this status
        search: Case-insensitive substring of student name or skill name
    """
    if student_ids is not None and not student_ids:
        return []

    clauses: list[str] = []
    params: list = []

    if student_ids is not None:
        clauses.append(f"l.student_id IN ({', '.join('?' for _ in student_ids)})")
        params.extend(student_ids)
    if class_id is not None:
        clauses.append("l.class_id = ?")
        params.append(class_id)
    if status is not None:
        clauses.append("l.status = ?")
        params.append(status)
    if search:
        clauses.append("(p.full_name LIKE ? OR s.name LIKE ?)")
        pattern = f"%{search}%"
        params.extend([pattern, pattern])

    sql = _LOG_SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY l.created_at DESC"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_record(row) for row in rows]


def update_log_status(log_id: str, status: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE skill_logs SET status = ? WHERE id = ?",
            (status, log_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("skill_logs.status_updated", log_id=log_id, status=status)
    return updated


def get_skill_usage(student_id: str) -> list[SkillUsage]:
    """Per-skill log counts for a student, most recently logged first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT l.skill_id, s.name AS skill_name, c.name AS category_name,
                   COUNT(*) AS log_count, MAX(l.created_at) AS last_logged_at
            FROM skill_logs l
            JOIN skills s ON s.id = l.skill_id
            JOIN skill_categories c ON c.id = s.category_id
            WHERE l.student_id = ?
            GROUP BY l.skill_id
            ORDER BY last_logged_at DESC
            """,
            (student_id,),
        ).fetchall()

    return [
        SkillUsage(
            skill_id=row["skill_id"],
            skill_name=row["skill_name"],
            category_name=row["category_name"],
            log_count=row["log_count"],
            last_logged_at=row["last_logged_at"],
        )
        for row in rows
    ]


def _row_to_record(row) -> SkillLogRecord:
    """Convert database row to SkillLogRecord."""
    return SkillLogRecord(
        id=row["id"],
        skill_id=row["skill_id"],
        skill_name=row["skill_name"],
        category_name=row["category_name"],
        student_id=row["student_id"],
        student_name=row["student_name"],
        student_email=row["student_email"],
        evaluated_student_id=row["evaluated_student_id"],
        class_id=row["class_id"],
        class_name=row["class_name"],
        responses=json.loads(row["responses"]) if row["responses"] else {},
        status=row["status"],
        attempt_number=row["attempt_number"],
        evaluator_name=row["evaluator_name"],
        evaluator_type=row["evaluator_type"],
        instructor_signature=row["instructor_signature"],
        created_at=row["created_at"],
    )
