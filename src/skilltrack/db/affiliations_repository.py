"""Repository functions for affiliation_requests table."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from skilltrack.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class AffiliationRequestRecord:
    """Affiliation request joined with student details."""

    id: str
    student_id: str
    student_name: str
    student_email: str
    instructor_id: str
    status: str
    created_at: str
    updated_at: str


_REQUEST_SELECT = """
    SELECT r.*, p.full_name AS student_name, p.email AS student_email
    FROM affiliation_requests r
    JOIN profiles p ON p.id = r.student_id
"""


def insert_request(student_id: str, instructor_id: str) -> str:
    """Insert a pending affiliation request.

    Raises:
        sqlite3.IntegrityError: If the student already has a pending request
    """
    request_id = new_id()
    now = utc_now()

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO affiliation_requests (
                id, student_id, instructor_id, status, created_at, updated_at
            ) VALUES (?, ?, ?, 'pending', ?, ?)
            """,
            (request_id, student_id, instructor_id, now, now),
        )

    logger.debug(
        "affiliations.request_inserted",
        request_id=request_id,
        student_id=student_id,
        instructor_id=instructor_id,
    )
    return request_id


def get_request_by_id(request_id: str) -> AffiliationRequestRecord | None:
    with get_db() as conn:
        row = conn.execute(
            _REQUEST_SELECT + " WHERE r.id = ?", (request_id,)
        ).fetchone()

    return _row_to_record(row) if row else None


def get_pending_for_student(student_id: str) -> AffiliationRequestRecord | None:
    with get_db() as conn:
        row = conn.execute(
            _REQUEST_SELECT + " WHERE r.student_id = ? AND r.status = 'pending'",
            (student_id,),
        ).fetchone()

    return _row_to_record(row) if row else None


def list_pending_for_instructor(instructor_id: str) -> list[AffiliationRequestRecord]:
    """Pending requests addressed to an instructor, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            _REQUEST_SELECT
            + " WHERE r.instructor_id = ? AND r.status = 'pending' ORDER BY r.created_at",
            (instructor_id,),
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def set_request_status(request_id: str, status: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE affiliation_requests SET status = ?, updated_at = ? WHERE id = ?",
            (status, utc_now(), request_id),
        )

    return cursor.rowcount > 0


def _row_to_record(row) -> AffiliationRequestRecord:
    return AffiliationRequestRecord(
        id=row["id"],
        student_id=row["student_id"],
        student_name=row["student_name"],
        student_email=row["student_email"],
        instructor_id=row["instructor_id"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
