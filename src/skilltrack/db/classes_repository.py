"""Repository functions for classes and class_enrollments tables."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from skilltrack.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class ClassRecord:
    """Class record with its enrollment count."""

    id: str
    instructor_id: str
    name: str
    description: str
    start_date: str
    end_date: str
    archived: bool
    created_at: str
    student_count: int = 0


@dataclass
class EnrollmentRecord:
    """A student's enrollment in a class."""

    class_id: str
    class_name: str
    student_id: str
    enrolled_at: str


@dataclass
class ClassmateRecord:
    """A student sharing a class with another student."""

    student_id: str
    full_name: str
    email: str
    class_id: str
    class_name: str


_CLASS_SELECT = """
    SELECT c.*,
        (SELECT COUNT(*) FROM class_enrollments e WHERE e.class_id = c.id) AS student_count
    FROM classes c
"""


def insert_class(
    instructor_id: str,
    name: str,
    description: str,
    start_date: str,
    end_date: str,
) -> ClassRecord:
    """Insert a new (active) class."""
    class_id = new_id()
    now = utc_now()

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO classes (
                id, instructor_id, name, description,
                start_date, end_date, archived, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, 0, ?)
            """,
            (class_id, instructor_id, name, description, start_date, end_date, now),
        )

    logger.debug("classes.inserted", class_id=class_id, instructor_id=instructor_id)

    return ClassRecord(
        id=class_id,
        instructor_id=instructor_id,
        name=name,
        description=description,
        start_date=start_date,
        end_date=end_date,
        archived=False,
        created_at=now,
    )


def get_class_by_id(class_id: str) -> ClassRecord | None:
    with get_db() as conn:
        row = conn.execute(_CLASS_SELECT + " WHERE c.id = ?", (class_id,)).fetchone()

    return _row_to_record(row) if row else None


def get_classes_for_instructor(
    instructor_id: str,
    archived: bool | None = None,
) -> list[ClassRecord]:
    """Get an instructor's classes, newest first.

    Args:
        instructor_id: Owning instructor
        archived: Filter by archived flag (None = both)
    """
    sql = _CLASS_SELECT + " WHERE c.instructor_id = ?"
    params: list = [instructor_id]
    if archived is not None:
        sql += " AND c.archived = ?"
        params.append(int(archived))
    sql += " ORDER BY c.created_at DESC"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_record(row) for row in rows]


def set_archived(class_id: str, archived: bool) -> bool:
    """Archive or restore a class.

    Returns:
        True if updated, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE classes SET archived = ? WHERE id = ?",
            (int(archived), class_id),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("classes.archived_set", class_id=class_id, archived=archived)
    return updated


# =============================================================================
# ENROLLMENTS
# =============================================================================


def insert_enrollment(class_id: str, student_id: str) -> None:
    """Enroll a student in a class.

    Raises:
        sqlite3.IntegrityError: If already enrolled
    """
    with get_db() as conn:
        conn.execute(
            "INSERT INTO class_enrollments (class_id, student_id, enrolled_at) VALUES (?, ?, ?)",
            (class_id, student_id, utc_now()),
        )

    logger.debug("enrollments.inserted", class_id=class_id, student_id=student_id)


def delete_enrollment(class_id: str, student_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM class_enrollments WHERE class_id = ? AND student_id = ?",
            (class_id, student_id),
        )

    return cursor.rowcount > 0


def delete_enrollments_for_instructor(student_id: str, instructor_id: str) -> int:
    """Remove a student from every class owned by an instructor.

    Returns:
        Number of enrollments removed
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            DELETE FROM class_enrollments
            WHERE student_id = ?
              AND class_id IN (SELECT id FROM classes WHERE instructor_id = ?)
            """,
            (student_id, instructor_id),
        )

    return cursor.rowcount


def get_enrolled_student_ids(class_id: str) -> set[str]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT student_id FROM class_enrollments WHERE class_id = ?",
            (class_id,),
        ).fetchall()

    return {row["student_id"] for row in rows}


def get_enrollments_for_student(student_id: str) -> list[EnrollmentRecord]:
    """Get a student's enrollments, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT e.class_id, c.name AS class_name, e.student_id, e.enrolled_at
            FROM class_enrollments e
            JOIN classes c ON c.id = e.class_id
            WHERE e.student_id = ?
            ORDER BY e.enrolled_at, c.name
            """,
            (student_id,),
        ).fetchall()

    return [
        EnrollmentRecord(
            class_id=row["class_id"],
            class_name=row["class_name"],
            student_id=row["student_id"],
            enrolled_at=row["enrolled_at"],
        )
        for row in rows
    ]


def get_classmates(student_id: str) -> list[ClassmateRecord]:
    """Students sharing a non-archived class with the given student."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT DISTINCT p.id AS student_id, p.full_name, p.email,
                   c.id AS class_id, c.name AS class_name
            FROM class_enrollments mine
            JOIN classes c ON c.id = mine.class_id AND c.archived = 0
            JOIN class_enrollments other ON other.class_id = mine.class_id
            JOIN profiles p ON p.id = other.student_id
            WHERE mine.student_id = ? AND other.student_id != ?
            ORDER BY p.full_name
            """,
            (student_id, student_id),
        ).fetchall()

    return [
        ClassmateRecord(
            student_id=row["student_id"],
            full_name=row["full_name"],
            email=row["email"],
            class_id=row["class_id"],
            class_name=row["class_name"],
        )
        for row in rows
    ]


def _row_to_record(row) -> ClassRecord:
    """Convert database row to ClassRecord."""
    return ClassRecord(
        id=row["id"],
        instructor_id=row["instructor_id"],
        name=row["name"],
        description=row["description"],
        start_date=row["start_date"],
        end_date=row["end_date"],
        archived=bool(row["archived"]),
        created_at=row["created_at"],
        student_count=row["student_count"],
    )
