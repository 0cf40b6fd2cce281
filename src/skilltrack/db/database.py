"""SQLite database connection and schema management.

Provides connection management and schema initialization for SkillTrack.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import structlog

from skilltrack.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def _default_db_path() -> Path:
    return Path(load_app_config().database.path)


def current_db_path() -> Path:
    """Path of the database in use."""
    return _db_path or _default_db_path()


def new_id() -> str:
    """Generate a primary key for a new row."""
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current UTC time as ISO 8601 text."""
    return datetime.now(timezone.utc).isoformat()


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path.
    """
    global _db_path
    _db_path = db_path or _default_db_path()

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM skills").fetchall()
    """
    db_path = current_db_path()

    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            role TEXT NOT NULL DEFAULT 'student'
                CHECK(role IN ('student', 'instructor', 'admin')),
            full_name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE COLLATE NOCASE,
            password_hash TEXT NOT NULL DEFAULT '',
            instructor_code TEXT UNIQUE,
            affiliated_instructor TEXT REFERENCES profiles(id) ON DELETE SET NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS skill_categories (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS skill_subcategories (
            id TEXT PRIMARY KEY,
            category_id TEXT NOT NULL REFERENCES skill_categories(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT ''
        );

        -- form_schema: JSON {"questions": [...]}
        CREATE TABLE IF NOT EXISTS skills (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            category_id TEXT NOT NULL REFERENCES skill_categories(id),
            subcategory_id TEXT REFERENCES skill_subcategories(id) ON DELETE SET NULL,
            verification_type TEXT NOT NULL DEFAULT 'peer'
                CHECK(verification_type IN ('peer', 'instructor')),
            form_schema TEXT,
            is_template INTEGER NOT NULL DEFAULT 1,
            template_id TEXT REFERENCES skills(id) ON DELETE SET NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS classes (
            id TEXT PRIMARY KEY,
            instructor_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            archived INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS class_enrollments (
            class_id TEXT NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            student_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            enrolled_at TEXT NOT NULL,
            PRIMARY KEY (class_id, student_id)
        );

        CREATE TABLE IF NOT EXISTS skill_assignments (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            student_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            required_submissions INTEGER NOT NULL DEFAULT 1 CHECK(required_submissions >= 1),
            due_date TEXT,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'completed', 'expired')),
            created_at TEXT NOT NULL,
            UNIQUE (skill_id, student_id)
        );

        -- responses: JSON map question_id -> answer
        CREATE TABLE IF NOT EXISTS skill_logs (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            student_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            evaluated_student_id TEXT REFERENCES profiles(id) ON DELETE SET NULL,
            class_id TEXT REFERENCES classes(id) ON DELETE SET NULL,
            responses TEXT NOT NULL DEFAULT '{}',
            status TEXT NOT NULL DEFAULT 'submitted'
                CHECK(status IN ('submitted', 'verified', 'rejected')),
            attempt_number INTEGER NOT NULL DEFAULT 1,
            evaluator_name TEXT NOT NULL,
            evaluator_type TEXT NOT NULL CHECK(evaluator_type IN ('peer', 'instructor')),
            instructor_signature TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS affiliation_requests (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            instructor_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'approved', 'rejected')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS auth_sessions (
            token TEXT PRIMARY KEY,
            profile_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            impersonator_id TEXT REFERENCES profiles(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS password_resets (
            token TEXT PRIMARY KEY,
            profile_id TEXT NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            used INTEGER NOT NULL DEFAULT 0
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_profiles_affiliation ON profiles(affiliated_instructor);
        CREATE INDEX IF NOT EXISTS idx_logs_student_skill ON skill_logs(student_id, skill_id);
        CREATE INDEX IF NOT EXISTS idx_assignments_student ON skill_assignments(student_id);
        CREATE UNIQUE INDEX IF NOT EXISTS idx_affiliation_one_pending
            ON affiliation_requests(student_id) WHERE status = 'pending';
        """
    )
