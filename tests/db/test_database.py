"""Tests for the SQLite schema and repository edge cases."""

import sqlite3

import pytest

from skilltrack.db import affiliations_repository, assignments_repository, logs_repository
from skilltrack.db.database import get_db, init_db


class TestSchema:
    """Tests for init_db."""

    def test_tables_created(self, isolated_db):
        with get_db() as conn:
            names = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        assert {
            "profiles",
            "skill_categories",
            "skill_subcategories",
            "skills",
            "classes",
            "class_enrollments",
            "skill_assignments",
            "skill_logs",
            "affiliation_requests",
            "auth_sessions",
            "password_resets",
        } <= names

    def test_init_is_idempotent(self, isolated_db, student):
        """Re-running init keeps existing rows."""
        init_db(isolated_db)
        with get_db() as conn:
            count = conn.execute("SELECT COUNT(*) FROM profiles").fetchone()[0]
        assert count == 2

    def test_failed_transaction_rolls_back(self, student):
        with pytest.raises(sqlite3.IntegrityError):
            with get_db() as conn:
                conn.execute("UPDATE profiles SET full_name = 'Changed' WHERE id = ?", (student.id,))
                conn.execute("INSERT INTO profiles (id, full_name, email) VALUES ('x', 'X', NULL)")
        with get_db() as conn:
            name = conn.execute(
                "SELECT full_name FROM profiles WHERE id = ?", (student.id,)
            ).fetchone()[0]
        assert name == "Sam Student"


class TestAffiliationIndex:
    def test_one_pending_request_per_student(self, make_user):
        """The partial unique index allows only one pending request."""
        first = make_user("instructor")
        second = make_user("instructor")
        kid = make_user("student")
        request_id = affiliations_repository.insert_request(kid.id, first.id)
        with pytest.raises(sqlite3.IntegrityError):
            affiliations_repository.insert_request(kid.id, second.id)

        affiliations_repository.set_request_status(request_id, "rejected")
        affiliations_repository.insert_request(kid.id, second.id)


class TestAssignmentsRepository:
    def test_insert_skips_duplicates(self, student, skill):
        first = assignments_repository.insert_assignments([(skill.id, student.id, 1, None)])
        again = assignments_repository.insert_assignments(
            [(skill.id, student.id, 3, None), (skill.id, student.id, 2, None)]
        )
        assert len(first) == 1
        assert again == []

    def test_delete_missing(self, student, skill):
        assert assignments_repository.delete_assignment(skill.id, student.id) is False


class TestLogsRepository:
    def test_counts_exclude_rejected(self, student, skill):
        """Rejected logs are not part of the submitted counts."""
        for status in ("submitted", "verified", "rejected"):
            log_id = logs_repository.insert_log(
                skill_id=skill.id,
                student_id=student.id,
                responses={},
                attempt_number=1,
                evaluator_name="Pat",
                evaluator_type="peer",
            )
            logs_repository.update_log_status(log_id, status)

        assert logs_repository.count_submitted_by_skill([student.id]) == {(skill.id, student.id): 2}
        assert logs_repository.count_logs(skill.id, student.id) == 3
        assert logs_repository.count_submitted_by_skill([]) == {}

    def test_empty_student_filter(self, student, skill):
        assert logs_repository.list_logs(student_ids=[]) == []
