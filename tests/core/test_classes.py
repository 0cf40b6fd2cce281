"""Tests for class management and enrollment."""

from datetime import date, timedelta

import pytest

from skilltrack.core import classes
from skilltrack.core.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)


@pytest.fixture
def cohort(instructor):
    return classes.create_class(instructor, "Cohort A", start_date="2026-01-10", end_date="2026-06-30")


class TestCreateClass:
    """Tests for create_class."""

    def test_explicit_dates(self, cohort, instructor):
        assert cohort.instructor_id == instructor.id
        assert cohort.start_date == "2026-01-10"
        assert cohort.end_date == "2026-06-30"
        assert cohort.archived is False

    def test_default_dates(self, instructor):
        """Start defaults to today and end to the configured term length."""
        record = classes.create_class(instructor, "Cohort B")
        start = date.fromisoformat(record.start_date)
        assert start == date.today()
        assert date.fromisoformat(record.end_date) == start + timedelta(days=180)

    def test_end_before_start(self, instructor):
        with pytest.raises(InvalidInputError, match="End date cannot be before start date"):
            classes.create_class(instructor, "X", start_date="2026-05-01", end_date="2026-04-01")

    def test_bad_date(self, instructor):
        with pytest.raises(InvalidInputError):
            classes.create_class(instructor, "X", start_date="May 1st")

    def test_students_cannot_create(self, student):
        with pytest.raises(PermissionDeniedError):
            classes.create_class(student, "X")


class TestArchive:
    """Tests for archive_class and restore_class."""

    def test_archive_and_restore(self, instructor, cohort):
        """Archived classes move to the archived list and back."""
        assert classes.archive_class(instructor, cohort.id).archived is True
        assert classes.list_classes(instructor) == []
        assert [c.id for c in classes.list_classes(instructor, archived=True)] == [cohort.id]

        assert classes.restore_class(instructor, cohort.id).archived is False
        assert [c.id for c in classes.list_classes(instructor)] == [cohort.id]

    def test_only_owner(self, make_user, cohort):
        other = make_user("instructor")
        with pytest.raises(PermissionDeniedError):
            classes.archive_class(other, cohort.id)

    def test_missing_class(self, instructor):
        with pytest.raises(NotFoundError):
            classes.archive_class(instructor, "missing")


class TestEnrollment:
    """Tests for enroll_student, unenroll_student and get_roster."""

    def test_roster_splits_students(self, instructor, student, make_user, cohort):
        """Affiliated students are either enrolled or available."""
        other = make_user("student", instructor=instructor)
        classes.enroll_student(instructor, cohort.id, student.id)

        roster = classes.get_roster(instructor, cohort.id)
        assert [s.id for s in roster.enrolled] == [student.id]
        assert [s.id for s in roster.available] == [other.id]
        assert classes.list_classes(instructor)[0].student_count == 1

    def test_duplicate_enrollment(self, instructor, student, cohort):
        classes.enroll_student(instructor, cohort.id, student.id)
        with pytest.raises(ConflictError):
            classes.enroll_student(instructor, cohort.id, student.id)

    def test_unaffiliated_student(self, instructor, make_user, cohort):
        stranger = make_user("student")
        with pytest.raises(PermissionDeniedError):
            classes.enroll_student(instructor, cohort.id, stranger.id)

    def test_archived_class(self, instructor, student, cohort):
        classes.archive_class(instructor, cohort.id)
        with pytest.raises(InvalidInputError):
            classes.enroll_student(instructor, cohort.id, student.id)

    def test_unenroll(self, instructor, student, cohort):
        classes.enroll_student(instructor, cohort.id, student.id)
        classes.unenroll_student(instructor, cohort.id, student.id)
        assert classes.get_roster(instructor, cohort.id).enrolled == []
        with pytest.raises(NotFoundError):
            classes.unenroll_student(instructor, cohort.id, student.id)


class TestClassmates:
    """Tests for list_classmates."""

    def test_shared_active_class(self, instructor, student, make_user, cohort):
        """Classmates share a non-archived class; the caller is excluded."""
        mate = make_user("student", full_name="Mia Mate", instructor=instructor)
        loner = make_user("student", instructor=instructor)
        classes.enroll_student(instructor, cohort.id, student.id)
        classes.enroll_student(instructor, cohort.id, mate.id)

        mates = classes.list_classmates(student)
        assert [m.student_id for m in mates] == [mate.id]
        assert mates[0].class_name == "Cohort A"
        assert classes.list_classmates(loner) == []

    def test_archived_class_hides_classmates(self, instructor, student, make_user, cohort):
        mate = make_user("student", instructor=instructor)
        classes.enroll_student(instructor, cohort.id, student.id)
        classes.enroll_student(instructor, cohort.id, mate.id)
        classes.archive_class(instructor, cohort.id)
        assert classes.list_classmates(student) == []
