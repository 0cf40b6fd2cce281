"""Tests for skill assignment."""

from datetime import date

import pytest

from skilltrack.config.app_config import load_app_config
from skilltrack.core import assignments, classes, skills
from skilltrack.core.assignments import StudentTarget
from skilltrack.core.errors import InvalidInputError, PermissionDeniedError
from skilltrack.db import assignments_repository


@pytest.fixture
def second_skill(admin, category):
    return skills.create_skill(admin, "Pulse Check", "", category.id)


class TestAssignSkills:
    """Tests for assign_skills."""

    def test_every_skill_to_every_student(self, instructor, student, make_user, skill, second_skill):
        other = make_user("student", instructor=instructor)
        result = assignments.assign_skills(
            instructor,
            [skill.id, second_skill.id],
            [StudentTarget(student.id, 2, "2026-12-01"), StudentTarget(other.id)],
        )
        assert result.created == 4
        assert result.skipped == 0

        assignment = assignments_repository.get_assignment(skill.id, student.id)
        assert assignment.required_submissions == 2
        assert assignment.due_date == "2026-12-01"
        assert assignment.status == "pending"

    def test_existing_pairs_are_skipped(self, instructor, student, skill, second_skill):
        """Re-assigning leaves existing assignments untouched."""
        assignments.assign_skills(instructor, [skill.id], [StudentTarget(student.id, 3)])
        result = assignments.assign_skills(
            instructor, [skill.id, second_skill.id], [StudentTarget(student.id, 1)]
        )
        assert result.created == 1
        assert result.skipped == 1
        assert assignments_repository.get_assignment(skill.id, student.id).required_submissions == 3

    def test_unaffiliated_student(self, instructor, make_user, skill):
        stranger = make_user("student")
        with pytest.raises(PermissionDeniedError):
            assignments.assign_skills(instructor, [skill.id], [StudentTarget(stranger.id)])

    def test_unknown_skill(self, instructor, student):
        with pytest.raises(InvalidInputError, match="Unknown skill"):
            assignments.assign_skills(instructor, ["missing"], [StudentTarget(student.id)])

    def test_empty_selection(self, instructor, student, skill):
        with pytest.raises(InvalidInputError):
            assignments.assign_skills(instructor, [], [StudentTarget(student.id)])
        with pytest.raises(InvalidInputError):
            assignments.assign_skills(instructor, [skill.id], [])

    def test_invalid_settings(self, instructor, student, skill):
        with pytest.raises(InvalidInputError):
            assignments.assign_skills(instructor, [skill.id], [StudentTarget(student.id, 0)])
        with pytest.raises(InvalidInputError):
            assignments.assign_skills(
                instructor, [skill.id], [StudentTarget(student.id, 1, "next week")]
            )

    def test_students_cannot_assign(self, student, skill):
        with pytest.raises(PermissionDeniedError):
            assignments.assign_skills(student, [skill.id], [StudentTarget(student.id)])


class TestUnassignSkills:
    """Tests for unassign_skills."""

    def test_removes_assignments(self, instructor, student, skill, second_skill):
        assignments.assign_skills(
            instructor, [skill.id, second_skill.id], [StudentTarget(student.id)]
        )
        removed = assignments.unassign_skills(instructor, [skill.id, "missing"], student.id)
        assert removed == 1
        assert assignments_repository.get_assignment(skill.id, student.id) is None
        assert assignments_repository.get_assignment(second_skill.id, student.id) is not None


class TestListStudentsForSkills:
    """Tests for list_students_for_skills."""

    def test_split_assigned_and_unassigned(self, instructor, student, make_user, skill):
        other = make_user("student", instructor=instructor)
        assignments.assign_skills(instructor, [skill.id], [StudentTarget(student.id, 2)])

        listing = assignments.list_students_for_skills(instructor, [skill.id])
        assert [r.student.id for r in listing.assigned] == [student.id]
        assert [r.student.id for r in listing.unassigned] == [other.id]
        row = listing.assigned[0]
        assert row.assignments[0].progress_label == "0/2"
        assert listing.has_more is False

    def test_class_filter_before_paging(self, instructor, make_user, skill):
        """Only enrolled students are paged when a class is selected."""
        load_app_config().assignments.page_size = 2

        cohort = classes.create_class(instructor, "Cohort")
        members = [
            make_user("student", full_name=f"Zed {i}", instructor=instructor) for i in range(3)
        ]
        for _ in range(3):
            make_user("student", full_name="Aaron Outside", instructor=instructor)
        for member in members:
            classes.enroll_student(instructor, cohort.id, member.id)

        first = assignments.list_students_for_skills(instructor, [skill.id], class_id=cohort.id)
        second = assignments.list_students_for_skills(
            instructor, [skill.id], class_id=cohort.id, page=2
        )
        assert len(first.unassigned) == 2
        assert first.has_more is True
        assert len(second.unassigned) == 1
        assert second.has_more is False
        ids = {r.student.id for r in first.unassigned + second.unassigned}
        assert ids == {m.id for m in members}

    def test_search_by_name(self, instructor, student, make_user, skill):
        make_user("student", full_name="Other Person", instructor=instructor)
        listing = assignments.list_students_for_skills(instructor, [skill.id], search="sam")
        assert [r.student.id for r in listing.unassigned] == [student.id]

    def test_invalid_page(self, instructor, skill):
        with pytest.raises(InvalidInputError):
            assignments.list_students_for_skills(instructor, [skill.id], page=0)


class TestExpireOverdue:
    """Tests for expire_overdue_assignments."""

    def test_expires_only_past_pending(self, instructor, student, make_user, skill, second_skill):
        assignments.assign_skills(
            instructor, [skill.id], [StudentTarget(student.id, 1, "2026-01-01")]
        )
        assignments.assign_skills(
            instructor, [second_skill.id], [StudentTarget(student.id, 1, "2026-03-01")]
        )
        expired = assignments.expire_overdue_assignments(today=date(2026, 2, 1))
        assert expired == 1
        assert assignments_repository.get_assignment(skill.id, student.id).status == "expired"
        assert assignments_repository.get_assignment(second_skill.id, student.id).status == "pending"
