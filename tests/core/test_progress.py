"""Tests for progress tracking."""

import pytest

from skilltrack.core import classes, progress, skill_logs, skills
from skilltrack.core.assignments import StudentTarget, assign_skills
from skilltrack.core.errors import PermissionDeniedError


class TestCalculateProgress:
    """Tests for calculate_progress."""

    @pytest.mark.parametrize(
        "completed,total,expected",
        [
            (0, 4, 0.0),
            (1, 4, 25.0),
            (4, 4, 100.0),
            (6, 4, 100.0),
            (3, 0, 0.0),
            (-2, 4, 0.0),
        ],
    )
    def test_values(self, completed, total, expected):
        assert progress.calculate_progress(completed, total) == expected


class TestStatusText:
    """Tests for status_text."""

    def test_expired_wins(self):
        assert progress.status_text("expired", 5, 1) == "Expired"

    def test_completed_status(self):
        assert progress.status_text("completed", 0, 3) == "Completed"

    def test_pending_by_count(self):
        """Pending assignments are labelled from the submission count."""
        assert progress.status_text("pending", 1, 3) == "Incomplete"
        assert progress.status_text("pending", 3, 3) == "Completed"


class TestMyProgress:
    """Tests for my_progress."""

    def test_counts_submissions(self, instructor, student, skill, good_responses):
        assign_skills(instructor, [skill.id], [StudentTarget(student.id, 4)])
        skill_logs.submit_skill_log(student, skill.id, good_responses, "Pat Peer")

        [item] = progress.my_progress(student)
        assert item.skill_name == "Blood Pressure"
        assert item.submission_count == 1
        assert item.percentage == 25.0
        assert item.status_label == "Incomplete"

    def test_no_assignments(self, student):
        assert progress.my_progress(student) == []

    def test_students_only(self, instructor):
        with pytest.raises(PermissionDeniedError):
            progress.my_progress(instructor)


class TestInstructorOverview:
    """Tests for instructor_overview."""

    @pytest.fixture
    def setup(self, admin, instructor, student, make_user, category, skill, good_responses):
        other_skill = skills.create_skill(
            admin, "Pulse", "", category.id, form_schema=skill.form_schema
        )
        mate = make_user("student", full_name="Mia Mate", instructor=instructor)
        cohort = classes.create_class(instructor, "Cohort A")
        classes.enroll_student(instructor, cohort.id, student.id)

        assign_skills(
            instructor, [skill.id, other_skill.id], [StudentTarget(student.id)]
        )
        skill_logs.submit_skill_log(student, skill.id, good_responses, "Pat Peer")
        return cohort, mate

    def test_completed_skills(self, instructor, student, setup):
        """One of two assigned skills done gives 50 percent."""
        overview = {o.student_id: o for o in progress.instructor_overview(instructor)}
        mine = overview[student.id]
        assert mine.class_name == "Cohort A"
        assert mine.completed_skills == 1
        assert mine.percentage == 50.0

        _, mate = setup
        assert overview[mate.id].skills == []
        assert overview[mate.id].percentage == 0.0

    def test_search(self, instructor, student, setup):
        result = progress.instructor_overview(instructor, search="mia")
        assert [o.full_name for o in result] == ["Mia Mate"]

    def test_class_filter(self, instructor, student, setup):
        cohort, _ = setup
        result = progress.instructor_overview(instructor, class_id=cohort.id)
        assert [o.student_id for o in result] == [student.id]

    def test_other_instructor_sees_nobody(self, make_user, setup):
        other = make_user("instructor")
        assert progress.instructor_overview(other) == []
