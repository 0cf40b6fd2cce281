"""Tests for instructor reports and CSV exports."""

import csv
import io

import pytest

from skilltrack.core import classes, reports, skill_logs
from skilltrack.core.assignments import StudentTarget, assign_skills, list_assignment_rows
from skilltrack.core.errors import InvalidInputError
from skilltrack.core.reports import LogReportFilter


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


@pytest.fixture
def logged(instructor, student, make_user, skill, good_responses):
    """Two students with one log each; only the first is in a class."""
    other = make_user("student", full_name="Olive Other", instructor=instructor)
    cohort = classes.create_class(instructor, "Cohort A")
    classes.enroll_student(instructor, cohort.id, student.id)
    assign_skills(
        instructor, [skill.id], [StudentTarget(student.id, 2), StudentTarget(other.id, 2)]
    )
    skill_logs.submit_skill_log(student, skill.id, good_responses, "Pat Peer")
    other_log = skill_logs.submit_skill_log(other, skill.id, good_responses, "Pat Peer").log
    return cohort, other, other_log


class TestSkillLogReport:
    """Tests for skill_log_report."""

    def test_all_affiliated_logs(self, instructor, logged):
        assert len(reports.skill_log_report(instructor)) == 2

    def test_filters(self, instructor, student, logged):
        cohort, other, other_log = logged
        by_class = reports.skill_log_report(instructor, LogReportFilter(class_id=cohort.id))
        assert [log.student_id for log in by_class] == [student.id]

        by_name = reports.skill_log_report(instructor, LogReportFilter(search="olive"))
        assert [log.id for log in by_name] == [other_log.id]

        by_student = reports.skill_log_report(
            instructor, LogReportFilter(student_ids=[other.id])
        )
        assert [log.id for log in by_student] == [other_log.id]

    def test_status_filter(self, instructor, logged):
        _, _, other_log = logged
        skill_logs.review_log(instructor, other_log.id, "verified")
        verified = reports.skill_log_report(instructor, LogReportFilter(status="verified"))
        assert [log.id for log in verified] == [other_log.id]

    def test_unknown_status(self, instructor):
        with pytest.raises(InvalidInputError):
            reports.skill_log_report(instructor, LogReportFilter(status="lost"))

    def test_other_students_are_hidden(self, make_user, logged):
        """Student ids outside the caller's affiliation are ignored."""
        _, other, _ = logged
        stranger_instructor = make_user("instructor")
        result = reports.skill_log_report(
            stranger_instructor, LogReportFilter(student_ids=[other.id])
        )
        assert result == []


class TestExportLogsCsv:
    """Tests for export_logs_csv."""

    def test_columns_and_values(self, instructor, student, logged):
        rows = _rows(reports.export_logs_csv(reports.skill_log_report(instructor)))
        assert tuple(rows[0]) == reports.LOG_EXPORT_COLUMNS
        by_email = {row[1]: row for row in rows[1:]}

        mine = by_email["sam@example.com"]
        assert mine[0] == "Sam Student"
        assert mine[2:6] == ["Blood Pressure", "Clinical", "Cohort A", "submitted"]
        assert len(mine[6]) == 10
        assert mine[7:] == ["Pat Peer", "peer"]

        theirs = [row for email, row in by_email.items() if email != "sam@example.com"][0]
        assert theirs[4] == "No Class"

    def test_quotes_and_commas_survive(self, instructor, student, skill, make_user):
        """Values with commas and quotes stay in one field."""
        tricky = make_user("student", full_name='Lee, "Doc" Jr', instructor=instructor)
        assign_skills(instructor, [skill.id], [StudentTarget(tricky.id)])
        skill_logs.submit_skill_log(
            tricky,
            skill.id,
            {"q-steps": "a, b", "q-rating": "Good"},
            'Pat "P", Peer',
        )
        rows = _rows(reports.export_logs_csv(reports.skill_log_report(instructor)))
        assert rows[1][0] == 'Lee, "Doc" Jr'
        assert rows[1][7] == 'Pat "P", Peer'
        assert all(len(row) == len(reports.LOG_EXPORT_COLUMNS) for row in rows)

    def test_empty_export_has_header(self):
        assert _rows(reports.export_logs_csv([])) == [list(reports.LOG_EXPORT_COLUMNS)]


class TestExportAssignmentsCsv:
    """Tests for export_assignments_csv."""

    def test_progress_column(self, instructor, student, skill, logged):
        rows = _rows(reports.export_assignments_csv(list_assignment_rows(instructor, [skill.id])))
        assert tuple(rows[0]) == reports.ASSIGNMENT_EXPORT_COLUMNS
        by_name = {row[0]: row for row in rows[1:]}
        assert by_name["Sam Student"] == [
            "Sam Student",
            "sam@example.com",
            "Cohort A",
            "pending",
            "1/2",
        ]
        assert by_name["Olive Other"][2] == "No Class"
