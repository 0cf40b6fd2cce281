"""Tests for category, skill and question-import endpoints."""

import pytest

from skilltrack.core.question_importer import TEMPLATE_FILENAME

IMPORT_CSV = (
    "QuestionType,QuestionText,Required,Option1,Option2\n"
    "Text,Explain the procedure,TRUE,,\n"
    "Multiple Choice,Overall result,FALSE,Pass,Fail\n"
)


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


class TestCategories:
    """Tests for /api/categories."""

    def test_create_and_list(self, client, admin_headers, student, auth_headers):
        response = client.post(
            "/api/categories",
            json={"name": "Clinical", "subcategories": [{"name": "Vitals"}]},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["subcategories"][0]["name"] == "Vitals"

        listing = client.get("/api/categories", headers=auth_headers(student)).json()
        assert listing["count"] == 1

    def test_students_cannot_create(self, client, student, auth_headers):
        response = client.post(
            "/api/categories", json={"name": "Nope"}, headers=auth_headers(student)
        )
        assert response.status_code == 403


class TestSkills:
    """Tests for /api/skills."""

    def test_create_skill(self, client, admin_headers, category):
        response = client.post(
            "/api/skills",
            json={
                "name": "Wound Care",
                "category_id": category.id,
                "form_schema": {
                    "questions": [
                        {"id": "q1", "question_text": "Describe", "response_type": "text"}
                    ]
                },
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["is_template"] is True
        assert data["form_schema"]["questions"][0]["id"] == "q1"

    def test_invalid_form_lists_problems(self, client, admin_headers, category):
        """A choice question without options fails with the problem list."""
        response = client.post(
            "/api/skills",
            json={
                "name": "Broken",
                "category_id": category.id,
                "form_schema": {
                    "questions": [
                        {"question_text": "Pick one", "response_type": "multiple_choice"}
                    ]
                },
            },
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["errors"]

    def test_get_update_delete(self, client, admin_headers, skill, category):
        assert client.get(f"/api/skills/{skill.id}", headers=admin_headers).json()["name"] == (
            "Blood Pressure"
        )
        response = client.put(
            f"/api/skills/{skill.id}",
            json={
                "name": "BP",
                "category_id": category.id,
                "verification_type": "instructor",
                "form_schema": skill.form_schema,
            },
            headers=admin_headers,
        )
        assert response.json()["verification_type"] == "instructor"

        assert client.delete(f"/api/skills/{skill.id}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/skills/{skill.id}", headers=admin_headers).status_code == 404

    def test_render_form(self, client, student, skill, auth_headers):
        response = client.get(f"/api/skills/{skill.id}/form", headers=auth_headers(student))
        assert response.status_code == 200
        fields = response.json()["fields"]
        assert [f["question_id"] for f in fields] == ["q-steps", "q-rating", "q-safe"]
        assert fields[1]["options"] == ["Excellent", "Good", "Poor"]


class TestQuestionImport:
    """Tests for CSV question import."""

    def test_replace_questions(self, client, admin_headers, skill):
        response = client.post(
            f"/api/skills/{skill.id}/questions/import",
            content=IMPORT_CSV.encode("utf-8"),
            headers={**admin_headers, "Content-Type": "text/csv"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 2
        assert data["total"] == 2
        questions = data["form_schema"]["questions"]
        assert questions[1]["response_type"] == "multiple_choice"
        assert questions[1]["options"] == ["Pass", "Fail"]
        assert questions[1]["is_required"] is False

    def test_append_questions(self, client, admin_headers, skill):
        response = client.post(
            f"/api/skills/{skill.id}/questions/import?append=true",
            content=IMPORT_CSV.encode("utf-8"),
            headers={**admin_headers, "Content-Type": "text/csv"},
        )
        assert response.json()["total"] == 5

    def test_missing_columns(self, client, admin_headers, skill):
        response = client.post(
            f"/api/skills/{skill.id}/questions/import",
            content=b"QuestionText\nOnly text\n",
            headers={**admin_headers, "Content-Type": "text/csv"},
        )
        assert response.status_code == 400
        assert "Missing required columns" in response.json()["detail"]

    def test_not_utf8(self, client, admin_headers, skill):
        response = client.post(
            f"/api/skills/{skill.id}/questions/import",
            content=b"\xff\xfe\x00bad",
            headers={**admin_headers, "Content-Type": "text/csv"},
        )
        assert response.status_code == 400

    def test_instructors_cannot_import(self, client, instructor, skill, auth_headers):
        response = client.post(
            f"/api/skills/{skill.id}/questions/import",
            content=IMPORT_CSV.encode("utf-8"),
            headers={**auth_headers(instructor), "Content-Type": "text/csv"},
        )
        assert response.status_code == 403

    def test_download_template(self, client, admin_headers):
        response = client.get("/api/skills/import-template", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert TEMPLATE_FILENAME in response.headers["content-disposition"]
        assert response.text.startswith("QuestionType,QuestionText,Required")
