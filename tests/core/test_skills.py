"""Tests for categories, skill templates and question attachment."""

import pytest

from skilltrack.core import skills
from skilltrack.core.errors import (
    FormSchemaError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from skilltrack.core.form_schema import Question
from skilltrack.db import skills_repository


class TestCategories:
    """Tests for create_category and list_categories."""

    def test_create_with_subcategories(self, category):
        assert category.name == "Clinical"
        assert [s.name for s in category.subcategories] == ["Vitals"]
        assert [c.id for c in skills.list_categories()] == [category.id]

    def test_only_admins(self, instructor):
        with pytest.raises(PermissionDeniedError):
            skills.create_category(instructor, "Nope")

    def test_name_required(self, admin):
        with pytest.raises(InvalidInputError):
            skills.create_category(admin, "  ")


class TestCreateSkill:
    """Tests for create_skill."""

    def test_creates_template(self, skill, category):
        """New skills are templates with their form stored."""
        assert skill.is_template is True
        assert skill.category_name == "Clinical"
        assert len(skill.form_schema["questions"]) == 3

    @pytest.mark.parametrize("role", ["student", "instructor"])
    def test_only_admins(self, make_user, category, role):
        user = make_user(role)
        with pytest.raises(PermissionDeniedError):
            skills.create_skill(user, "X", "", category.id)

    def test_unknown_category(self, admin):
        with pytest.raises(InvalidInputError, match="does not exist"):
            skills.create_skill(admin, "X", "", "missing")

    def test_subcategory_must_belong_to_category(self, admin, category):
        other = skills.create_category(admin, "Other", subcategories=[("Misc", "")])
        with pytest.raises(InvalidInputError, match="does not belong"):
            skills.create_skill(
                admin, "X", "", category.id, subcategory_id=other.subcategories[0].id
            )

    def test_invalid_form_is_rejected(self, admin, category):
        """Choice questions without options fail."""
        with pytest.raises(FormSchemaError):
            skills.create_skill(
                admin,
                "X",
                "",
                category.id,
                form_schema=[
                    {"id": "a", "question_text": "Pick", "response_type": "multiple_choice"}
                ],
            )

    def test_unknown_verification_type(self, admin, category):
        with pytest.raises(InvalidInputError):
            skills.create_skill(admin, "X", "", category.id, verification_type="robot")


class TestUpdateAndDelete:
    """Tests for update_skill and delete_skill."""

    def test_update_fields(self, admin, skill, category):
        updated = skills.update_skill(
            admin,
            skill.id,
            name="BP Reading",
            description="Updated",
            category_id=category.id,
            form_schema=skill.form_schema,
            verification_type="instructor",
        )
        assert updated.name == "BP Reading"
        assert updated.verification_type == "instructor"

    def test_delete(self, admin, skill):
        skills.delete_skill(admin, skill.id)
        with pytest.raises(NotFoundError):
            skills.get_skill(skill.id)

    def test_delete_requires_admin(self, instructor, skill):
        with pytest.raises(PermissionDeniedError):
            skills.delete_skill(instructor, skill.id)


class TestListSkills:
    """Tests for list_skills."""

    def test_non_admins_see_templates_only(self, admin, student, skill, category):
        """Derived (non-template) skills are hidden from non-admins."""
        skills_repository.insert_skill(
            name="Derived",
            description="",
            category_id=category.id,
            form_schema=None,
            is_template=False,
            template_id=skill.id,
        )
        assert [s.name for s in skills.list_skills(student)] == ["Blood Pressure"]
        assert len(skills.list_skills(admin)) == 2


class TestSkillForm:
    """Tests for get_skill_form and attach_questions."""

    def test_form_is_ordered(self, skill):
        _, schema = skills.get_skill_form(skill.id)
        assert [q.id for q in schema.questions] == ["q-steps", "q-rating", "q-safe"]

    def test_attach_replaces_by_default(self, admin, skill):
        schema = skills.attach_questions(
            admin, skill.id, [Question(id="new", question_text="Only")]
        )
        assert [q.id for q in schema.questions] == ["new"]
        _, stored = skills.get_skill_form(skill.id)
        assert [q.id for q in stored.questions] == ["new"]

    def test_attach_appends_and_reindexes(self, admin, skill):
        """Appended questions follow the existing ones."""
        schema = skills.attach_questions(
            admin,
            skill.id,
            [Question(id="extra", question_text="Extra", order_index=0)],
            append=True,
        )
        assert [q.id for q in schema.questions][-1] == "extra"
        assert [q.order_index for q in schema.questions] == [0, 1, 2, 3]

    def test_attach_requires_admin(self, instructor, skill):
        with pytest.raises(PermissionDeniedError):
            skills.attach_questions(instructor, skill.id, [])
