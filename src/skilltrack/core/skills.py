"""Skill templates and categories.

Admins author skill templates (with their verification forms) and the
category tree; everyone else reads them.
"""

from __future__ import annotations

from typing import Any

import structlog

from skilltrack.core.auth import CurrentUser, require_role
from skilltrack.core.errors import InvalidInputError, NotFoundError
from skilltrack.core.form_schema import (
    FormSchema,
    Question,
    parse_form_schema,
    reindex,
    validate_form_schema,
)
from skilltrack.db import logs_repository, skills_repository
from skilltrack.db.logs_repository import SkillUsage
from skilltrack.db.skills_repository import CategoryRecord, SkillRecord

logger = structlog.get_logger(__name__)

VERIFICATION_TYPES = ("peer", "instructor")
TOP_SKILLS_LIMIT = 4


# =============================================================================
# CATEGORIES
# =============================================================================


def list_categories() -> list[CategoryRecord]:
    return skills_repository.get_all_categories()


def create_category(
    user: CurrentUser,
    name: str,
    description: str = "",
    subcategories: list[tuple[str, str]] | None = None,
) -> CategoryRecord:
    """Create a category with optional (name, description) subcategories."""
    require_role(user, "admin")

    name = name.strip()
    if not name:
        raise InvalidInputError("Category name is required")

    subs = [(n.strip(), d.strip()) for n, d in subcategories or [] if n.strip()]
    category = skills_repository.insert_category(name, description.strip(), subs)
    logger.info(
        "category.created",
        category_id=category.id,
        subcategories=len(category.subcategories),
    )
    return category


# =============================================================================
# SKILLS
# =============================================================================


def list_skills(user: CurrentUser) -> list[SkillRecord]:
    """Admins see every skill; other roles see templates only."""
    return skills_repository.get_all_skills(templates_only=user.role != "admin")


def get_skill(skill_id: str) -> SkillRecord:
    skill = skills_repository.get_skill_by_id(skill_id)
    if skill is None:
        raise NotFoundError(f"Skill '{skill_id}' not found")
    return skill


def get_skill_form(skill_id: str) -> tuple[SkillRecord, FormSchema]:
    """Get a skill and its parsed verification form."""
    skill = get_skill(skill_id)
    return skill, parse_form_schema(skill.form_schema)


def _check_skill_fields(
    name: str,
    category_id: str,
    subcategory_id: str | None,
    verification_type: str,
    form_schema: dict[str, Any] | list | None,
) -> dict[str, Any]:
    """Validate skill fields and return the normalized form schema dict."""
    if not name.strip():
        raise InvalidInputError("Skill name is required")
    if verification_type not in VERIFICATION_TYPES:
        raise InvalidInputError(f"Unknown verification type '{verification_type}'")

    if skills_repository.get_category_by_id(category_id) is None:
        raise InvalidInputError(f"Category '{category_id}' does not exist")
    if subcategory_id is not None:
        subcategory = skills_repository.get_subcategory_by_id(subcategory_id)
        if subcategory is None or subcategory.category_id != category_id:
            raise InvalidInputError(
                f"Subcategory '{subcategory_id}' does not belong to category '{category_id}'"
            )

    schema = parse_form_schema(form_schema)
    validate_form_schema(schema)
    return schema.to_dict()


def create_skill(
    user: CurrentUser,
    name: str,
    description: str,
    category_id: str,
    form_schema: dict[str, Any] | list | None = None,
    verification_type: str = "peer",
    subcategory_id: str | None = None,
) -> SkillRecord:
    """Create a skill template.

    Raises:
        PermissionDeniedError: Caller is not an admin
        InvalidInputError: Missing name, unknown category or type
        FormSchemaError: Invalid questions
    """
    require_role(user, "admin")
    schema = _check_skill_fields(
        name, category_id, subcategory_id, verification_type, form_schema
    )

    skill_id = skills_repository.insert_skill(
        name=name.strip(),
        description=description.strip(),
        category_id=category_id,
        form_schema=schema,
        verification_type=verification_type,
        subcategory_id=subcategory_id,
        is_template=True,
    )
    logger.info(
        "skill.created",
        skill_id=skill_id,
        questions=len(schema["questions"]),
        admin_id=user.id,
    )
    return get_skill(skill_id)


def update_skill(
    user: CurrentUser,
    skill_id: str,
    name: str,
    description: str,
    category_id: str,
    form_schema: dict[str, Any] | list | None = None,
    verification_type: str = "peer",
    subcategory_id: str | None = None,
) -> SkillRecord:
    require_role(user, "admin")
    get_skill(skill_id)
    schema = _check_skill_fields(
        name, category_id, subcategory_id, verification_type, form_schema
    )

    skills_repository.update_skill(
        skill_id=skill_id,
        name=name.strip(),
        description=description.strip(),
        category_id=category_id,
        form_schema=schema,
        verification_type=verification_type,
        subcategory_id=subcategory_id,
    )
    logger.info("skill.updated", skill_id=skill_id, admin_id=user.id)
    return get_skill(skill_id)


def delete_skill(user: CurrentUser, skill_id: str) -> None:
    require_role(user, "admin")
    if not skills_repository.delete_skill(skill_id):
        raise NotFoundError(f"Skill '{skill_id}' not found")
    logger.info("skill.deleted", skill_id=skill_id, admin_id=user.id)


def attach_questions(
    user: CurrentUser,
    skill_id: str,
    questions: list[Question],
    append: bool = False,
) -> FormSchema:
    """Attach imported questions to a skill's form.

    Args:
        user: Calling admin
        skill_id: Target skill
        questions: Imported questions
        append: Keep existing questions and add after them (default replaces)

    Returns:
        The resulting form schema, re-indexed
    """
    require_role(user, "admin")
    return store_questions(skill_id, questions, append=append)


def store_questions(
    skill_id: str,
    questions: list[Question],
    append: bool = False,
) -> FormSchema:
    """Write questions into a skill's form without a role check (CLI use)."""
    _, current = get_skill_form(skill_id)

    combined = (current.questions if append else []) + list(questions)
    schema = FormSchema(questions=reindex(combined))
    validate_form_schema(schema)

    skills_repository.update_form_schema(skill_id, schema.to_dict())
    logger.info(
        "skill.questions_imported",
        skill_id=skill_id,
        imported=len(questions),
        total=len(schema.questions),
        append=append,
    )
    return schema


# =============================================================================
# STUDENT SHORTCUTS
# =============================================================================


def recent_skills(student_id: str, limit: int = TOP_SKILLS_LIMIT) -> list[SkillUsage]:
    """Most recently logged distinct skills."""
    return logs_repository.get_skill_usage(student_id)[:limit]


def frequent_skills(student_id: str, limit: int = TOP_SKILLS_LIMIT) -> list[SkillUsage]:
    """Most logged skills; ties keep the more recent first."""
    usage = logs_repository.get_skill_usage(student_id)
    return sorted(usage, key=lambda u: u.log_count, reverse=True)[:limit]
