"""Repository functions for skills, skill_categories and skill_subcategories.

form_schema is stored as JSON text and returned as a plain dict; parsing and
validation of questions lives in skilltrack.core.form_schema.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from skilltrack.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class SubcategoryRecord:
    """Subcategory record from database."""

    id: str
    category_id: str
    name: str
    description: str


@dataclass
class CategoryRecord:
    """Category record with its subcategories."""

    id: str
    name: str
    description: str
    created_at: str
    subcategories: list[SubcategoryRecord] = field(default_factory=list)


@dataclass
class SkillRecord:
    """Skill record joined with category names."""

    id: str
    name: str
    description: str
    category_id: str
    category_name: str
    subcategory_id: str | None
    subcategory_name: str | None
    verification_type: str
    form_schema: dict[str, Any] | None
    is_template: bool
    template_id: str | None
    created_at: str
    updated_at: str


_SKILL_SELECT = """
    SELECT s.*, c.name AS category_name, sc.name AS subcategory_name
    FROM skills s
    JOIN skill_categories c ON c.id = s.category_id
    LEFT JOIN skill_subcategories sc ON sc.id = s.subcategory_id
"""


# =============================================================================
# CATEGORIES
# =============================================================================


def insert_category(
    name: str,
    description: str = "",
    subcategories: list[tuple[str, str]] | None = None,
) -> CategoryRecord:
    """Insert a category and its subcategories in one transaction.

    Args:
        name: Category name
        description: Category description
        subcategories: (name, description) pairs

    Returns:
        The inserted CategoryRecord
    """
    category_id = new_id()
    now = utc_now()
    subs: list[SubcategoryRecord] = []

    with get_db() as conn:
        conn.execute(
            "INSERT INTO skill_categories (id, name, description, created_at) VALUES (?, ?, ?, ?)",
            (category_id, name, description, now),
        )
        for sub_name, sub_description in subcategories or []:
            sub = SubcategoryRecord(
                id=new_id(),
                category_id=category_id,
                name=sub_name,
                description=sub_description,
            )
            conn.execute(
                "INSERT INTO skill_subcategories (id, category_id, name, description) VALUES (?, ?, ?, ?)",
                (sub.id, sub.category_id, sub.name, sub.description),
            )
            subs.append(sub)

    logger.debug("categories.inserted", category_id=category_id, subcategories=len(subs))

    return CategoryRecord(
        id=category_id,
        name=name,
        description=description,
        created_at=now,
        subcategories=subs,
    )


def get_category_by_id(category_id: str) -> CategoryRecord | None:
    """Get category (with subcategories) by ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM skill_categories WHERE id = ?", (category_id,)
        ).fetchone()
        if row is None:
            return None
        sub_rows = conn.execute(
            "SELECT * FROM skill_subcategories WHERE category_id = ? ORDER BY name",
            (category_id,),
        ).fetchall()

    return _row_to_category(row, sub_rows)


def get_all_categories() -> list[CategoryRecord]:
    """Get all categories with subcategories, ordered by name."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM skill_categories ORDER BY name"
        ).fetchall()
        sub_rows = conn.execute(
            "SELECT * FROM skill_subcategories ORDER BY name"
        ).fetchall()

    by_category: dict[str, list] = {}
    for sub in sub_rows:
        by_category.setdefault(sub["category_id"], []).append(sub)

    return [_row_to_category(row, by_category.get(row["id"], [])) for row in rows]


def get_subcategory_by_id(subcategory_id: str) -> SubcategoryRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM skill_subcategories WHERE id = ?", (subcategory_id,)
        ).fetchone()

    return _row_to_subcategory(row) if row else None


# =============================================================================
# SKILLS
# =============================================================================


def insert_skill(
    name: str,
    description: str,
    category_id: str,
    form_schema: dict[str, Any] | None,
    verification_type: str = "peer",
    subcategory_id: str | None = None,
    is_template: bool = True,
    template_id: str | None = None,
) -> str:
    """Insert a new skill.

    Returns:
        The new skill id

    Raises:
        sqlite3.IntegrityError: If category_id does not exist
    """
    skill_id = new_id()
    now = utc_now()

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO skills (
                id, name, description, category_id, subcategory_id,
                verification_type, form_schema, is_template, template_id,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                skill_id,
                name,
                description,
                category_id,
                subcategory_id,
                verification_type,
                json.dumps(form_schema) if form_schema is not None else None,
                int(is_template),
                template_id,
                now,
                now,
            ),
        )

    logger.debug("skills.inserted", skill_id=skill_id, is_template=is_template)
    return skill_id


def get_skill_by_id(skill_id: str) -> SkillRecord | None:
    """Get skill by ID."""
    with get_db() as conn:
        row = conn.execute(_SKILL_SELECT + " WHERE s.id = ?", (skill_id,)).fetchone()

    return _row_to_skill(row) if row else None


def get_skills_by_ids(skill_ids: list[str]) -> list[SkillRecord]:
    """Get skills for the given ids (order not preserved)."""
    if not skill_ids:
        return []
    placeholders = ", ".join("?" for _ in skill_ids)
    with get_db() as conn:
        rows = conn.execute(
            _SKILL_SELECT + f" WHERE s.id IN ({placeholders})", skill_ids
        ).fetchall()

    return [_row_to_skill(row) for row in rows]


def get_all_skills(templates_only: bool = False) -> list[SkillRecord]:
    """Get all skills ordered by name.

    Args:
        templates_only: Only return skill templates
    """
    sql = _SKILL_SELECT
    if templates_only:
        sql += " WHERE s.is_template = 1"
    sql += " ORDER BY s.name"

    with get_db() as conn:
        rows = conn.execute(sql).fetchall()

    return [_row_to_skill(row) for row in rows]


def update_skill(
    skill_id: str,
    name: str,
    description: str,
    category_id: str,
    form_schema: dict[str, Any] | None,
    verification_type: str,
    subcategory_id: str | None = None,
) -> bool:
    """Update an existing skill.

    Returns:
        True if updated, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE skills SET
                name = ?,
                description = ?,
                category_id = ?,
                subcategory_id = ?,
                verification_type = ?,
                form_schema = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                name,
                description,
                category_id,
                subcategory_id,
                verification_type,
                json.dumps(form_schema) if form_schema is not None else None,
                utc_now(),
                skill_id,
            ),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("skills.updated", skill_id=skill_id)
    return updated


def update_form_schema(skill_id: str, form_schema: dict[str, Any]) -> bool:
    """Replace only the form schema of a skill."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE skills SET form_schema = ?, updated_at = ? WHERE id = ?",
            (json.dumps(form_schema), utc_now(), skill_id),
        )

    return cursor.rowcount > 0


def delete_skill(skill_id: str) -> bool:
    """Delete skill by ID.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM skills WHERE id = ?", (skill_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("skills.deleted", skill_id=skill_id)

    return deleted


def _row_to_skill(row) -> SkillRecord:
    """Convert database row to SkillRecord."""
    return SkillRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        category_id=row["category_id"],
        category_name=row["category_name"],
        subcategory_id=row["subcategory_id"],
        subcategory_name=row["subcategory_name"],
        verification_type=row["verification_type"],
        form_schema=json.loads(row["form_schema"]) if row["form_schema"] else None,
        is_template=bool(row["is_template"]),
        template_id=row["template_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_subcategory(row) -> SubcategoryRecord:
    return SubcategoryRecord(
        id=row["id"],
        category_id=row["category_id"],
        name=row["name"],
        description=row["description"],
    )


def _row_to_category(row, sub_rows) -> CategoryRecord:
    return CategoryRecord(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        created_at=row["created_at"],
        subcategories=[_row_to_subcategory(sub) for sub in sub_rows],
    )
