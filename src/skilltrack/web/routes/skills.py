"""Skill template and form endpoints."""

from fastapi import APIRouter, Depends, Query, Request, Response, status

from skilltrack.core import skills
from skilltrack.core.auth import CurrentUser
from skilltrack.core.errors import QuestionImportError
from skilltrack.core.form_schema import render_form
from skilltrack.core.question_importer import (
    SAMPLE_TEMPLATE_CSV,
    TEMPLATE_FILENAME,
    parse_questions_csv,
)
from skilltrack.web.deps import get_current_user
from skilltrack.web.schemas import (
    FormFieldResponse,
    FormSchemaModel,
    QuestionImportResponse,
    SkillFormResponse,
    SkillListResponse,
    SkillResponse,
    SkillWrite,
)

router = APIRouter(prefix="/api/skills", tags=["skills"])


def _schema_payload(body: SkillWrite) -> dict | None:
    if body.form_schema is None:
        return None
    return body.form_schema.model_dump(exclude_none=True)


@router.get("", response_model=SkillListResponse)
async def list_skills(user: CurrentUser = Depends(get_current_user)) -> SkillListResponse:
    """List skills; non-admins see templates only."""
    items = [SkillResponse.model_validate(s) for s in skills.list_skills(user)]
    return SkillListResponse(skills=items, count=len(items))


@router.post("", response_model=SkillResponse, status_code=status.HTTP_201_CREATED)
async def create_skill(
    body: SkillWrite,
    user: CurrentUser = Depends(get_current_user),
) -> SkillResponse:
    skill = skills.create_skill(
        user,
        name=body.name,
        description=body.description,
        category_id=body.category_id,
        form_schema=_schema_payload(body),
        verification_type=body.verification_type,
        subcategory_id=body.subcategory_id,
    )
    return SkillResponse.model_validate(skill)


@router.get("/import-template")
async def download_import_template(user: CurrentUser = Depends(get_current_user)) -> Response:
    """Download the sample question CSV."""
    return Response(
        content=SAMPLE_TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.get("/{skill_id}", response_model=SkillResponse)
async def get_skill(
    skill_id: str,
    user: CurrentUser = Depends(get_current_user),
) -> SkillResponse:
    return SkillResponse.model_validate(skills.get_skill(skill_id))


@router.put("/{skill_id}", response_model=SkillResponse)
async def update_skill(
    skill_id: str,
    body: SkillWrite,
    user: CurrentUser = Depends(get_current_user),
) -> SkillResponse:
    skill = skills.update_skill(
        user,
        skill_id,
        name=body.name,
        description=body.description,
        category_id=body.category_id,
        form_schema=_schema_payload(body),
        verification_type=body.verification_type,
        subcategory_id=body.subcategory_id,
    )
    return SkillResponse.model_validate(skill)


@router.delete("/{skill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_skill(
    skill_id: str,
    user: CurrentUser = Depends(get_current_user),
) -> None:
    skills.delete_skill(user, skill_id)


@router.get("/{skill_id}/form", response_model=SkillFormResponse)
async def get_skill_form(
    skill_id: str,
    user: CurrentUser = Depends(get_current_user),
) -> SkillFormResponse:
    """Render a skill's verification form as input controls."""
    skill, schema = skills.get_skill_form(skill_id)
    return SkillFormResponse(
        skill_id=skill.id,
        skill_name=skill.name,
        verification_type=skill.verification_type,
        fields=[FormFieldResponse.model_validate(f) for f in render_form(schema)],
    )


@router.post("/{skill_id}/questions/import", response_model=QuestionImportResponse)
async def import_questions(
    skill_id: str,
    request: Request,
    append: bool = Query(default=False),
    user: CurrentUser = Depends(get_current_user),
) -> QuestionImportResponse:
    """Import questions from a CSV request body (``text/csv``).

    Replaces the skill's questions unless ``append`` is set.
    """
    raw = await request.body()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise QuestionImportError("The file must be UTF-8 encoded CSV") from e

    questions = parse_questions_csv(text)
    schema = skills.attach_questions(user, skill_id, questions, append=append)
    return QuestionImportResponse(
        skill_id=skill_id,
        imported=len(questions),
        total=len(schema.questions),
        form_schema=FormSchemaModel.model_validate(schema),
    )
