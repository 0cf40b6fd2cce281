"""Pydantic schemas for the Web API.

Request bodies and response models. Response models read directly from the
repository dataclasses via ``from_attributes``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["student", "instructor", "admin"]
VerificationType = Literal["peer", "instructor"]


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


# =============================================================================
# AUTH & PROFILES
# =============================================================================


class SignUpRequest(BaseModel):
    email: str = Field(..., max_length=200)
    password: str = Field(..., max_length=200)
    full_name: str = Field(..., min_length=1, max_length=200)
    instructor_code: str | None = Field(default=None, max_length=32)


class SignInRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class PasswordUpdate(BaseModel):
    new_password: str


class ProfileResponse(BaseModel):
    """Public view of a profile (no password hash)."""

    id: str
    role: str
    full_name: str
    email: str
    instructor_code: str | None = None
    affiliated_instructor: str | None = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class SessionResponse(BaseModel):
    """Issued bearer session."""

    token: str
    expires_at: str
    profile: ProfileResponse
    impersonator_id: str | None = None

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    """The caller's effective profile and impersonator, if any."""

    profile: ProfileResponse
    impersonator: ProfileResponse | None = None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=200)


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# ADMIN
# =============================================================================


class UserCreate(BaseModel):
    email: str = Field(..., max_length=200)
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str
    role: Literal["instructor", "admin"]


class UserUpdate(BaseModel):
    """Admin update; omit ``affiliated_instructor`` to leave it unchanged."""

    full_name: str | None = Field(default=None, max_length=200)
    role: Role | None = None
    affiliated_instructor: str | None = None


class UserListResponse(BaseModel):
    users: list[ProfileResponse]
    count: int


class StudentSummaryResponse(BaseModel):
    profile: ProfileResponse
    instructor_name: str | None = None
    class_names: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class StudentSummaryListResponse(BaseModel):
    students: list[StudentSummaryResponse]
    count: int


# =============================================================================
# CATEGORIES & SKILLS
# =============================================================================


class SubcategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    subcategories: list[SubcategoryCreate] = Field(default_factory=list)


class SubcategoryResponse(BaseModel):
    id: str
    category_id: str
    name: str
    description: str

    model_config = {"from_attributes": True}


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: str
    created_at: str
    subcategories: list[SubcategoryResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]
    count: int


class QuestionSchema(BaseModel):
    """One form question as stored in form_schema."""

    id: str | None = None
    question_text: str
    response_type: str = "text"
    is_required: bool = True
    order_index: int = 0
    options: list[str] | None = None

    model_config = {"from_attributes": True}


class FormSchemaModel(BaseModel):
    questions: list[QuestionSchema] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class SkillWrite(BaseModel):
    """Create/update body for a skill template."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category_id: str
    subcategory_id: str | None = None
    verification_type: VerificationType = "peer"
    form_schema: FormSchemaModel | None = None


class SkillResponse(BaseModel):
    id: str
    name: str
    description: str
    category_id: str
    category_name: str
    subcategory_id: str | None = None
    subcategory_name: str | None = None
    verification_type: str
    form_schema: dict[str, Any] | None = None
    is_template: bool
    template_id: str | None = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class SkillListResponse(BaseModel):
    skills: list[SkillResponse]
    count: int


class FormFieldResponse(BaseModel):
    question_id: str
    label: str
    control: str
    required: bool
    options: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class SkillFormResponse(BaseModel):
    skill_id: str
    skill_name: str
    verification_type: str
    fields: list[FormFieldResponse]


class QuestionImportResponse(BaseModel):
    skill_id: str
    imported: int
    total: int
    form_schema: FormSchemaModel


class SkillUsageResponse(BaseModel):
    skill_id: str
    skill_name: str
    category_name: str
    log_count: int
    last_logged_at: str

    model_config = {"from_attributes": True}


class RecentSkillsResponse(BaseModel):
    recent: list[SkillUsageResponse]
    frequent: list[SkillUsageResponse]


# =============================================================================
# CLASSES
# =============================================================================


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    start_date: str | None = None
    end_date: str | None = None


class ClassResponse(BaseModel):
    id: str
    instructor_id: str
    name: str
    description: str
    start_date: str
    end_date: str
    archived: bool
    created_at: str
    student_count: int = 0

    model_config = {"from_attributes": True}


class ClassListResponse(BaseModel):
    classes: list[ClassResponse]
    count: int


class RosterResponse(BaseModel):
    class_id: str
    enrolled: list[ProfileResponse]
    available: list[ProfileResponse]

    model_config = {"from_attributes": True}


class ClassmateResponse(BaseModel):
    student_id: str
    full_name: str
    email: str
    class_id: str
    class_name: str

    model_config = {"from_attributes": True}


# =============================================================================
# ASSIGNMENTS
# =============================================================================


class StudentTargetSchema(BaseModel):
    student_id: str
    required_submissions: int = Field(default=1, ge=1)
    due_date: str | None = None


class AssignRequest(BaseModel):
    skill_ids: list[str] = Field(..., min_length=1)
    students: list[StudentTargetSchema] = Field(..., min_length=1)


class UnassignRequest(BaseModel):
    skill_ids: list[str] = Field(..., min_length=1)
    student_id: str


class AssignResponse(BaseModel):
    created: int
    skipped: int


class UnassignResponse(BaseModel):
    removed: int


class AssignmentResponse(BaseModel):
    id: str
    skill_id: str
    skill_name: str
    category_name: str
    student_id: str
    required_submissions: int
    due_date: str | None = None
    status: str
    created_at: str

    model_config = {"from_attributes": True}


class AssignmentProgressResponse(BaseModel):
    assignment: AssignmentResponse
    completed_submissions: int
    progress_label: str

    model_config = {"from_attributes": True}


class StudentRowResponse(BaseModel):
    student: ProfileResponse
    class_id: str | None = None
    class_name: str | None = None
    assignments: list[AssignmentProgressResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class AssignmentListingResponse(BaseModel):
    assigned: list[StudentRowResponse]
    unassigned: list[StudentRowResponse]
    page: int
    page_size: int
    has_more: bool

    model_config = {"from_attributes": True}


# =============================================================================
# SKILL LOGS
# =============================================================================


class SkillLogCreate(BaseModel):
    skill_id: str
    responses: dict[str, Any] = Field(default_factory=dict)
    evaluator_name: str = Field(..., max_length=200)
    evaluator_type: VerificationType | None = None
    instructor_signature: str | None = None
    classmate_id: str | None = None


class SkillLogResponse(BaseModel):
    id: str
    skill_id: str
    skill_name: str
    category_name: str
    student_id: str
    student_name: str
    student_email: str
    evaluated_student_id: str | None = None
    class_id: str | None = None
    class_name: str | None = None
    responses: dict[str, Any]
    status: str
    attempt_number: int
    evaluator_name: str
    evaluator_type: str
    instructor_signature: str | None = None
    created_at: str

    model_config = {"from_attributes": True}


class SkillLogListResponse(BaseModel):
    logs: list[SkillLogResponse]
    count: int


class SubmissionResponse(BaseModel):
    log: SkillLogResponse
    counted_submissions: int
    required_submissions: int
    assignment_completed: bool

    model_config = {"from_attributes": True}


class LogStatusUpdate(BaseModel):
    status: Literal["verified", "rejected"]


# =============================================================================
# PROGRESS
# =============================================================================


class SkillProgressResponse(BaseModel):
    skill_id: str
    skill_name: str
    category_name: str
    status: str
    status_label: str
    submission_count: int
    required_submissions: int
    percentage: float
    due_date: str | None = None

    model_config = {"from_attributes": True}


class StudentOverviewResponse(BaseModel):
    student_id: str
    full_name: str
    email: str
    class_id: str | None = None
    class_name: str | None = None
    completed_skills: int
    percentage: float
    skills: list[SkillProgressResponse]

    model_config = {"from_attributes": True}


# =============================================================================
# AFFILIATIONS
# =============================================================================


class AffiliationCreate(BaseModel):
    instructor_code: str = Field(..., min_length=1, max_length=32)


class AffiliationRequestResponse(BaseModel):
    id: str
    student_id: str
    student_name: str
    student_email: str
    instructor_id: str
    status: str
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
