"""Dynamic verification form engine.

A skill's form_schema is a list of typed questions. This module parses the
stored JSON into typed objects, checks the schema itself, validates a
student's responses against it and renders it into a list of form fields
for preview and filling.

Response types:
- text: free text
- number: numeric answer
- checkbox: yes/no
- multiple_choice: one of ``options``
- select_multiple: any subset of ``options``
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

import structlog

from skilltrack.core.errors import FormSchemaError, FormValidationError

logger = structlog.get_logger(__name__)

ResponseType = Literal["text", "number", "checkbox", "multiple_choice", "select_multiple"]

RESPONSE_TYPES: tuple[str, ...] = (
    "text",
    "number",
    "checkbox",
    "multiple_choice",
    "select_multiple",
)

CHOICE_TYPES = ("multiple_choice", "select_multiple")

# Control rendered for each response type
CONTROL_KINDS: dict[str, str] = {
    "text": "text_input",
    "number": "number_input",
    "checkbox": "checkbox",
    "multiple_choice": "radio_group",
    "select_multiple": "checkbox_group",
}

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class Question:
    """One question of a verification form."""

    id: str
    question_text: str
    response_type: str = "text"
    is_required: bool = True
    order_index: int = 0
    options: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if not self.options:
            data.pop("options")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int = 0) -> Question:
        options = data.get("options")
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            question_text=str(data.get("question_text") or ""),
            response_type=str(data.get("response_type") or "text"),
            is_required=_parse_flag(data.get("is_required"), index),
            order_index=_parse_order_index(data.get("order_index"), index),
            options=[str(o) for o in options] if options is not None else None,
        )


def _parse_flag(value: Any, index: int) -> bool:
    """Read is_required; missing means required."""
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE_STRINGS - {""}:
        return True
    if lowered in _FALSE_STRINGS - {""}:
        return False
    raise FormSchemaError([f"Question {index + 1}: is_required must be true or false"])


def _parse_order_index(value: Any, index: int) -> int:
    """Read order_index; missing falls back to list position."""
    if value is None:
        return index
    if isinstance(value, bool):
        raise FormSchemaError([f"Question {index + 1}: order_index must be an integer"])
    try:
        return int(value)
    except (TypeError, ValueError):
        raise FormSchemaError(
            [f"Question {index + 1}: order_index must be an integer"]
        ) from None


@dataclass
class FormSchema:
    """Ordered list of questions."""

    questions: list[Question] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"questions": [q.to_dict() for q in self.questions]}

    def get_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class FormField:
    """A question rendered as an input control."""

    question_id: str
    label: str
    control: str
    required: bool
    options: list[str] = field(default_factory=list)

    @property
    def display_label(self) -> str:
        return f"{self.label} *" if self.required else self.label


# =============================================================================
# PARSING
# =============================================================================


def parse_form_schema(data: dict[str, Any] | list[dict[str, Any]] | None) -> FormSchema:
    """Parse stored form_schema JSON into a FormSchema.

    Args:
        data: None (empty form), a dict with a ``questions`` list, or the
            list of question dicts itself

    Returns:
        FormSchema with questions ordered by order_index

    Raises:
        FormSchemaError: If data has an unexpected shape
    """
    if data is None:
        return FormSchema()

    if isinstance(data, dict):
        raw_questions = data.get("questions") or []
    elif isinstance(data, list):
        raw_questions = data
    else:
        raise FormSchemaError([f"Unsupported form schema type: {type(data).__name__}"])

    if not isinstance(raw_questions, list):
        raise FormSchemaError(["'questions' must be a list"])

    questions: list[Question] = []
    for index, raw in enumerate(raw_questions):
        if not isinstance(raw, dict):
            raise FormSchemaError([f"Question {index + 1} is not an object"])
        questions.append(Question.from_dict(raw, index))

    # sorted() is stable, so equal order_index keeps input order
    questions = sorted(questions, key=lambda q: q.order_index)
    return FormSchema(questions=questions)


def validate_form_schema(schema: FormSchema) -> None:
    """Check a schema for structural problems.

    Raises:
        FormSchemaError: Listing every problem found
    """
    problems: list[str] = []
    seen_ids: set[str] = set()

    for position, question in enumerate(schema.questions, start=1):
        label = f"Question {position}"
        if not question.question_text.strip():
            problems.append(f"{label}: question text is empty")
        if question.id in seen_ids:
            problems.append(f"{label}: duplicate id '{question.id}'")
        seen_ids.add(question.id)
        if question.response_type not in RESPONSE_TYPES:
            problems.append(
                f"{label}: unknown response type '{question.response_type}'"
            )
        elif question.response_type in CHOICE_TYPES and not question.options:
            problems.append(f"{label}: {question.response_type} requires options")

    if problems:
        raise FormSchemaError(problems)


def reindex(questions: list[Question], start: int = 0) -> list[Question]:
    """Assign consecutive order_index values in list order."""
    for offset, question in enumerate(questions):
        question.order_index = start + offset
    return questions


# =============================================================================
# RESPONSE VALIDATION
# =============================================================================


def _is_answered(value: Any) -> bool:
    # 0 and False are answers; only missing, blank or empty values are not
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def _coerce_checkbox(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError("must be true or false")


def _coerce_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ValueError("must be a number") from None


def _coerce_value(question: Question, value: Any) -> Any:
    """Convert a raw response to the question's type.

    Raises:
        ValueError: With a short reason when the value does not fit
    """
    kind = question.response_type
    options = question.options or []

    if kind == "checkbox":
        return _coerce_checkbox(value)
    if kind == "number":
        return _coerce_number(value)
    if kind == "multiple_choice":
        if not isinstance(value, str) or value not in options:
            raise ValueError("must be one of the listed options")
        return value
    if kind == "select_multiple":
        if not isinstance(value, list):
            raise ValueError("must be a list of options")
        invalid = [v for v in value if v not in options]
        if invalid:
            raise ValueError(f"contains unknown options: {', '.join(map(str, invalid))}")
        return list(value)
    return str(value)


def validate_responses(schema: FormSchema, responses: dict[str, Any]) -> dict[str, Any]:
    """Validate a response map against a form schema.

    Args:
        schema: Parsed form schema
        responses: Map of question id to raw answer

    Returns:
        Cleaned response map with values coerced to their question type.
        Unanswered optional questions are omitted.

    Raises:
        FormValidationError: With one message per failing question id
    """
    errors: dict[str, str] = {}
    cleaned: dict[str, Any] = {}

    for question_id in responses:
        if schema.get_question(question_id) is None:
            errors[question_id] = f"Unknown question '{question_id}'"

    for question in schema.questions:
        value = responses.get(question.id)

        if not _is_answered(value):
            if question.is_required:
                errors[question.id] = f"'{question.question_text}' is required"
            continue

        try:
            cleaned[question.id] = _coerce_value(question, value)
        except ValueError as e:
            errors[question.id] = f"'{question.question_text}' {e}"
            continue

        # A required checkbox must be ticked
        if question.is_required and cleaned[question.id] is False:
            errors[question.id] = f"'{question.question_text}' is required"

    if errors:
        logger.debug("form.responses_rejected", errors=len(errors))
        raise FormValidationError(errors)

    return cleaned


# =============================================================================
# RENDERING
# =============================================================================


def render_form(schema: FormSchema) -> list[FormField]:
    """Render questions into form fields in display order."""
    return [
        FormField(
            question_id=question.id,
            label=question.question_text,
            control=CONTROL_KINDS.get(question.response_type, "text_input"),
            required=question.is_required,
            options=list(question.options or [])
            if question.response_type in CHOICE_TYPES
            else [],
        )
        for question in schema.questions
    ]
