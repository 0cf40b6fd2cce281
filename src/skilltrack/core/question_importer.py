"""CSV question importer.

Maps spreadsheet rows (QuestionType, QuestionText, Required, Option1..Option8)
to form questions. Header matching is case-insensitive.
"""

from __future__ import annotations

import csv
import io
import uuid
from pathlib import Path
from typing import Iterable

import structlog

from skilltrack.core.errors import QuestionImportError
from skilltrack.core.form_schema import CHOICE_TYPES, Question

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = ("QuestionType", "QuestionText", "Required")
MAX_OPTIONS = 8

TEMPLATE_FILENAME = "skill_questions_template.csv"

SAMPLE_TEMPLATE_CSV = """QuestionType,QuestionText,Required,Option1,Option2,Option3,Option4,Option5,Option6,Option7,Option8
Multiple Choice,What technique was used for this skill?,true,Technique A,Technique B,Technique C,Technique D,,,,,
Multiple Choice,Rate the student's performance,true,Excellent,Good,Satisfactory,Needs Improvement,,,,
Multiple Choice,What level of supervision was required?,true,None,Minimal,Moderate,Significant,Constant,,,
Multiple Choice,How would you rate the student's preparation?,true,Excellent,Good,Fair,Poor,,,,
Select Multiple,Which safety protocols were followed?,true,Hand hygiene,PPE usage,Sterile technique,Equipment check,Patient identification,Documentation,Area preparation,Time out
Select Multiple,What challenges were encountered?,true,Technical difficulty,Equipment issues,Time constraints,Patient factors,Communication barriers,Resource limitations,,
Checkbox,Was the procedure completed successfully?,true,,,,,,,,
Text,Describe the steps taken to complete this skill,true,,,,,,,,
Number,How many attempts were needed?,true,,,,,,,,
Text,What challenges were encountered during the procedure?,true,,,,,,,,
Checkbox,Were all safety protocols followed?,true,,,,,,,,
Text,Provide feedback for improvement,true,,,,,,,,
"""

# (substrings, response_type), checked in order
_TYPE_PATTERNS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("multiple choice", "mc"), "multiple_choice"),
    (("select multiple", "select all"), "select_multiple"),
    (("checkbox", "yes/no"), "checkbox"),
    (("number",), "number"),
)

_REQUIRED_TRUE = {"true", "1", "yes"}
_REQUIRED_FALSE = {"false", "0", "no"}


def map_question_type(raw: str | None) -> str:
    """Map a free-text question type to a response type.

    Unrecognized or empty values map to 'text'.
    """
    lowered = (raw or "").strip().lower()
    for patterns, response_type in _TYPE_PATTERNS:
        if any(p in lowered for p in patterns):
            return response_type
    return "text"


def parse_required(raw: str | None) -> bool:
    """Parse the Required column; anything unrecognized means required."""
    lowered = (raw or "").strip().lower()
    if lowered in _REQUIRED_TRUE:
        return True
    if lowered in _REQUIRED_FALSE:
        return False
    return True


def _normalize_row(row: dict[str | None, str | list | None]) -> dict[str, str]:
    """Lower-case header keys and drop overflow cells."""
    normalized: dict[str, str] = {}
    for key, value in row.items():
        if key is None or isinstance(value, list):
            continue
        normalized[key.strip().lower()] = value or ""
    return normalized


def rows_to_questions(rows: list[dict[str, str]]) -> list[Question]:
    """Convert parsed CSV rows into questions.

    Args:
        rows: One dict per data row, keyed by header

    Returns:
        Questions with fresh ids and order_index equal to the row index

    Raises:
        QuestionImportError: If there are no rows or required columns are missing
    """
    if not rows:
        raise QuestionImportError("The file contains no data")

    normalized = [_normalize_row(row) for row in rows]

    present = set(normalized[0])
    missing = [col for col in REQUIRED_COLUMNS if col.lower() not in present]
    if missing:
        raise QuestionImportError(f"Missing required columns: {', '.join(missing)}")

    questions: list[Question] = []
    for index, row in enumerate(normalized):
        response_type = map_question_type(row.get("questiontype"))

        options: list[str] = []
        if response_type in CHOICE_TYPES:
            for i in range(1, MAX_OPTIONS + 1):
                value = row.get(f"option{i}", "").strip()
                if value:
                    options.append(value)

        questions.append(
            Question(
                id=str(uuid.uuid4()),
                question_text=row.get("questiontext", "").strip() or f"Question {index + 1}",
                response_type=response_type,
                is_required=parse_required(row.get("required")),
                order_index=index,
                options=options or None,
            )
        )

    logger.info("questions.imported", count=len(questions))
    return questions


def parse_questions_csv(text: str) -> list[Question]:
    """Parse CSV text into questions."""
    # utf-8-sig exports from spreadsheets keep the BOM in the first header
    text = text.lstrip("\ufeff")
    reader = csv.DictReader(io.StringIO(text))
    rows = [row for row in reader if _has_content(row.values())]
    return rows_to_questions(rows)


def import_questions_file(path: Path) -> list[Question]:
    """Read and parse a question CSV file.

    Raises:
        QuestionImportError: If the file is not a CSV or cannot be parsed
    """
    if path.suffix.lower() != ".csv":
        raise QuestionImportError(
            f"Unsupported file type '{path.suffix}'. Please upload a CSV file"
        )
    return parse_questions_csv(path.read_text(encoding="utf-8-sig"))


def _has_content(values: Iterable) -> bool:
    for value in values:
        if isinstance(value, list):
            if any(v and v.strip() for v in value):
                return True
        elif value and value.strip():
            return True
    return False
