"""Domain exceptions.

Every service-layer failure derives from SkillTrackError; the web layer maps
each subclass to an HTTP status via ``status_code``.
"""

from __future__ import annotations


class SkillTrackError(Exception):
    """Base exception for SkillTrack domain errors."""

    status_code = 500


class NotFoundError(SkillTrackError):
    """Raised when a requested entity does not exist."""

    status_code = 404


class PermissionDeniedError(SkillTrackError):
    """Raised when the caller's role or ownership forbids the action."""

    status_code = 403


class AuthError(SkillTrackError):
    """Raised for failed sign-in or an invalid/expired session."""

    status_code = 401


class ConflictError(SkillTrackError):
    """Raised when the action collides with existing state."""

    status_code = 409


class InvalidInputError(SkillTrackError):
    """Raised when caller input is malformed."""

    status_code = 400


class FormSchemaError(InvalidInputError):
    """Raised when a form schema is structurally invalid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid form schema: " + "; ".join(problems))


class FormValidationError(InvalidInputError):
    """Raised when submitted responses do not satisfy a form schema."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(
            f"{len(errors)} response(s) failed validation: "
            + "; ".join(errors.values())
        )


class QuestionImportError(InvalidInputError):
    """Raised when a question CSV cannot be imported."""

    pass


class ServiceUnavailableError(SkillTrackError):
    """Raised when an outbound dependency cannot be reached."""

    status_code = 503
