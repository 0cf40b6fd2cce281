"""Core business logic.

Modules:
- errors: domain exception hierarchy
- form_schema: verification form parsing, validation and rendering
- question_importer: CSV question import and sample template
- auth: sessions, passwords, impersonation, role guards
- skills: skill templates and categories
- classes: classes and enrollments
- assignments: skill assignments and expiry
- skill_logs: log submission and review
- progress: progress calculation and overviews
- affiliations: student-instructor affiliation workflow
- accounts: account administration and own profile
- reports: log report and CSV exports
"""

__all__ = [
    "errors",
    "form_schema",
    "question_importer",
    "auth",
    "skills",
    "classes",
    "assignments",
    "skill_logs",
    "progress",
    "affiliations",
    "accounts",
    "reports",
]
