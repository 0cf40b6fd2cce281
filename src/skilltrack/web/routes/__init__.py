"""Route handlers for the Web API."""

from skilltrack.web.routes.admin import router as admin_router
from skilltrack.web.routes.affiliations import router as affiliations_router
from skilltrack.web.routes.assignments import router as assignments_router
from skilltrack.web.routes.auth import router as auth_router
from skilltrack.web.routes.categories import router as categories_router
from skilltrack.web.routes.classes import router as classes_router
from skilltrack.web.routes.health import router as health_router
from skilltrack.web.routes.logs import router as logs_router
from skilltrack.web.routes.profile import router as profile_router
from skilltrack.web.routes.progress import router as progress_router
from skilltrack.web.routes.reports import router as reports_router
from skilltrack.web.routes.skills import router as skills_router

__all__ = [
    "admin_router",
    "affiliations_router",
    "assignments_router",
    "auth_router",
    "categories_router",
    "classes_router",
    "health_router",
    "logs_router",
    "profile_router",
    "progress_router",
    "reports_router",
    "skills_router",
]
