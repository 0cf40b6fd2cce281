"""Request dependencies: bearer-token authentication and role guards."""

from __future__ import annotations

from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from skilltrack.core.auth import CurrentUser, require_role, resolve_session
from skilltrack.core.errors import AuthError

_bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> CurrentUser:
    """Resolve ``Authorization: Bearer <token>`` to the calling user."""
    if credentials is None or not credentials.credentials:
        raise AuthError("Not authenticated")
    return resolve_session(credentials.credentials)


def require_roles(*roles: str) -> Callable[[CurrentUser], CurrentUser]:
    """Dependency factory that admits only the given roles."""

    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        require_role(user, *roles)
        return user

    return dependency


require_student = require_roles("student")
require_instructor = require_roles("instructor")
require_admin = require_roles("admin")
