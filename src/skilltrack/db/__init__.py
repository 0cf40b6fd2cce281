"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions per table group (profiles, skills, classes,
  assignments, skill logs, affiliations, auth)
"""

from skilltrack.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
