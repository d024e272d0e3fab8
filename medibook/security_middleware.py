"""
Security middleware for setting RLS context and hardening responses.
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from sqlalchemy import event, text
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.
    """

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return response

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"

        return response


_RLS_ACCOUNT_KEY = "rls_account_id"

_SET_CURRENT_USER = text("SELECT set_config('app.current_user_id', :user_id, true)")


def set_rls_context(db: Session, account_id: str) -> None:
    """
    Set the RLS context for a database session.

    Row-level security policies on the database can read
    `app.current_user_id`. The setting is transaction-local so it never
    outlives the connection's checkout; the session re-applies it at the start
    of every later transaction. Other dialects have no row-level security and
    are left untouched.

    Args:
        db: SQLAlchemy database session
        account_id: ID of the authenticated account
    """
    if db.get_bind().dialect.name != "postgresql":
        return

    db.info[_RLS_ACCOUNT_KEY] = str(account_id)
    try:
        db.execute(_SET_CURRENT_USER, {"user_id": str(account_id)})
        logger.debug(f"RLS context set for account_id={account_id}")
    except Exception as e:
        logger.error(f"Failed to set RLS context for account_id={account_id}: {e}")
        raise


@event.listens_for(Session, "after_begin")
def _reapply_rls_context(session, transaction, connection):
    account_id = session.info.get(_RLS_ACCOUNT_KEY)
    if account_id is None or connection.dialect.name != "postgresql":
        return
    connection.execute(_SET_CURRENT_USER, {"user_id": account_id})
