"""Role-based access decisions shared by the API and the client session"""

import logging
from enum import Enum
from typing import Iterable, Optional

from fastapi import Depends, HTTPException

from .auth import get_current_account
from .models import Account

logger = logging.getLogger(__name__)


class GuardOutcome(str, Enum):
    LOADING = "loading"
    RENDER = "render"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_UNAUTHORIZED = "redirect_unauthorized"


def evaluate(
    account, allowed_roles: Optional[Iterable[str]] = None, loading: bool = False
) -> GuardOutcome:
    """
    Decide what a guarded surface does for the current identity.

    While the identity is still loading the decision is deferred. Without an
    allow-list any signed-in account is admitted.
    """
    if loading:
        return GuardOutcome.LOADING
    if account is None:
        return GuardOutcome.REDIRECT_LOGIN
    if allowed_roles is None:
        return GuardOutcome.RENDER
    if getattr(account, "role", None) in set(allowed_roles):
        return GuardOutcome.RENDER
    return GuardOutcome.REDIRECT_UNAUTHORIZED


def require_roles(*roles: str):
    """
    FastAPI dependency admitting only the given roles (any role when empty).

    Example usage:
        @router.get("/stats")
        async def stats(admin: Account = Depends(require_roles("admin"))):
            ...
    """
    allowed = roles or None

    async def guard(account: Account = Depends(get_current_account)) -> Account:
        outcome = evaluate(account, allowed)
        if outcome == GuardOutcome.REDIRECT_LOGIN:
            raise HTTPException(status_code=401, detail="Not authenticated")
        if outcome == GuardOutcome.REDIRECT_UNAUTHORIZED:
            logger.warning(f"⚠️ Account {account.id} with role {account.role} denied; requires {roles}")
            raise HTTPException(status_code=403, detail="You do not have access to this resource")
        return account

    return guard
