"""Client-side session: who is signed in and what they may see"""

import logging
from typing import Iterable, Optional

from ..domain.profiles.schemas import ProfileResponse
from ..errors import GatewayFailure
from ..role_guard import GuardOutcome, evaluate
from .api import MedibookClient

logger = logging.getLogger(__name__)


class SessionContext:
    """
    Holds the signed-in account for one client.

    A new context is loading until `initialize()` finishes, so guarded
    surfaces wait instead of redirecting to the login page.
    """

    def __init__(self, client: MedibookClient):
        self.client = client
        self.account: Optional[ProfileResponse] = None
        self.loading = True

    @property
    def role(self) -> Optional[str]:
        return self.account.role if self.account else None

    def initialize(self) -> Optional[ProfileResponse]:
        """Load the profile behind the client's token; no token means signed out"""
        self.loading = True
        try:
            self.account = self._load() if self.client.token else None
        finally:
            self.loading = False
        return self.account

    def refresh(self) -> Optional[ProfileResponse]:
        """
        Reload the profile after it changed, e.g. a role promotion.

        A failed reload raises and keeps the account that was loaded before.
        """
        if self.account is None:
            return None
        try:
            self.account = self.client.me()
        except GatewayFailure as e:
            logger.warning(f"⚠️ Profile refresh failed, keeping current session: {e.detail}")
            raise
        return self.account

    def clear(self) -> None:
        """Sign out"""
        self.client.set_token(None)
        self.account = None
        self.loading = False

    def guard(self, allowed_roles: Optional[Iterable[str]] = None) -> GuardOutcome:
        return evaluate(self.account, allowed_roles, loading=self.loading)

    def _load(self) -> Optional[ProfileResponse]:
        try:
            return self.client.me()
        except GatewayFailure as e:
            logger.error(f"❌ Error loading profile: {e.detail}")
            return None
