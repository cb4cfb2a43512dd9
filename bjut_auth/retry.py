import logging
from typing import Optional

from .adapters import DormitoryAdapter
from .models import Credentials, LoginOutcome

STALE_SESSION_CODE = "2"


class StaleSessionRetry:
    """Log out and log in again once when the eportal says we are already online."""

    def __init__(
        self,
        adapter: DormitoryAdapter,
        stale_code: str = STALE_SESSION_CODE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.adapter = adapter
        self.stale_code = stale_code
        self.logger = logger or logging.getLogger("bjut_auth.retry")

    @property
    def portal(self) -> str:
        return self.adapter.portal

    def login(self, credentials: Credentials) -> LoginOutcome:
        outcome = self.adapter.login(credentials)
        if outcome.success or outcome.code != self.stale_code:
            return outcome

        self.logger.info("Stale session detected (code %s), logging out and retrying once", outcome.code)
        self.adapter.logout()
        return self.adapter.login(credentials)

    def logout(self) -> LoginOutcome:
        return self.adapter.logout()
