from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable

from .errors import AuthorizationDenied

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    UNKNOWN = "unknown"
    AUTHORIZED = "authorized"
    DENIED = "denied"


class AuthorizationGate:
    """
    Tracks whether reminders may be delivered.

    UNKNOWN -> AUTHORIZED | DENIED happens only through request_authorization().
    refresh_status() can revoke (AUTHORIZED -> DENIED) but never grants: a
    DENIED gate whose probe reports permission again goes back to UNKNOWN and
    waits for the next explicit request.
    """

    def __init__(
        self,
        prompt: Callable[[], Awaitable[bool]],
        probe: Callable[[], Awaitable[bool]],
    ):
        self._prompt = prompt
        self._probe = probe
        self.state = AuthState.UNKNOWN

    @property
    def is_authorized(self) -> bool:
        return self.state == AuthState.AUTHORIZED

    async def request_authorization(self) -> bool:
        if self.state != AuthState.UNKNOWN:
            return self.is_authorized

        try:
            granted = bool(await self._prompt())
        except AuthorizationDenied:
            granted = False
        except Exception:
            logger.warning("Notification permission prompt failed", exc_info=True)
            granted = False

        self.state = AuthState.AUTHORIZED if granted else AuthState.DENIED
        logger.info("Notification authorization: %s", self.state.value)
        return granted

    async def refresh_status(self) -> AuthState:
        allowed = bool(await self._probe())

        if self.state == AuthState.AUTHORIZED and not allowed:
            logger.info("Notification permission revoked")
            self.state = AuthState.DENIED
        elif self.state == AuthState.DENIED and allowed:
            self.state = AuthState.UNKNOWN

        return self.state
