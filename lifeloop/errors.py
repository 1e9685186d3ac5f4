from __future__ import annotations


class ReminderError(Exception):
    """Base class for reminder scheduling errors."""


class AuthorizationDenied(ReminderError):
    """The user declined (or revoked) permission to show notifications."""


class DeliveryAdapterError(ReminderError):
    """The notification service refused or failed a schedule/cancel call."""

    def __init__(self, message: str, delivery_id: str = ""):
        super().__init__(message)
        self.delivery_id = delivery_id
