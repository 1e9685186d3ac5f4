from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


@dataclass(frozen=True)
class ReminderPayload:
    title: str
    body: str
    user_info: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Effect:
    """One call issued to the delivery adapter."""
    action: str  # "cancel" | "schedule"
    delivery_id: str
    trigger_at: Optional[datetime] = None
    payload: Optional[ReminderPayload] = None

    @classmethod
    def cancel(cls, delivery_id: str) -> "Effect":
        return cls(action="cancel", delivery_id=delivery_id)

    @classmethod
    def schedule(cls, delivery_id: str, trigger_at: datetime, payload: ReminderPayload) -> "Effect":
        return cls(action="schedule", delivery_id=delivery_id, trigger_at=trigger_at, payload=payload)


class DeliveryAdapter:
    """
    Local notification service.

    At most one pending trigger per identifier. schedule() of an identifier that
    is still pending raises DeliveryAdapterError, so callers cancel first.
    cancel() of an unknown identifier is a no-op.
    """

    async def schedule(self, delivery_id: str, trigger_at: datetime, payload: ReminderPayload) -> None:
        raise NotImplementedError

    async def cancel(self, delivery_id: str) -> None:
        raise NotImplementedError

    async def cancel_all(self) -> None:
        raise NotImplementedError
