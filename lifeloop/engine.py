from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from .authorization import AuthorizationGate, AuthState
from .delivery import DeliveryAdapter, Effect
from .errors import DeliveryAdapterError
from .models import ReminderSubject, SkincareMode, SubjectKind, delivery_id
from .periods import now_local
from .policy import Armed, Suppressed, SuppressReason, TriggerDecision, decide, payload_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    delivery_id: str
    decision: TriggerDecision
    effects: List[Effect] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReminderEngine:
    """
    Converges the delivery adapter to the policy decision of one subject at a time.

    The engine owns all delivery state and never reads it back: every pass
    cancels the identifier first and schedules again only when the policy says
    Armed, so replays are harmless. Passes for the same identifier are
    serialized in call order; different identifiers run concurrently.
    A reset waits for passes already in flight and holds back new ones.
    """

    def __init__(
        self,
        gate: AuthorizationGate,
        delivery: DeliveryAdapter,
        clock: Callable[[], datetime] = now_local,
        skincare_mode: SkincareMode = SkincareMode.SLOT,
    ):
        self.gate = gate
        self.delivery = delivery
        self.clock = clock
        self.skincare_mode = skincare_mode

        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}
        self._entry = asyncio.Lock()
        self._applied: Dict[str, Armed] = {}
        self._auth_lock = asyncio.Lock()
        self._auth_requested = False

    # ---------- Public API ----------
    async def reconcile(self, subject: ReminderSubject, deleted: bool = False) -> ReconcileResult:
        did = delivery_id(subject.kind, subject.key)
        async with self._serialized(did):
            return await self._reconcile_locked(did, subject, deleted)

    async def reconcile_many(self, subjects: Iterable[ReminderSubject]) -> List[ReconcileResult]:
        return list(await asyncio.gather(*(self.reconcile(s) for s in subjects)))

    async def reconcile_slots(self, slots: Iterable[ReminderSubject]) -> List[ReconcileResult]:
        """Activation / periodic pass over the fixed slots (day rollover)."""
        return await self.reconcile_many(s for s in slots if s.kind == SubjectKind.SLOT)

    async def request_authorization(self) -> bool:
        """Explicit user action: prompt now if the gate is still undecided."""
        async with self._auth_lock:
            self._auth_requested = True
            return await self.gate.request_authorization()

    async def reset(self) -> Optional[str]:
        """Drop every pending reminder (full reset)."""
        async with self._entry, contextlib.AsyncExitStack() as stack:
            for did in sorted(self._locks):
                await stack.enter_async_context(self._hold(did, self._register(did)))

            self._applied.clear()
            try:
                await self.delivery.cancel_all()
            except DeliveryAdapterError as e:
                logger.warning("cancel_all failed: %s", e)
                return str(e)
        return None

    def set_skincare_mode(self, mode: SkincareMode) -> None:
        self.skincare_mode = mode

    def mark_delivered(self, did: str) -> None:
        self._applied.pop(did, None)

    def pending(self) -> Dict[str, datetime]:
        return {did: d.trigger_at for did, d in self._applied.items()}

    # ---------- Internals ----------
    def _register(self, did: str) -> asyncio.Lock:
        lock = self._locks.get(did)
        if lock is None:
            lock = self._locks[did] = asyncio.Lock()
        self._holders[did] = self._holders.get(did, 0) + 1
        return lock

    def _release(self, did: str) -> None:
        self._holders[did] -= 1
        if not self._holders[did]:
            # nobody holds or waits on it any more
            del self._holders[did]
            del self._locks[did]

    @contextlib.asynccontextmanager
    async def _hold(self, did: str, lock: asyncio.Lock):
        try:
            async with lock:
                yield
        finally:
            self._release(did)

    @contextlib.asynccontextmanager
    async def _serialized(self, did: str):
        async with self._entry:
            lock = self._register(did)
        async with self._hold(did, lock):
            yield

    def _scheme_active(self, subject: ReminderSubject) -> bool:
        if subject.kind == SubjectKind.PRODUCT:
            return self.skincare_mode == SkincareMode.ENTRY
        if subject.kind == SubjectKind.SLOT:
            return self.skincare_mode == SkincareMode.SLOT
        return True

    async def _authorized(self) -> bool:
        if self.gate.is_authorized:
            return True

        async with self._auth_lock:
            # Ask once per process; later changes come from explicit user actions.
            if self.gate.state == AuthState.UNKNOWN and not self._auth_requested:
                self._auth_requested = True
                return await self.gate.request_authorization()
        return self.gate.is_authorized

    async def _reconcile_locked(self, did: str, subject: ReminderSubject, deleted: bool) -> ReconcileResult:
        decision: TriggerDecision
        if deleted:
            decision = Suppressed(SuppressReason.DELETED)
        elif not self._scheme_active(subject):
            decision = Suppressed(SuppressReason.SCHEME_INACTIVE)
        elif not await self._authorized():
            decision = Suppressed(SuppressReason.NOT_AUTHORIZED)
        else:
            decision = decide(subject, self.clock())

        effects: List[Effect] = []
        self._applied.pop(did, None)
        try:
            await self.delivery.cancel(did)
            effects.append(Effect.cancel(did))

            if isinstance(decision, Armed):
                payload = payload_for(subject)
                await self.delivery.schedule(did, decision.trigger_at, payload)
                effects.append(Effect.schedule(did, decision.trigger_at, payload))
                self._applied[did] = decision
        except DeliveryAdapterError as e:
            logger.warning("Reminder %s not applied: %s", did, e)
            return ReconcileResult(delivery_id=did, decision=decision, effects=effects, error=str(e))

        if isinstance(decision, Armed):
            logger.debug("Reminder %s armed for %s", did, decision.trigger_at.isoformat())
        else:
            logger.debug("Reminder %s suppressed (%s)", did, decision.reason.value)
        return ReconcileResult(delivery_id=did, decision=decision, effects=effects)
