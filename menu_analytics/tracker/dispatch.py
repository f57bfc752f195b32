"""
Dispatch Queue

Mediates between event production and the network under the consent gate:
events wait while consent is undetermined, go out in order once it is
granted, and are dropped once it is denied.
"""

from collections import deque
from enum import Enum
from typing import Deque, Tuple

from menu_analytics.core.logging_config import get_logger
from menu_analytics.tracker.consent import ConsentDecision, ConsentGate
from menu_analytics.tracker.events import AnalyticsEvent
from menu_analytics.tracker.transport import Transport

logger = get_logger(__name__)


class QueueState(str, Enum):
    BUFFERING = "buffering"
    DRAINING = "draining"
    LIVE = "live"
    SUPPRESSED = "suppressed"


class DispatchQueue:
    """Consent-gated, order-preserving event dispatcher."""

    def __init__(self, consent: ConsentGate, transport: Transport):
        self._transport = transport
        self._buffer: Deque[AnalyticsEvent] = deque()
        self._state = QueueState.BUFFERING
        self._apply_decision(consent.get_decision())
        consent.subscribe(self._apply_decision)

    @property
    def state(self) -> QueueState:
        return self._state

    @property
    def pending(self) -> Tuple[AnalyticsEvent, ...]:
        return tuple(self._buffer)

    def submit(self, event: AnalyticsEvent) -> None:
        if self._state is QueueState.SUPPRESSED:
            return
        if self._state is QueueState.LIVE:
            self._send(event)
            return
        # Buffering, or produced while a drain is in progress
        self._buffer.append(event)

    def _apply_decision(self, decision: ConsentDecision) -> None:
        if decision is ConsentDecision.GRANTED:
            self._drain()
        elif decision is ConsentDecision.DENIED:
            discarded = len(self._buffer)
            self._buffer.clear()
            self._state = QueueState.SUPPRESSED
            if discarded:
                logger.info("Discarded buffered analytics events", count=discarded)
        else:
            self._state = QueueState.BUFFERING

    def _drain(self) -> None:
        self._state = QueueState.DRAINING
        while self._buffer:
            self._send(self._buffer.popleft())
        self._state = QueueState.LIVE

    def _send(self, event: AnalyticsEvent) -> None:
        try:
            self._transport.send(event.to_payload())
        except Exception:
            # One failed send must not block the rest or reach page code
            logger.exception("Analytics send failed", kind=event.kind.value)
