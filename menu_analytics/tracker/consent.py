"""
Consent Gate

Tracks whether the visitor opted in to analytics. Anything other than a
readable, stored "true" counts as not granted.
"""

from enum import Enum
from typing import Callable, List

from menu_analytics.core.logging_config import get_logger
from menu_analytics.tracker.errors import StorageUnavailable
from menu_analytics.tracker.storage import KeyValueStore

logger = get_logger(__name__)

CONSENT_KEY = "analytics_consent"
CONSENT_MAX_AGE_SECONDS = 365 * 24 * 60 * 60


class ConsentDecision(str, Enum):
    UNDETERMINED = "undetermined"
    GRANTED = "granted"
    DENIED = "denied"


ConsentListener = Callable[[ConsentDecision], None]


class ConsentGate:
    """Reads, records and broadcasts the visitor's analytics consent."""

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._listeners: List[ConsentListener] = []
        self._decision = self._read_stored()

    def _read_stored(self) -> ConsentDecision:
        try:
            raw = self._store.get(CONSENT_KEY)
        except StorageUnavailable as exc:
            logger.warning("Consent storage unreadable, treating as undetermined", error=str(exc))
            return ConsentDecision.UNDETERMINED

        if raw == "true":
            return ConsentDecision.GRANTED
        if raw == "false":
            return ConsentDecision.DENIED
        return ConsentDecision.UNDETERMINED

    def get_decision(self) -> ConsentDecision:
        return self._decision

    @property
    def needs_prompt(self) -> bool:
        """Whether the consent banner should be shown."""
        return self._decision is ConsentDecision.UNDETERMINED

    def subscribe(self, listener: ConsentListener) -> None:
        self._listeners.append(listener)

    def grant(self) -> None:
        self._record(ConsentDecision.GRANTED)

    def deny(self) -> None:
        self._record(ConsentDecision.DENIED)

    def _record(self, decision: ConsentDecision) -> None:
        self._decision = decision
        value = "true" if decision is ConsentDecision.GRANTED else "false"
        try:
            self._store.set(CONSENT_KEY, value, max_age=CONSENT_MAX_AGE_SECONDS)
        except StorageUnavailable as exc:
            # Applies to this page only; the next load asks again
            logger.warning("Could not persist analytics consent", decision=decision.value, error=str(exc))

        logger.info("Analytics consent recorded", decision=decision.value)
        for listener in list(self._listeners):
            listener(decision)
