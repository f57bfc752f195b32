"""
Session Manager

Keeps one session id per tab with a 30-minute sliding expiry window. Every
resolve counts as activity and pushes the expiry forward.
"""

import time
import uuid
from typing import Optional

from menu_analytics.core.logging_config import get_logger
from menu_analytics.tracker.errors import StorageUnavailable
from menu_analytics.tracker.storage import Clock, KeyValueStore

logger = get_logger(__name__)

SESSION_ID_KEY = "analytics_session_id"
SESSION_TIMESTAMP_KEY = "analytics_session_timestamp"
SESSION_TIMEOUT_SECONDS = 30 * 60


class SessionManager:
    """Derives and persists the analytics session id."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock = time.time,
        timeout_seconds: int = SESSION_TIMEOUT_SECONDS,
    ):
        """Initialize the session manager.

        Args:
            store: Tab-scoped store holding the session id and activity timestamp
            clock: Returns the current time in epoch seconds
            timeout_seconds: Idle time after which the session is replaced
        """
        self._store = store
        self._clock = clock
        self._timeout_ms = timeout_seconds * 1000
        self.current_id: Optional[str] = None

        # Used once the store has failed; lives only as long as this manager
        self._degraded = False
        self._ephemeral_id: Optional[str] = None
        self._ephemeral_last_ms = 0

    def resolve_session_id(self) -> str:
        """Return the live session id, creating or renewing it as needed."""
        now_ms = int(self._clock() * 1000)

        if not self._degraded:
            try:
                self.current_id = self._resolve_stored(now_ms)
                return self.current_id
            except StorageUnavailable as exc:
                logger.warning("Session storage unavailable, using ephemeral session", error=str(exc))
                self._degraded = True

        self.current_id = self._resolve_ephemeral(now_ms)
        return self.current_id

    def clear(self) -> None:
        """Forget the stored session id and its activity timestamp together."""
        self._store.remove(SESSION_ID_KEY)
        self._store.remove(SESSION_TIMESTAMP_KEY)

    def _is_expired(self, last_activity_ms: int, now_ms: int) -> bool:
        return now_ms - last_activity_ms > self._timeout_ms

    def _resolve_stored(self, now_ms: int) -> str:
        raw_timestamp = self._store.get(SESSION_TIMESTAMP_KEY)
        if raw_timestamp is not None:
            try:
                last_activity_ms = int(raw_timestamp)
            except ValueError:
                # Unparseable timestamps cannot prove the session is live
                last_activity_ms = None
            if last_activity_ms is None or self._is_expired(last_activity_ms, now_ms):
                self.clear()

        session_id = self._store.get(SESSION_ID_KEY)
        if session_id:
            self._store.set(SESSION_TIMESTAMP_KEY, str(now_ms))
            return session_id

        session_id = str(uuid.uuid4())
        self._store.set(SESSION_ID_KEY, session_id)
        self._store.set(SESSION_TIMESTAMP_KEY, str(now_ms))
        logger.info("Started analytics session", session_id=session_id)
        return session_id

    def _resolve_ephemeral(self, now_ms: int) -> str:
        if self._ephemeral_id is None or self._is_expired(self._ephemeral_last_ms, now_ms):
            self._ephemeral_id = str(uuid.uuid4())
        self._ephemeral_last_ms = now_ms
        return self._ephemeral_id
