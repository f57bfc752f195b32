"""
Transports that carry tracking events to the ingestion endpoint.

`send()` is fire-and-forget: it only enqueues, so it is safe to call from an
unload handler. Delivery failures are logged and the event is dropped; there
are no retries.
"""

import queue
import threading
from typing import Any, Dict, Optional, Protocol

import httpx

from menu_analytics.core.config import settings
from menu_analytics.core.logging_config import get_logger

logger = get_logger(__name__)

_STOP = object()


class Transport(Protocol):
    def send(self, payload: Dict[str, Any]) -> None: ...

    def close(self, timeout: Optional[float] = None) -> None: ...


class BeaconTransport:
    """Queued best-effort sender drained by one background thread.

    Payloads enqueued before `close()` are still delivered by the worker after
    the calling code path has moved on.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the transport.

        Args:
            endpoint: Ingestion URL (defaults to settings.TRACKER_ENDPOINT)
            timeout: Request timeout in seconds (defaults to settings.TRACKER_TIMEOUT_SECONDS)
            client: Preconfigured httpx client; closed by the caller, not by this transport
        """
        self.endpoint = endpoint or settings.TRACKER_ENDPOINT
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout or settings.TRACKER_TIMEOUT_SECONDS)
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._closed = False
        # Started on the first send, so a tab that never sends never spawns a thread
        self._worker: Optional[threading.Thread] = None
        self._worker_lock = threading.Lock()

    def send(self, payload: Dict[str, Any]) -> None:
        with self._worker_lock:
            if self._closed:
                logger.warning("Analytics transport closed, dropping event", event_type=payload.get("type"))
                return
            if self._worker is None:
                self._worker = threading.Thread(target=self._run, name="analytics-beacon", daemon=True)
                self._worker.start()
            self._queue.put(payload)

    @property
    def started(self) -> bool:
        """Whether the worker thread has been spawned."""
        return self._worker is not None

    def flush(self) -> None:
        """Block until every payload enqueued so far has been attempted."""
        self._queue.join()

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting payloads, deliver what is queued, and stop the worker."""
        with self._worker_lock:
            if self._closed:
                return
            self._closed = True
            worker = self._worker
        if worker is None:
            if self._owns_client:
                self._client.close()
            return
        self._queue.put(_STOP)
        worker.join(timeout)
        if worker.is_alive():
            logger.warning("Analytics transport did not drain before timeout", pending=self._queue.qsize())
        elif self._owns_client:
            self._client.close()

    def _run(self) -> None:
        while True:
            payload = self._queue.get()
            try:
                if payload is _STOP:
                    return
                self._post(payload)
            except Exception:
                # Keep the worker alive for the payloads behind this one
                logger.exception("Analytics beacon failed", event_type=payload.get("type"))
            finally:
                self._queue.task_done()

    def _post(self, payload: Dict[str, Any]) -> None:
        event_type = payload.get("type")
        try:
            response = self._client.post(self.endpoint, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Analytics send failed", event_type=event_type, error=str(exc))
            return

        if response.status_code == 404:
            # Stale or misconfigured page; expected, not an alarm
            logger.info("Analytics event dropped for unknown restaurant", restaurant_id=payload.get("restaurantId"))
        elif response.is_error:
            logger.warning("Analytics event rejected", event_type=event_type, status=response.status_code)
