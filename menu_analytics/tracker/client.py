"""
Menu Tracker

Wires the session manager, consent gate, event capture and dispatch queue
for one tab. The page shell constructs one tracker per tab and passes it to
the instrumentation call sites that need it.

Usage:
    tracker = MenuTracker(PageContext(path="/tonys-pizza", user_agent=ua))
    tracker.start(menu_id="dinner")
    if tracker.needs_consent_prompt:
        show_banner(on_accept=tracker.grant_consent, on_decline=tracker.deny_consent)
    pizza = tracker.register_item("margherita", parent=tracker.register_category("pizzas"))
    tracker.click(pizza)
    tracker.close()
"""

import time
from typing import Optional

from menu_analytics.core.logging_config import get_logger
from menu_analytics.tracker.capture import EventCapture, Region
from menu_analytics.tracker.consent import ConsentGate
from menu_analytics.tracker.dispatch import DispatchQueue
from menu_analytics.tracker.events import PageContext
from menu_analytics.tracker.session import SessionManager
from menu_analytics.tracker.storage import Clock, KeyValueStore, MemoryStore
from menu_analytics.tracker.transport import BeaconTransport, Transport

logger = get_logger(__name__)


class MenuTracker:
    """Privacy-aware analytics tracker for one public menu tab."""

    def __init__(
        self,
        page: PageContext,
        session_store: Optional[KeyValueStore] = None,
        consent_store: Optional[KeyValueStore] = None,
        transport: Optional[Transport] = None,
        clock: Clock = time.time,
        restaurant_id: Optional[str] = None,
    ):
        """Initialize the tracker and resolve the tab's session.

        Args:
            page: Browsing context at load time
            session_store: Tab-scoped store; defaults to an in-memory store
            consent_store: Durable store for the consent decision; defaults to in-memory
            transport: Event transport; defaults to a `BeaconTransport` on settings.TRACKER_ENDPOINT
            clock: Returns the current time in epoch seconds
            restaurant_id: Fallback when the page path has no restaurant segment
        """
        self.sessions = SessionManager(session_store or MemoryStore(clock), clock=clock)
        self.consent = ConsentGate(consent_store or MemoryStore(clock))
        self.transport = transport or BeaconTransport()
        self.queue = DispatchQueue(self.consent, self.transport)
        self.capture = EventCapture(
            page,
            self.sessions,
            self.queue.submit,
            clock=clock,
            restaurant_id=restaurant_id,
        )
        self.sessions.resolve_session_id()
        self._closed = False

    def __enter__(self) -> "MenuTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def session_id(self) -> Optional[str]:
        """Most recently resolved session id."""
        return self.sessions.current_id

    @property
    def needs_consent_prompt(self) -> bool:
        return self.consent.needs_prompt

    def start(self, menu_id: Optional[str] = None) -> None:
        """Page load: record the initial page view."""
        self.capture.page_loaded(menu_id=menu_id)

    def navigate(self, path: str, menu_id: Optional[str] = None) -> None:
        self.capture.navigated(path, menu_id=menu_id)

    def track_page_view(self, restaurant_id: Optional[str] = None, menu_id: Optional[str] = None) -> None:
        """Record an extra page_view, e.g. when a menu is switched in place."""
        self.capture.page_viewed(restaurant_id=restaurant_id, menu_id=menu_id)

    def visibility_changed(self, hidden: bool) -> None:
        self.capture.visibility_changed(hidden)

    def register_item(self, item_id: str, parent: Optional[Region] = None) -> Region:
        return self.capture.register_item(item_id, parent=parent)

    def register_category(self, category_id: str, parent: Optional[Region] = None) -> Region:
        return self.capture.register_category(category_id, parent=parent)

    def click(self, region: Optional[Region]) -> None:
        self.capture.clicked(region)

    def grant_consent(self) -> None:
        self.consent.grant()

    def deny_consent(self) -> None:
        self.consent.deny()

    def close(self, timeout: Optional[float] = 2.0) -> None:
        """Page unload: record time spent, then hand off queued sends."""
        if self._closed:
            return
        self._closed = True
        self.capture.unloading()
        self.transport.close(timeout)
        logger.debug("Analytics tracker closed", session_id=self.session_id)
