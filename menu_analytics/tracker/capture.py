"""
Event Capture

Turns page lifecycle and interaction signals into `AnalyticsEvent`s and hands
them to a submit callback. Menu templates register their item and category
regions at render time; a click on a region is dispatched by walking the
registered region chain instead of the DOM.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator, Optional, Set

from menu_analytics.core.logging_config import get_logger
from menu_analytics.schemas import EventKind
from menu_analytics.tracker.events import AnalyticsEvent, PageContext, restaurant_id_from_path
from menu_analytics.tracker.session import SessionManager
from menu_analytics.tracker.storage import Clock

logger = get_logger(__name__)

# Visible intervals shorter than this are noise
MIN_TIME_SPENT_SECONDS = 5


class RegionKind(str, Enum):
    ITEM = "item"
    CATEGORY = "category"


@dataclass(frozen=True, eq=False)
class Region:
    """A tagged, clickable part of the rendered menu."""

    kind: RegionKind
    identifier: str
    parent: Optional["Region"] = None

    def ancestry(self) -> Iterator["Region"]:
        """This region, then each enclosing region outwards."""
        node: Optional[Region] = self
        while node is not None:
            yield node
            node = node.parent


class EventCapture:
    """Builds events for one page and submits them in production order."""

    def __init__(
        self,
        page: PageContext,
        sessions: SessionManager,
        submit: Callable[[AnalyticsEvent], None],
        clock: Clock = time.time,
        restaurant_id: Optional[str] = None,
    ):
        """Initialize event capture.

        Args:
            page: Current browsing context
            sessions: Supplies (and renews) the session id for each event
            submit: Receives every built event, normally `DispatchQueue.submit`
            clock: Returns the current time in epoch seconds
            restaurant_id: Used only when the path carries no restaurant segment
        """
        self._page = page
        self._sessions = sessions
        self._submit = submit
        self._clock = clock
        self._fallback_restaurant_id = restaurant_id
        self._menu_id: Optional[str] = None
        self._visible_since: Optional[float] = None
        self._regions: Set[Region] = set()

    @property
    def page(self) -> PageContext:
        return self._page

    @property
    def restaurant_id(self) -> str:
        return restaurant_id_from_path(self._page.path) or self._fallback_restaurant_id or ""

    # Regions

    def register_item(self, item_id: str, parent: Optional[Region] = None) -> Region:
        return self._register(Region(RegionKind.ITEM, item_id, parent))

    def register_category(self, category_id: str, parent: Optional[Region] = None) -> Region:
        return self._register(Region(RegionKind.CATEGORY, category_id, parent))

    def unregister(self, region: Region) -> None:
        self._regions.discard(region)

    def _register(self, region: Region) -> Region:
        self._regions.add(region)
        return region

    # Signals

    def page_loaded(self, menu_id: Optional[str] = None) -> None:
        """Initial load: one page_view, and the page starts out visible."""
        self._menu_id = menu_id
        self._visible_since = self._clock()
        self._emit(EventKind.PAGE_VIEW, metadata=self._page.metadata())

    def navigated(self, path: str, menu_id: Optional[str] = None) -> None:
        """Single-page navigation to a new path."""
        self._page = self._page.with_path(path)
        if menu_id is not None:
            self._menu_id = menu_id
        self._emit(EventKind.PAGE_VIEW, metadata=self._page.metadata())

    def page_viewed(self, restaurant_id: Optional[str] = None, menu_id: Optional[str] = None) -> None:
        """Explicit page_view from an instrumentation call site.

        Does not touch the visible interval. `restaurant_id` overrides the one
        derived from the path for this event only.
        """
        if menu_id is not None:
            self._menu_id = menu_id
        self._emit(EventKind.PAGE_VIEW, restaurant_id=restaurant_id, metadata=self._page.metadata())

    def visibility_changed(self, hidden: bool) -> None:
        if hidden:
            self._close_visible_interval()
        else:
            self._visible_since = self._clock()

    def unloading(self) -> None:
        self._close_visible_interval()

    def clicked(self, region: Optional[Region]) -> None:
        """Click inside `region`; an enclosing item beats any enclosing category."""
        if region is None:
            return

        chain = [node for node in region.ancestry() if node in self._regions]
        item = next((node for node in chain if node.kind is RegionKind.ITEM), None)
        if item is not None:
            self._emit(EventKind.ITEM_VIEW, item_id=item.identifier)
            return

        category = next((node for node in chain if node.kind is RegionKind.CATEGORY), None)
        if category is not None:
            self._emit(EventKind.CATEGORY_VIEW, category_id=category.identifier)

    def _close_visible_interval(self) -> None:
        if self._visible_since is None:
            return

        elapsed = self._clock() - self._visible_since
        self._visible_since = None
        if elapsed < MIN_TIME_SPENT_SECONDS:
            return
        self._emit(EventKind.TIME_SPENT, time_spent_seconds=round(elapsed), metadata={"path": self._page.path})

    def _emit(self, kind: EventKind, restaurant_id: Optional[str] = None, **fields) -> None:
        restaurant_id = restaurant_id or self.restaurant_id
        if not restaurant_id:
            logger.warning("Skipping analytics event without restaurant", kind=kind.value, path=self._page.path)
            return

        event = AnalyticsEvent(
            kind=kind,
            restaurant_id=restaurant_id,
            session_id=self._sessions.resolve_session_id(),
            occurred_at=datetime.fromtimestamp(self._clock(), tz=timezone.utc),
            menu_id=self._menu_id,
            **fields,
        )
        self._submit(event)
