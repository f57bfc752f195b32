"""
End-to-end tests for the menu tracker.

Tests cover:
- Consent flow from first page load to Accept / Decline
- Session continuity across reloads in the same tab
- Close (unload) behavior
- Full stack: tracker -> beacon transport -> ingestion endpoint -> database
"""

import pytest
from sqlmodel import select

from menu_analytics.models import MenuAnalyticsEvent
from menu_analytics.tracker import (
    BeaconTransport,
    ConsentDecision,
    JsonFileStore,
    MemoryStore,
    MenuTracker,
    PageContext,
    QueueState,
)
from menu_analytics.tracker.consent import CONSENT_KEY

PAGE = PageContext(
    path="/tonys-pizza",
    referrer="https://google.com/",
    user_agent="Mozilla/5.0 (iPhone) Mobile",
    screen_size=(390, 844),
    viewport=(390, 664),
)


@pytest.fixture
def tracker(clock, transport):
    return MenuTracker(PAGE, transport=transport, clock=clock)


class TestConsentFlow:
    def test_accept_sends_buffered_page_view(self, tracker, transport):
        load_session = tracker.session_id
        tracker.start()

        assert tracker.needs_consent_prompt is True
        assert transport.sent == []
        assert len(tracker.queue.pending) == 1

        tracker.grant_consent()

        assert len(transport.sent) == 1
        payload = transport.sent[0]
        assert payload["type"] == "page_view"
        assert payload["restaurantId"] == "tonys-pizza"
        assert payload["sessionId"] == load_session
        assert payload["metadata"]["path"] == "/tonys-pizza"
        assert tracker.needs_consent_prompt is False

    def test_decline_discards_and_records_denial(self, clock, transport):
        consent_store = MemoryStore(clock)
        tracker = MenuTracker(PAGE, consent_store=consent_store, transport=transport, clock=clock)
        tracker.start()
        tracker.click(tracker.register_item("margherita"))

        tracker.deny_consent()
        tracker.click(tracker.register_category("pizzas"))
        clock.advance(30)
        tracker.close()

        assert transport.sent == []
        assert tracker.queue.state is QueueState.SUPPRESSED
        assert consent_store.get(CONSENT_KEY) == "false"

    def test_returning_visitor_with_consent_is_live(self, clock, transport):
        consent_store = MemoryStore(clock)
        first = MenuTracker(PAGE, consent_store=consent_store, transport=transport, clock=clock)
        first.grant_consent()

        second = MenuTracker(PAGE, consent_store=consent_store, transport=transport, clock=clock)
        second.start()

        assert second.needs_consent_prompt is False
        assert transport.types == ["page_view"]

    def test_consent_survives_in_durable_store(self, tmp_path, clock, transport):
        path = tmp_path / "cookies.json"
        MenuTracker(PAGE, consent_store=JsonFileStore(path, clock), transport=transport, clock=clock).grant_consent()

        reloaded = MenuTracker(PAGE, consent_store=JsonFileStore(path, clock), transport=transport, clock=clock)

        assert reloaded.consent.get_decision() is ConsentDecision.GRANTED

    def test_interactions_keep_production_order(self, tracker, transport, clock):
        tracker.start()
        pizzas = tracker.register_category("pizzas")
        tracker.click(tracker.register_item("margherita", parent=pizzas))
        tracker.click(pizzas)
        clock.advance(8)
        tracker.visibility_changed(hidden=True)

        tracker.grant_consent()

        assert transport.types == ["page_view", "item_view", "category_view", "time_spent"]


class TestExplicitPageView:
    def test_track_page_view_for_menu_switch(self, tracker, transport):
        tracker.grant_consent()
        tracker.start(menu_id="dinner")

        tracker.track_page_view(menu_id="desserts")

        assert [(p["type"], p["menuId"]) for p in transport.sent] == [
            ("page_view", "dinner"),
            ("page_view", "desserts"),
        ]
        assert transport.sent[1]["restaurantId"] == "tonys-pizza"

    def test_track_page_view_with_explicit_restaurant(self, tracker, transport):
        tracker.grant_consent()

        tracker.track_page_view(restaurant_id="rest-tonys", menu_id="dinner")

        assert transport.sent[0]["restaurantId"] == "rest-tonys"

    def test_track_page_view_is_consent_gated(self, tracker, transport):
        tracker.track_page_view()

        assert transport.sent == []
        assert len(tracker.queue.pending) == 1


class TestSessionContinuity:
    def test_reload_in_same_tab_keeps_session(self, clock, transport):
        session_store = MemoryStore(clock)
        first = MenuTracker(PAGE, session_store=session_store, transport=transport, clock=clock)
        clock.advance(5 * 60)
        second = MenuTracker(PAGE, session_store=session_store, transport=transport, clock=clock)

        assert first.session_id == second.session_id

    def test_new_tab_gets_new_session(self, clock, transport):
        first = MenuTracker(PAGE, transport=transport, clock=clock)
        second = MenuTracker(PAGE, transport=transport, clock=clock)

        assert first.session_id != second.session_id

    def test_idle_tab_starts_new_session(self, tracker, transport, clock):
        tracker.grant_consent()
        tracker.start()
        clock.advance(31 * 60)
        tracker.visibility_changed(hidden=True)

        first, second = transport.sent
        assert first["sessionId"] != second["sessionId"]


class TestClose:
    def test_close_records_time_spent_and_closes_transport(self, tracker, transport, clock):
        tracker.grant_consent()
        tracker.start()
        clock.advance(42)

        tracker.close()

        assert transport.types == ["page_view", "time_spent"]
        assert transport.sent[1]["timeSpent"] == 42
        assert transport.closed is True

    def test_close_is_idempotent(self, tracker, transport, clock):
        tracker.grant_consent()
        tracker.start()
        clock.advance(10)

        tracker.close()
        tracker.close()

        assert transport.types.count("time_spent") == 1

    def test_context_manager_closes(self, clock, transport):
        with MenuTracker(PAGE, transport=transport, clock=clock) as tracker:
            tracker.start()

        assert transport.closed is True


class TestFullStack:
    """Tracker posting through the beacon transport into the real endpoint."""

    def test_events_reach_the_database(self, client, restaurant, test_session, clock):
        transport = BeaconTransport(endpoint="http://testserver/api/analytics/track", client=client)
        tracker = MenuTracker(PAGE, transport=transport, clock=clock)

        tracker.start(menu_id="dinner")
        tracker.click(tracker.register_item("margherita"))
        tracker.grant_consent()
        clock.advance(6)
        tracker.close(timeout=10)

        records = test_session.exec(select(MenuAnalyticsEvent)).all()
        assert [r.event_type for r in records] == ["page_view", "item_view", "time_spent"]
        assert {r.restaurant_id for r in records} == {"rest-tonys"}
        assert {r.session_id for r in records} == {tracker.session_id}
        assert records[0].page_path == "/tonys-pizza"
        assert records[1].item_id == "margherita"
        assert records[2].time_spent == 6

    def test_denied_visitor_never_starts_beacon_worker(self, client, clock):
        consent_store = MemoryStore(clock)
        consent_store.set(CONSENT_KEY, "false")
        transport = BeaconTransport(endpoint="http://testserver/api/analytics/track", client=client)

        with MenuTracker(PAGE, consent_store=consent_store, transport=transport, clock=clock) as tracker:
            tracker.start()
            tracker.click(tracker.register_item("margherita"))

        assert transport.started is False

    def test_unknown_restaurant_is_dropped_quietly(self, client, test_session, clock):
        transport = BeaconTransport(endpoint="http://testserver/api/analytics/track", client=client)
        tracker = MenuTracker(PageContext(path="/ghost-kitchen"), transport=transport, clock=clock)

        tracker.grant_consent()
        tracker.start()
        tracker.close(timeout=10)

        assert test_session.exec(select(MenuAnalyticsEvent)).all() == []
