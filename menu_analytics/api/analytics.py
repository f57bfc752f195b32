"""
Analytics API endpoints for ingesting menu tracking events.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from menu_analytics.core.config import settings
from menu_analytics.core.logging_config import get_logger
from menu_analytics.core.privacy import get_device_type, hash_ip, hash_user_agent
from menu_analytics.core.rate_limit import get_client_ip, rate_limiter
from menu_analytics.db import get_session
from menu_analytics.models.analytics import MenuAnalyticsEvent
from menu_analytics.models.restaurant import Restaurant
from menu_analytics.schemas import (
    REQUIRED_EVENT_FIELDS,
    ErrorResponse,
    TrackEventRequest,
    TrackEventResponse,
)

logger = get_logger(__name__)

router = APIRouter()


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def find_restaurant(session: Session, restaurant_ref: str) -> Optional[Restaurant]:
    """Look up a restaurant by id, falling back to its public slug."""
    restaurant = session.get(Restaurant, restaurant_ref)
    if restaurant is None:
        restaurant = session.exec(select(Restaurant).where(Restaurant.slug == restaurant_ref)).first()
    return restaurant


@router.post(
    "/track",
    response_model=TrackEventResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def track_event(request: Request, session: Session = Depends(get_session)):
    """Validate, rate-limit, anonymize and persist one tracking event."""
    client_key = hash_ip(get_client_ip(request))

    is_limited, retry_after = rate_limiter.check_and_record(
        client_key,
        max_requests=settings.RATE_LIMIT_MAX_EVENTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    if is_limited:
        logger.info("Analytics rate limit exceeded", client=client_key, retry_after=retry_after)
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "Rate limit exceeded",
            headers={"Retry-After": str(retry_after)},
        )

    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")

    if not isinstance(body, dict) or any(not body.get(name) for name in REQUIRED_EVENT_FIELDS):
        return _error(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    try:
        event = TrackEventRequest.model_validate(body)
    except ValidationError as exc:
        logger.info("Rejected invalid analytics event", errors=exc.error_count())
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid event")

    try:
        restaurant = find_restaurant(session, event.restaurant_id)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to look up restaurant", restaurant_id=event.restaurant_id)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save analytics")

    if restaurant is None:
        logger.info("Analytics event for unknown restaurant", restaurant_id=event.restaurant_id)
        return _error(status.HTTP_404_NOT_FOUND, "Restaurant not found")
    if not restaurant.is_active:
        logger.info("Analytics event for inactive restaurant", restaurant_id=restaurant.id)
        return _error(status.HTTP_403_FORBIDDEN, "Restaurant not active")

    occurred_at = event.timestamp or datetime.now(timezone.utc)
    if occurred_at.tzinfo is None:
        occurred_at = occurred_at.replace(tzinfo=timezone.utc)

    user_agent = request.headers.get("user-agent", "")

    record = MenuAnalyticsEvent(
        restaurant_id=restaurant.id,
        menu_id=event.menu_id,
        session_id=event.session_id,
        event_type=event.type.value,
        item_id=event.item_id,
        category_id=event.category_id,
        time_spent=event.time_spent,
        page_path=event.metadata_str("path"),
        referrer=event.metadata_str("referrer"),
        ip_hash=client_key,
        user_agent_hash=hash_user_agent(user_agent),
        device_type=get_device_type(user_agent),
        timestamp=occurred_at,
    )

    try:
        session.add(record)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Failed to save analytics event", restaurant_id=restaurant.id)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save analytics")

    return {"success": True}
