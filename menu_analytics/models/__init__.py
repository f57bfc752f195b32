from .restaurant import Restaurant
from .analytics import MenuAnalyticsEvent

__all__ = [
    "Restaurant",
    "MenuAnalyticsEvent",
]
