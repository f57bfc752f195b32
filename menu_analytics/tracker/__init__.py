"""
Menu Tracking Client

Privacy-aware analytics for public restaurant menu pages.
"""

from .capture import EventCapture, Region, RegionKind
from .client import MenuTracker
from .consent import ConsentDecision, ConsentGate
from .dispatch import DispatchQueue, QueueState
from .errors import StorageUnavailable, TrackerError
from .events import AnalyticsEvent, PageContext
from .session import SessionManager
from .storage import JsonFileStore, KeyValueStore, MemoryStore
from .transport import BeaconTransport, Transport

__all__ = [
    'AnalyticsEvent',
    'BeaconTransport',
    'ConsentDecision',
    'ConsentGate',
    'DispatchQueue',
    'EventCapture',
    'JsonFileStore',
    'KeyValueStore',
    'MemoryStore',
    'MenuTracker',
    'PageContext',
    'QueueState',
    'Region',
    'RegionKind',
    'SessionManager',
    'StorageUnavailable',
    'TrackerError',
    'Transport',
]
