"""
Exceptions raised inside the tracking client.

None of these reach page code from the send path; they mark the places where
the tracker degrades instead of failing.
"""


class TrackerError(Exception):
    """Base class for tracking client errors."""


class StorageUnavailable(TrackerError):
    """A key-value store could not be read or written."""
