"""
Privacy transforms applied to request context before anything is persisted.

Raw IP addresses and user agent strings never leave this module: callers get
truncated one-way hashes and a coarse device class instead.
"""

import hashlib
from typing import Optional

from menu_analytics.core.config import settings

HASH_LENGTH = 16


def hash_ip(ip: str, salt: Optional[str] = None) -> str:
    """Hash IP address with the configured salt."""
    salt = settings.IP_SALT if salt is None else salt
    return hashlib.sha256(f"{ip}{salt}".encode()).hexdigest()[:HASH_LENGTH]


def hash_user_agent(user_agent: str) -> str:
    """Hash user agent string for privacy."""
    return hashlib.sha256(user_agent.encode()).hexdigest()[:HASH_LENGTH]


def get_device_type(user_agent: str) -> str:
    """Classify a user agent as mobile, tablet or desktop by substring."""
    ua = user_agent.lower()
    if "mobile" in ua:
        return "mobile"
    if "tablet" in ua or "ipad" in ua:
        return "tablet"
    return "desktop"
