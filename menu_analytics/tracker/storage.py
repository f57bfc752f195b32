"""
Key-value stores backing session and consent state.

`MemoryStore` plays the part of tab-scoped session storage; `JsonFileStore`
is the durable, cookie-like store that survives the tracker instance.
Both honor a per-entry `max_age` in seconds.
"""

import json
import time
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Tuple

from menu_analytics.tracker.errors import StorageUnavailable

Clock = Callable[[], float]


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, max_age: Optional[float] = None) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-process store; lives as long as the tab it belongs to."""

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        # {key: (value, expires_at)}
        self._items: Dict[str, Tuple[str, Optional[float]]] = {}

    def get(self, key: str) -> Optional[str]:
        item = self._items.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._items[key]
            return None
        return value

    def set(self, key: str, value: str, max_age: Optional[float] = None) -> None:
        expires_at = self._clock() + max_age if max_age is not None else None
        self._items[key] = (value, expires_at)

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStore:
    """Durable store persisted as one JSON document.

    Each entry is stored as ``{"value": ..., "expires_at": epoch_seconds | null}``.
    Unreadable or unwritable files raise `StorageUnavailable`.
    """

    def __init__(self, path: Path, clock: Clock = time.time):
        self.path = Path(path)
        self._clock = clock

    def _load(self) -> Dict[str, dict]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StorageUnavailable(f"cannot read {self.path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageUnavailable(f"corrupt store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageUnavailable(f"corrupt store {self.path}: expected an object")
        return data

    def _save(self, data: Dict[str, dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageUnavailable(f"cannot write {self.path}: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        entry = self._load().get(key)
        if entry is None:
            return None
        if not isinstance(entry, dict) or not isinstance(entry.get("value"), str):
            raise StorageUnavailable(f"corrupt entry {key!r} in {self.path}")
        expires_at = entry.get("expires_at")
        if expires_at is not None and (isinstance(expires_at, bool) or not isinstance(expires_at, (int, float))):
            raise StorageUnavailable(f"corrupt expiry for {key!r} in {self.path}")
        if expires_at is not None and self._clock() >= expires_at:
            return None
        return entry["value"]

    def set(self, key: str, value: str, max_age: Optional[float] = None) -> None:
        data = self._load()
        data[key] = {
            "value": value,
            "expires_at": self._clock() + max_age if max_age is not None else None,
        }
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)
