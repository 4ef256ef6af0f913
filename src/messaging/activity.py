"""In-process last-activity cache keyed by user id."""
from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, Optional

from .models import parse_timestamp


class ActivityCache:
    """Most recent message time per user.

    Writes are last-writer-wins: a late delivery of an older message moves a
    user's entry backwards.
    """

    def __init__(self) -> None:
        self._times: Dict[str, datetime] = {}
        self._lock = threading.RLock()

    def put(self, user_id: str, timestamp: datetime) -> None:
        ts = parse_timestamp(timestamp)
        if not user_id or ts is None:
            raise ValueError("put() needs a user id and a timestamp")
        with self._lock:
            self._times[user_id] = ts

    def get(self, user_id: str) -> Optional[datetime]:
        with self._lock:
            return self._times.get(user_id)

    def has_update(self, user_id: str, since: Optional[datetime]) -> bool:
        """True if the user saw activity strictly after ``since``."""
        last = self.get(user_id)
        if last is None:
            return False
        since = parse_timestamp(since)
        return since is None or last > since

    def __len__(self) -> int:
        with self._lock:
            return len(self._times)
