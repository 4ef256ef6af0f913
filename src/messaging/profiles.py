"""Compact user profile summaries."""
from __future__ import annotations

from typing import Any, Dict

from repository import Session, join, normalize_path

DEFAULT_PROFILES_ROOT = "/profiles"

_PROFILE_FIELDS = ("firstName", "lastName", "picture")


class CompactProfileFormatter:
    """Writes ``userid``, name fields and ``displayName`` for one user."""

    def __init__(self, profiles_root: str = DEFAULT_PROFILES_ROOT) -> None:
        self.profiles_root = normalize_path(profiles_root)

    def write_compact_info(self, session: Session, user_id: str, sink: Dict[str, Any]) -> None:
        sink["userid"] = user_id
        path = join(self.profiles_root, user_id)
        if not session.node_exists(path):
            sink["displayName"] = user_id
            return
        node = session.get_node(path)
        for key in _PROFILE_FIELDS:
            if node.has_property(key):
                sink[key] = node.get_property(key)
        full = " ".join(str(sink[k]) for k in ("firstName", "lastName") if sink.get(k))
        sink["displayName"] = full or user_id
