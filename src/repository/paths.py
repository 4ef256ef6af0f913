"""Helpers for absolute, slash-separated node paths."""

from __future__ import annotations

import re
from typing import Optional

ROOT = "/"


def normalize_path(path: str) -> str:
    """Return ``path`` in canonical form (leading slash, no trailing slash).

    Relative segments are rejected rather than resolved.
    """
    if not isinstance(path, str) or not path.startswith("/"):
        raise ValueError(f"Node paths must be absolute: {path!r}")
    path = re.sub(r"/+", "/", path)
    if path != ROOT:
        path = path.rstrip("/")
    for segment in path.split("/")[1:]:
        if segment in {".", ".."}:
            raise ValueError(f"Relative segment in node path: {path!r}")
    return path


def parent_path(path: str) -> Optional[str]:
    path = normalize_path(path)
    if path == ROOT:
        return None
    head = path.rsplit("/", 1)[0]
    return head or ROOT


def node_name(path: str) -> str:
    path = normalize_path(path)
    return "" if path == ROOT else path.rsplit("/", 1)[1]


def join(parent: str, name: str) -> str:
    if not name or "/" in name:
        raise ValueError(f"Invalid node name: {name!r}")
    parent = normalize_path(parent)
    return f"/{name}" if parent == ROOT else f"{parent}/{name}"

