"""Tag tree relationship rendering."""

from __future__ import annotations

from .renderer import (
    DEFAULT_MAX_DEPTH,
    TAG_RESOURCE_TYPE,
    NotATagError,
    UnknownViewError,
    View,
    is_tag,
    parse_view,
    render,
)

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "NotATagError",
    "TAG_RESOURCE_TYPE",
    "UnknownViewError",
    "View",
    "is_tag",
    "parse_view",
    "render",
]
