"""Hierarchical content store used by the messaging and tag components."""

from __future__ import annotations

from .errors import ItemExistsError, PathNotFoundError, PropertyNotFoundError, RepositoryError
from .paths import ROOT, join, node_name, normalize_path, parent_path
from .store import Node, Repository, Session

# Property carrying a node's type marker (tags, messages, ...).
RESOURCE_TYPE_PROPERTY = "resource_type"

__all__ = [
    "ItemExistsError",
    "Node",
    "PathNotFoundError",
    "PropertyNotFoundError",
    "RESOURCE_TYPE_PROPERTY",
    "ROOT",
    "Repository",
    "RepositoryError",
    "Session",
    "join",
    "node_name",
    "normalize_path",
    "parent_path",
]
