"""Exceptions raised by the content repository."""

from __future__ import annotations


class RepositoryError(Exception):
    """Base class for any failure accessing the content store."""


class PathNotFoundError(RepositoryError):
    def __init__(self, path: str) -> None:
        super().__init__(f"No node at {path}")
        self.path = path


class ItemExistsError(RepositoryError):
    def __init__(self, path: str) -> None:
        super().__init__(f"A node already exists at {path}")
        self.path = path


class PropertyNotFoundError(RepositoryError):
    def __init__(self, path: str, name: str) -> None:
        super().__init__(f"Node {path} has no property {name!r}")
        self.path = path
        self.name = name
