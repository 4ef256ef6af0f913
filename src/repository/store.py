"""Disk-backed hierarchical content store (thread-safe, atomic).

Layout:
    data_dir/
      content.json      # {"nodes": {path: {"properties": {...}, "children": [...]}}}

Every node is addressed by its absolute path. Children are kept in insertion
order, which is the "storage order" seen by callers iterating a node.

Work happens inside a :class:`Session`. A session stages its writes privately
and only publishes them on :meth:`Session.save`; unsaved changes are dropped
by :meth:`Session.refresh` or when the session is closed.
"""
from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set

from utils.io import atomic_write_json, ensure_dir, read_json

from .errors import (
    ItemExistsError,
    PathNotFoundError,
    PropertyNotFoundError,
    RepositoryError,
)
from .paths import ROOT, join, node_name, normalize_path, parent_path

LOGGER = logging.getLogger(__name__)


def _empty_record() -> Dict[str, Any]:
    return {"properties": {}, "children": []}


def _storable(value: Any) -> Any:
    # Timestamps are kept as ISO-8601 strings so the document stays plain JSON.
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_storable(v) for v in value]
    return value


# -----------------------------
# Node view
# -----------------------------
class Node:
    """A live view of one node, read through the owning session."""

    def __init__(self, session: "Session", path: str) -> None:
        self._session = session
        self._path = normalize_path(path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        return node_name(self._path)

    @property
    def parent(self) -> Optional["Node"]:
        """Parent node, or ``None`` for the store root."""
        up = parent_path(self._path)
        return None if up is None else self._session.get_node(up)

    @property
    def properties(self) -> Dict[str, Any]:
        return copy.deepcopy(self._session._require(self._path)["properties"])

    def children(self) -> Iterator["Node"]:
        names = list(self._session._require(self._path)["children"])
        for name in names:
            yield Node(self._session, join(self._path, name))

    def has_property(self, name: str) -> bool:
        return name in self._session._require(self._path)["properties"]

    def get_property(self, name: str) -> Any:
        props = self._session._require(self._path)["properties"]
        if name not in props:
            raise PropertyNotFoundError(self._path, name)
        return copy.deepcopy(props[name])

    def get(self, name: str, default: Any = None) -> Any:
        props = self._session._require(self._path)["properties"]
        return copy.deepcopy(props.get(name, default))

    def set_property(self, name: str, value: Any) -> None:
        self._session.set_property(self._path, name, value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Node) and other._path == self._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"Node({self._path!r})"


# -----------------------------
# Session
# -----------------------------
class Session:
    """Short-lived unit of work against a :class:`Repository`."""

    def __init__(self, repository: "Repository") -> None:
        self._repository = repository
        self._staged: Dict[str, Dict[str, Any]] = {}
        self._dirty_props: Set[str] = set()
        self._live = True

    # --------- internals ----------
    def _check_live(self) -> None:
        if not self._live:
            raise RepositoryError("Session has been closed")

    def _record(self, path: str) -> Optional[Dict[str, Any]]:
        self._check_live()
        if path in self._staged:
            return self._staged[path]
        return self._repository._snapshot(path)

    def _require(self, path: str) -> Dict[str, Any]:
        rec = self._record(path)
        if rec is None:
            raise PathNotFoundError(path)
        return rec

    def _stage(self, path: str) -> Dict[str, Any]:
        rec = self._require(path)
        return self._staged.setdefault(path, rec)

    # --------- reads ----------
    def node_exists(self, path: str) -> bool:
        return self._record(normalize_path(path)) is not None

    def get_node(self, path: str) -> Node:
        path = normalize_path(path)
        self._require(path)
        return Node(self, path)

    # --------- writes ----------
    def add_node(self, path: str, properties: Optional[Dict[str, Any]] = None) -> Node:
        """Create a single node whose parent must already exist."""
        path = normalize_path(path)
        if path == ROOT or self._record(path) is not None:
            raise ItemExistsError(path)
        up = parent_path(path)
        parent = self._stage(up)  # type: ignore[arg-type]
        parent["children"].append(node_name(path))
        rec = _empty_record()
        for key, value in (properties or {}).items():
            rec["properties"][key] = _storable(value)
        self._staged[path] = rec
        self._dirty_props.add(path)
        return Node(self, path)

    def create_node_if_absent(self, path: str) -> Node:
        """Create ``path`` and any missing ancestors; idempotent."""
        path = normalize_path(path)
        if path == ROOT:
            return Node(self, ROOT)
        segments = path.split("/")[1:]
        current = ROOT
        for segment in segments:
            current = join(current, segment)
            if self._record(current) is None:
                self.add_node(current)
        return Node(self, path)

    def set_property(self, path: str, name: str, value: Any) -> None:
        path = normalize_path(path)
        rec = self._stage(path)
        rec["properties"][name] = _storable(value)
        self._dirty_props.add(path)

    def copy(self, src: str, dst: str) -> Node:
        """Deep-copy the subtree at ``src`` to ``dst``.

        ``dst`` must not exist yet and its parent must.
        """
        src = normalize_path(src)
        dst = normalize_path(dst)
        self._require(src)
        if dst == src or dst.startswith(src.rstrip("/") + "/"):
            raise RepositoryError(f"Cannot copy {src} into itself ({dst})")
        if self._record(dst) is not None:
            raise ItemExistsError(dst)
        up = parent_path(dst)
        if up is None or self._record(up) is None:
            raise PathNotFoundError(up or dst)

        self._stage(up)["children"].append(node_name(dst))
        stack: List[tuple] = [(src, dst)]
        while stack:
            from_path, to_path = stack.pop()
            rec = copy.deepcopy(self._require(from_path))
            self._staged[to_path] = rec
            self._dirty_props.add(to_path)
            for child in rec["children"]:
                stack.append((join(from_path, child), join(to_path, child)))
        return Node(self, dst)

    def save(self) -> None:
        """Publish staged changes to the repository."""
        self._check_live()
        if not self._staged:
            return
        self._repository._commit(self._staged, self._dirty_props)
        self._staged = {}
        self._dirty_props = set()

    def refresh(self) -> None:
        """Discard staged changes."""
        self._staged = {}
        self._dirty_props = set()

    def logout(self) -> None:
        if self._staged:
            LOGGER.debug("Discarding %d unsaved node(s) on logout", len(self._staged))
        self.refresh()
        self._live = False


# -----------------------------
# Repository
# -----------------------------
class Repository:
    """JSON-file content store shared by concurrent sessions."""

    def __init__(self, data_dir: str, *, filename: str = "content.json") -> None:
        self.root = ensure_dir(data_dir)
        self.file: Path = self.root / filename
        self._lock = threading.RLock()
        self._nodes: Dict[str, Dict[str, Any]] = self._load()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        try:
            data = read_json(self.file)
        except ValueError as e:
            raise RepositoryError(str(e)) from e
        if data is None:
            return {ROOT: _empty_record()}
        nodes = data.get("nodes") if isinstance(data, dict) else None
        if not isinstance(nodes, dict) or ROOT not in nodes:
            raise RepositoryError(f"Invalid content document at {self.file}")
        return nodes

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session that is closed on every exit path."""
        session = Session(self)
        try:
            yield session
        finally:
            session.logout()

    def _snapshot(self, path: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            rec = self._nodes.get(path)
            return copy.deepcopy(rec) if rec is not None else None

    def _commit(self, staged: Dict[str, Dict[str, Any]], dirty_props: Set[str]) -> None:
        # Parents first so a merged child list never points at a missing node.
        ordered = sorted(staged, key=lambda p: (p.count("/"), p))
        with self._lock:
            # The shared tree is only replaced once the document is on disk.
            merged = copy.deepcopy(self._nodes)
            for path in ordered:
                rec = staged[path]
                current = merged.get(path)
                if current is None:
                    merged[path] = copy.deepcopy(rec)
                    continue
                if path in dirty_props:
                    current["properties"] = copy.deepcopy(rec["properties"])
                for name in rec["children"]:
                    if name not in current["children"]:
                        current["children"].append(name)
            try:
                atomic_write_json(self.file, {"nodes": merged})
            except OSError as e:
                LOGGER.error("Could not write %s; %d staged node(s) not committed", self.file, len(ordered))
                raise RepositoryError(str(e)) from e
            self._nodes = merged
        LOGGER.debug("Committed %d node(s) to %s", len(ordered), self.file)
