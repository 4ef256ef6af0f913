"""JSON views of a tag's place in the tag tree."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union

from repository import RESOURCE_TYPE_PROPERTY

TAG_RESOURCE_TYPE = "tag"
DEFAULT_MAX_DEPTH = 10


class TagNode(Protocol):
    name: str
    path: str

    @property
    def parent(self) -> Optional["TagNode"]:
        ...

    @property
    def properties(self) -> Dict[str, Any]:
        ...

    def children(self) -> Iterable["TagNode"]:
        ...

    def get(self, name: str, default: Any = None) -> Any:
        ...


class View(str, Enum):
    CHILDREN = "children"
    PARENTS = "parents"


class UnknownViewError(ValueError):
    pass


class NotATagError(ValueError):
    pass


def is_tag(node: TagNode) -> bool:
    return node.get(RESOURCE_TYPE_PROPERTY) == TAG_RESOURCE_TYPE


def parse_view(selector: Union[str, View, None]) -> Optional[View]:
    """Map a request selector to a view; ``None``/empty means the plain view."""
    if selector is None or isinstance(selector, View):
        return selector
    selector = selector.strip().lower()
    if not selector:
        return None
    try:
        return View(selector)
    except ValueError:
        raise UnknownViewError(f"Unknown tag view {selector!r}") from None


def _summary(node: TagNode, properties: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": node.name, "path": node.path}
    if properties:
        out["properties"] = dict(node.properties)
    return out


def _children_tree(node: TagNode, depth: int, properties: bool = False) -> List[Dict[str, Any]]:
    # Explicit stack so a deep or cyclic store cannot blow the interpreter stack.
    top: List[Dict[str, Any]] = []
    stack: List[Tuple[TagNode, List[Dict[str, Any]], int]] = [(node, top, 1)]
    visited = {node.path}
    while stack:
        current, target, level = stack.pop()
        for child in current.children():
            if child.path in visited or not is_tag(child):
                continue
            visited.add(child.path)
            entry = _summary(child, properties)
            target.append(entry)
            if level < depth:
                entry["children"] = []
                stack.append((child, entry["children"], level + 1))
    return top


def _parent_chain(node: TagNode, depth: int, properties: bool = False) -> Optional[Dict[str, Any]]:
    """Climb up to ``depth`` ancestors, nesting each one under ``parent``.

    The walk stops early at the container holding the tag tree (rendered with
    ``"container": true``), at the store root, or on a path already seen.
    """
    head: Optional[Dict[str, Any]] = None
    holder: Optional[Dict[str, Any]] = None
    visited = {node.path}
    current = node
    for _ in range(depth):
        parent = current.parent
        if parent is None:
            if holder is not None:
                holder["parent"] = None
            break
        if parent.path in visited:
            break
        visited.add(parent.path)
        entry = _summary(parent, properties)
        if holder is None:
            head = entry
        else:
            holder["parent"] = entry
        if not is_tag(parent):
            entry["container"] = True
            break
        holder = entry
        current = parent
    return head


def render(
    node: TagNode,
    mode: Union[str, View, None] = None,
    *,
    depth: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    properties: bool = False,
) -> Dict[str, Any]:
    """Render ``node`` as ``{name, path}`` plus the requested relationship.

    Parameters
    ----------
    mode : str | View | None
        ``"children"`` adds a ``children`` array of tag-typed children in
        storage order, ``"parents"`` adds the ``parent`` chain (``None`` when
        the node has no parent). ``None`` renders the node alone.
    depth : int
        Levels to expand: child levels for ``children``, ancestors for
        ``parents``. Clamped to ``max_depth``.
    properties : bool
        Also copy each rendered node's stored properties under ``properties``.
    """
    view = parse_view(mode)
    if depth < 1:
        raise ValueError("depth must be at least 1")
    depth = min(depth, max(1, max_depth))
    out = _summary(node, properties)
    if view is View.CHILDREN:
        out["children"] = _children_tree(node, depth, properties)
    elif view is View.PARENTS:
        out["parent"] = _parent_chain(node, depth, properties)
    return out
