from __future__ import annotations

import pytest

from repository import Repository
from tags import UnknownViewError, View, is_tag, parse_view, render


@pytest.fixture
def session(tag_tree: Repository):
    # Nodes read lazily through their session, so keep it open for the test.
    with tag_tree.session() as s:
        yield s


def test_children_view_lists_only_tag_children_in_order(session):
    tag_b = session.get_node("/tags/tagA/tagB")

    out = render(tag_b, "children")

    assert out["name"] == "tagB"
    assert out["path"] == "/tags/tagA/tagB"
    assert out["children"] == [
        {"name": "tagC", "path": "/tags/tagA/tagB/tagC"},
        {"name": "tagD", "path": "/tags/tagA/tagB/tagD"},
    ]


def test_children_view_expands_deeper_levels_on_request(session):
    tag_b = session.get_node("/tags/tagA/tagB")

    out = render(tag_b, View.CHILDREN, depth=3)

    tag_c, tag_d = out["children"]
    assert tag_c["children"] == [
        {"name": "tagE", "path": "/tags/tagA/tagB/tagC/tagE", "children": []}
    ]
    assert tag_d["children"] == []


def test_depth_is_clamped(session):
    tag_b = session.get_node("/tags/tagA/tagB")
    out = render(tag_b, "children", depth=50, max_depth=1)
    assert all("children" not in child for child in out["children"])


def test_leaf_tag_has_empty_children(session):
    tag_d = session.get_node("/tags/tagA/tagB/tagD")
    assert render(tag_d, "children")["children"] == []


def test_parents_view_returns_immediate_parent(session):
    tag_b = session.get_node("/tags/tagA/tagB")

    out = render(tag_b, "parents")

    assert out == {
        "name": "tagB",
        "path": "/tags/tagA/tagB",
        "parent": {"name": "tagA", "path": "/tags/tagA"},
    }


def test_parents_view_climbs_two_levels(session):
    tag_b = session.get_node("/tags/tagA/tagB")

    out = render(tag_b, "parents", depth=2)

    assert out["parent"] == {
        "name": "tagA",
        "path": "/tags/tagA",
        "parent": {"name": "tags", "path": "/tags", "container": True},
    }


def test_parent_chain_stops_at_container(session):
    tag_e = session.get_node("/tags/tagA/tagB/tagC/tagE")

    out = render(tag_e, "parents", depth=10)

    names = []
    level = out["parent"]
    while level is not None:
        names.append(level["name"])
        if level.get("container"):
            assert "parent" not in level
            break
        level = level["parent"]
    assert names == ["tagC", "tagB", "tagA", "tags"]


def test_parent_chain_is_clamped(session):
    tag_e = session.get_node("/tags/tagA/tagB/tagC/tagE")
    out = render(tag_e, "parents", depth=10, max_depth=2)
    assert out["parent"]["parent"] == {"name": "tagB", "path": "/tags/tagA/tagB"}


def test_store_root_above_tags_is_the_container(repository: Repository):
    with repository.session() as s:
        s.add_node("/rootTag", {"resource_type": "tag"})
        s.add_node("/rootTag/child", {"resource_type": "tag"})
        child = s.get_node("/rootTag/child")

        out = render(child, "parents", depth=3)

        # the store root is not a tag, so it is the container
        assert out["parent"] == {
            "name": "rootTag",
            "path": "/rootTag",
            "parent": {"name": "", "path": "/", "container": True},
        }


def test_properties_are_rendered_on_request(session):
    tag_b = session.get_node("/tags/tagA/tagB")

    out = render(tag_b, "children", properties=True)

    assert out["properties"] == {"resource_type": "tag"}
    assert out["children"][0] == {
        "name": "tagC",
        "path": "/tags/tagA/tagB/tagC",
        "properties": {"resource_type": "tag"},
    }
    assert "properties" not in render(tag_b, "children")["children"][0]


def test_top_level_tag_reports_container_parent(session):
    tag_a = session.get_node("/tags/tagA")

    out = render(tag_a, "parents")

    assert out["parent"] == {"name": "tags", "path": "/tags", "container": True}
    # the children view of the same node must not trip over the container
    assert [c["name"] for c in render(tag_a, "children")["children"]] == ["tagB"]


def test_parentless_node_reports_null_parent(session):
    root = session.get_node("/")
    assert render(root, "parents")["parent"] is None


def test_plain_view_has_no_relationships(session):
    tag_b = session.get_node("/tags/tagA/tagB")
    assert render(tag_b) == {"name": "tagB", "path": "/tags/tagA/tagB"}
    assert render(tag_b, "") == {"name": "tagB", "path": "/tags/tagA/tagB"}


def test_unknown_view_and_bad_depth_are_rejected(session):
    tag_b = session.get_node("/tags/tagA/tagB")
    with pytest.raises(UnknownViewError):
        render(tag_b, "siblings")
    with pytest.raises(ValueError):
        render(tag_b, "children", depth=0)


def test_is_tag_and_parse_view(session):
    assert is_tag(session.get_node("/tags/tagA"))
    assert not is_tag(session.get_node("/tags/tagA/tagB/randomNode"))
    assert parse_view(" Children ") is View.CHILDREN
    assert parse_view(None) is None


class LoopNode:
    """A malformed external tree whose child points back at its parent."""

    def __init__(self, name: str, path: str) -> None:
        self.name = name
        self.path = path
        self.kids = []
        self.parent = None

    def children(self):
        return iter(self.kids)

    def get(self, name, default=None):
        return "tag" if name == "resource_type" else default


def test_cyclic_tree_terminates():
    a = LoopNode("a", "/t/a")
    b = LoopNode("b", "/t/a/b")
    a.kids = [b]
    b.kids = [a]

    out = render(a, "children", depth=10)

    assert out["children"] == [{"name": "b", "path": "/t/a/b", "children": []}]


def test_parent_chain_ends_with_null_at_a_parentless_tag():
    a = LoopNode("a", "/a")
    b = LoopNode("b", "/a/b")
    b.parent = a

    out = render(b, "parents", depth=5)

    assert out["parent"] == {"name": "a", "path": "/a", "parent": None}


def test_cyclic_parent_chain_terminates():
    a = LoopNode("a", "/t/a")
    b = LoopNode("b", "/t/a/b")
    a.parent = b
    b.parent = a

    out = render(b, "parents", depth=10)

    assert out["parent"] == {"name": "a", "path": "/t/a"}
