from __future__ import annotations

from pathlib import Path

import pytest

from repository import (
    ItemExistsError,
    PathNotFoundError,
    PropertyNotFoundError,
    Repository,
    RepositoryError,
    normalize_path,
    parent_path,
)
from repository import store


def test_saved_nodes_survive_reopening(tmp_path: Path):
    repo = Repository(str(tmp_path))
    with repo.session() as s:
        node = s.create_node_if_absent("/a/b/c")
        node.set_property("x", 1)
        s.save()

    reopened = Repository(str(tmp_path))
    with reopened.session() as s:
        assert s.get_node("/a/b/c").get_property("x") == 1
        assert [c.name for c in s.get_node("/a").children()] == ["b"]


def test_unsaved_changes_are_private_and_discarded(repository: Repository):
    with repository.session() as writer, repository.session() as reader:
        writer.add_node("/draft")
        assert writer.node_exists("/draft")
        assert not reader.node_exists("/draft")
        writer.refresh()
        assert not writer.node_exists("/draft")

    with repository.session() as s:
        s.add_node("/dropped")
    with repository.session() as s:
        assert not s.node_exists("/dropped")


def test_create_node_if_absent_is_idempotent(repository: Repository):
    with repository.session() as s:
        s.create_node_if_absent("/x/y")
        s.create_node_if_absent("/x/y")
        s.save()
        assert [c.path for c in s.get_node("/x").children()] == ["/x/y"]


def test_children_keep_insertion_order(repository: Repository):
    with repository.session() as s:
        s.add_node("/p")
        for name in ["zeta", "alpha", "mid"]:
            s.add_node(f"/p/{name}")
        s.save()
        assert [c.name for c in s.get_node("/p").children()] == ["zeta", "alpha", "mid"]


def test_copy_duplicates_subtree(repository: Repository):
    with repository.session() as s:
        s.add_node("/src", {"body": "hi"})
        s.add_node("/src/attachment", {"size": 3})
        s.add_node("/dst")
        s.copy("/src", "/dst/copy")
        s.save()

    with repository.session() as s:
        assert s.get_node("/dst/copy").get_property("body") == "hi"
        assert s.get_node("/dst/copy/attachment").get_property("size") == 3
        # the source is untouched
        assert s.get_node("/src").properties == {"body": "hi"}


def test_copy_rejects_existing_destination_and_missing_parent(repository: Repository):
    with repository.session() as s:
        s.add_node("/src")
        s.add_node("/taken")
        with pytest.raises(ItemExistsError):
            s.copy("/src", "/taken")
        with pytest.raises(PathNotFoundError):
            s.copy("/src", "/nowhere/copy")
        with pytest.raises(RepositoryError):
            s.copy("/src", "/src/inner")


def test_missing_nodes_and_properties_raise(repository: Repository):
    with repository.session() as s:
        with pytest.raises(PathNotFoundError):
            s.get_node("/ghost")
        node = s.add_node("/n")
        with pytest.raises(PropertyNotFoundError):
            node.get_property("nope")
        assert node.get("nope", "fallback") == "fallback"


def test_closed_session_refuses_work(repository: Repository):
    with repository.session() as s:
        pass
    with pytest.raises(RepositoryError):
        s.node_exists("/")


def test_root_has_no_parent(repository: Repository):
    with repository.session() as s:
        assert s.get_node("/").parent is None
        assert s.add_node("/top").parent.path == "/"


def test_failed_write_publishes_nothing(repository: Repository, monkeypatch):
    with repository.session() as s:
        s.add_node("/kept", {"v": 1})
        s.save()

    def disk_full(path, data):
        raise OSError("No space left on device")

    monkeypatch.setattr(store, "atomic_write_json", disk_full)
    with repository.session() as s:
        s.set_property("/kept", "v", 2)
        s.add_node("/lost")
        with pytest.raises(RepositoryError, match="No space left"):
            s.save()
    monkeypatch.undo()

    with repository.session() as s:
        assert s.get_node("/kept").get_property("v") == 1
        assert not s.node_exists("/lost")
        assert [c.name for c in s.get_node("/").children()] == ["kept"]


def test_corrupt_document_is_reported(tmp_path: Path):
    (tmp_path / "content.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(RepositoryError):
        Repository(str(tmp_path))


def test_path_helpers():
    assert normalize_path("//a///b/") == "/a/b"
    assert parent_path("/a") == "/"
    assert parent_path("/") is None
    with pytest.raises(ValueError):
        normalize_path("a/b")
    with pytest.raises(ValueError):
        normalize_path("/a/../b")
