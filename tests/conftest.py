"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
import sys
from pathlib import Path
import pytest

# Ensure src/ is on the import path (for local imports without installing as package)
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from repository import RESOURCE_TYPE_PROPERTY, Repository  # noqa: E402

CREATED = "2024-01-01T12:00:00+00:00"


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the root directory of the project."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(scope="function")
def tmp_data_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for the content store during tests."""
    d = tmp_path / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture(scope="function")
def repository(tmp_data_dir: Path) -> Repository:
    return Repository(str(tmp_data_dir))


@pytest.fixture(scope="function")
def tag_tree(repository: Repository) -> Repository:
    """tags + tagA + tagB + tagC
                        + tagD
                        + randomNode (not a tag)
    """
    tag = {RESOURCE_TYPE_PROPERTY: "tag"}
    with repository.session() as s:
        s.add_node("/tags")
        s.add_node("/tags/tagA", tag)
        s.add_node("/tags/tagA/tagB", tag)
        s.add_node("/tags/tagA/tagB/tagC", tag)
        s.add_node("/tags/tagA/tagB/tagD", tag)
        s.add_node("/tags/tagA/tagB/randomNode", {RESOURCE_TYPE_PROPERTY: "file"})
        s.add_node("/tags/tagA/tagB/tagC/tagE", tag)
        s.save()
    return repository


@pytest.fixture(scope="function")
def stored_message(repository: Repository) -> str:
    """Store an outgoing chat message and return its path."""
    path = "/outbox/m1"
    with repository.session() as s:
        s.create_node_if_absent("/outbox")
        s.add_node(
            path,
            {
                "id": "m1",
                "from": "alice",
                "created": CREATED,
                "body": "hello there",
                RESOURCE_TYPE_PROPERTY: "message",
            },
        )
        s.save()
    return path


@pytest.fixture(scope="function")
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Ensure tests run with a clean environment (no leftover vars)."""
    monkeypatch.delenv("COURIER_CONFIG", raising=False)

    for var in [k for k in os.environ if k.startswith("COURIER__")]:
        monkeypatch.delenv(var, raising=False)
    yield
