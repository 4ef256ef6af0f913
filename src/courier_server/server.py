"""FastAPI application exposing message delivery and tag views."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from messaging import (
    ActivityCache,
    DeliveryEvent,
    Message,
    MessageMetadataError,
    Route,
    TransportRegistry,
)
from repository import Repository, RepositoryError, Session, normalize_path
from tags import DEFAULT_MAX_DEPTH, is_tag, parse_view, render

from .config import load_config

LOGGER = logging.getLogger(__name__)


# -----------------------------
# Pydantic request/response
# -----------------------------
class RouteModel(BaseModel):
    transport: str = Field(..., min_length=1)
    recipient: str = Field(..., min_length=1)


class DeliverRequest(BaseModel):
    message_path: str = Field(..., min_length=1, description="Location of the source message.")
    routes: List[RouteModel] = Field(default_factory=list)


class DeliveryResultModel(BaseModel):
    transport: str
    recipient: str
    status: str
    error: Optional[str] = None


class DeliverResponse(BaseModel):
    message_id: str
    results: List[DeliveryResultModel]


class ActivityResponse(BaseModel):
    userid: str
    time: Optional[datetime] = None
    update: bool


# -----------------------------
# Utilities
# -----------------------------
def _split_selector(session: Session, raw: str) -> Tuple[str, Optional[str]]:
    """Split ``/tags/a/b.children.json`` into the node path and its selector.

    A dotted name that exists as a node wins over reading the dot as a
    selector separator.
    """
    path = normalize_path(raw)
    if path.endswith(".json"):
        path = path[: -len(".json")]
    head, _, last = path.rpartition("/")
    if "." not in last or session.node_exists(path):
        return path, None
    name, selector = last.split(".", 1)
    return normalize_path(f"{head}/{name}"), selector


def _make_repository(cfg: Dict[str, Any]) -> Repository:
    repo_cfg = cfg.get("repository", {}) or {}
    return Repository(str(repo_cfg.get("data_dir") or "data"))


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config_path: Optional[str] = None,
    repository: Optional[Repository] = None,
    activity_cache: Optional[ActivityCache] = None,
    registry: Optional[TransportRegistry] = None,
) -> FastAPI:
    cfg = load_config(config_path)

    cors_origins = cfg.get("server", {}).get("cors_origins", ["*"])
    tags_cfg = cfg.get("tags", {}) or {}
    tags_root = normalize_path(tags_cfg.get("root") or "/tags")
    max_depth = int(tags_cfg.get("max_depth", DEFAULT_MAX_DEPTH))

    # Services
    repository = repository or _make_repository(cfg)
    activity_cache = activity_cache if activity_cache is not None else ActivityCache()
    registry = registry or TransportRegistry.from_config(cfg, repository, activity_cache)

    app = FastAPI(title="Courier", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RepositoryError)
    def repository_failure(request: Request, exc: RepositoryError) -> JSONResponse:
        LOGGER.error("Storage failure on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "transports": registry.names,
            "data_dir": str(repository.root),
        }

    @app.get("/tags/{tag_path:path}")
    def get_tag(
        tag_path: str,
        depth: int = Query(default=1, ge=1),
        properties: bool = Query(default=False),
    ) -> Dict[str, Any]:
        with repository.session() as session:
            try:
                path, selector = _split_selector(session, f"{tags_root}/{tag_path}")
                view = parse_view(selector)
            except ValueError as e:
                # UnknownViewError and malformed paths alike
                raise HTTPException(status_code=400, detail=str(e))

            if not session.node_exists(path):
                raise HTTPException(status_code=404, detail=f"No tag at {path}")
            node = session.get_node(path)
            if not is_tag(node):
                raise HTTPException(status_code=404, detail=f"{path} is not a tag")
            return render(node, view, depth=depth, max_depth=max_depth, properties=properties)

    @app.post("/messages/deliver", response_model=DeliverResponse)
    def deliver(req: DeliverRequest):
        with repository.session() as session:
            try:
                path = normalize_path(req.message_path)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if not session.node_exists(path):
                raise HTTPException(status_code=404, detail=f"No message at {path}")
            try:
                message = Message.from_node(session.get_node(path))
            except MessageMetadataError as e:
                raise HTTPException(status_code=422, detail=str(e))

        event = DeliveryEvent.of(message, (Route(r.transport, r.recipient) for r in req.routes))
        results = registry.dispatch(event)
        return DeliverResponse(
            message_id=message.id,
            results=[DeliveryResultModel(**r.to_dict()) for r in results],
        )

    @app.get("/profiles/{user_id}")
    def get_profile(user_id: str, transport: str = "chat") -> Dict[str, Any]:
        try:
            writer = registry.profile_writer(transport)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"No profile writer for {transport!r}")
        sink: Dict[str, Any] = {}
        try:
            writer.write_profile(user_id, sink)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return sink

    @app.get("/activity/{user_id}", response_model=ActivityResponse)
    def get_activity(user_id: str, since: Optional[datetime] = None):
        return ActivityResponse(
            userid=user_id,
            time=activity_cache.get(user_id),
            update=activity_cache.has_update(user_id, since),
        )

    return app
