"""Explicit registry of transports, composed from configuration."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from repository import Repository

from .activity import ActivityCache
from .chat import ChatTransport
from .models import TYPE_CHAT, DeliveryEvent, DeliveryResult, DeliveryStatus
from .ports import ActivityCacheProtocol, ProfileWriter, Transport
from .profiles import DEFAULT_PROFILES_ROOT, CompactProfileFormatter
from .resolver import DEFAULT_STORE_ROOT, HashedPathResolver

LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[Mapping[str, Any], Repository, ActivityCacheProtocol], Transport]


def _make_chat(cfg: Mapping[str, Any], repository: Repository, cache: ActivityCacheProtocol) -> Transport:
    return ChatTransport(
        repository,
        HashedPathResolver(cfg.get("store_root") or DEFAULT_STORE_ROOT),
        cache,
        CompactProfileFormatter(cfg.get("profiles_root") or DEFAULT_PROFILES_ROOT),
    )


FACTORIES: Dict[str, TransportFactory] = {TYPE_CHAT: _make_chat}


class TransportRegistry:
    """Holds one transport per name and fans delivery events out to them."""

    def __init__(self) -> None:
        self._transports: Dict[str, Transport] = {}

    @classmethod
    def from_config(
        cls,
        cfg: Mapping[str, Any],
        repository: Repository,
        activity_cache: Optional[ActivityCacheProtocol] = None,
        factories: Optional[Mapping[str, TransportFactory]] = None,
    ) -> "TransportRegistry":
        """Build the transports listed under ``messaging.transports``."""
        msg_cfg = cfg.get("messaging", {}) or {}
        names = msg_cfg.get("transports") or [TYPE_CHAT]
        table = dict(factories or FACTORIES)
        cache = activity_cache if activity_cache is not None else ActivityCache()

        registry = cls()
        for name in names:
            factory = table.get(name)
            if factory is None:
                raise ValueError(f"Unknown transport {name!r}; known: {sorted(table)}")
            registry.register(factory(msg_cfg, repository, cache))
        return registry

    def register(self, transport: Transport) -> None:
        if transport.name in self._transports:
            raise ValueError(f"Transport {transport.name!r} is already registered")
        self._transports[transport.name] = transport
        LOGGER.info("Registered transport %s", transport.name)

    @property
    def names(self) -> List[str]:
        return list(self._transports)

    def get(self, name: str) -> Transport:
        return self._transports[name]

    def profile_writer(self, name: str) -> ProfileWriter:
        transport = self._transports[name]
        if not isinstance(transport, ProfileWriter):
            raise KeyError(f"Transport {name!r} does not write profiles")
        return transport

    def dispatch(self, event: DeliveryEvent) -> List[DeliveryResult]:
        """Offer every route to every transport; one result per route, in order."""
        routes = list(event.routes)
        outcomes: List[Optional[DeliveryResult]] = [None] * len(routes)
        for transport in self._transports.values():
            for i, result in enumerate(transport.send(routes, event.message)):
                if result.status is not DeliveryStatus.SKIPPED:
                    outcomes[i] = result
        out: List[DeliveryResult] = []
        for route, result in zip(routes, outcomes):
            if result is None:
                LOGGER.debug("No transport claimed route %s -> %s", route.transport, route.recipient)
                result = DeliveryResult(route, DeliveryStatus.SKIPPED)
            out.append(result)
        return out
