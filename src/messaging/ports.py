"""Ports (interfaces) used by the messaging transports.

Transports only depend on these contracts, so the content store, activity
cache and profile source can be swapped without touching delivery logic.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from repository import Session

from .models import DeliveryResult, Message, Route


class PathResolver(Protocol):
    """Maps a recipient and message id to the copy's location in the store."""

    def resolve(self, recipient: str, message_id: str, session: Session) -> str:
        ...


class ActivityCacheProtocol(Protocol):
    """Last-activity store, possibly remote.

    ``put`` may raise anything (a remote cache can drop its connection). A
    transport treats that as a lost activity update, not a lost delivery.
    """

    def put(self, user_id: str, timestamp: datetime) -> None:
        ...

    def get(self, user_id: str) -> Optional[datetime]:
        ...


class ProfileFormatter(Protocol):
    def write_compact_info(self, session: Session, user_id: str, sink: Dict[str, Any]) -> None:
        ...


@runtime_checkable
class Transport(Protocol):
    """A named delivery channel; ignores routes carrying another transport label."""

    name: str

    def send(self, routes: Sequence[Route], message: Message) -> List[DeliveryResult]:
        ...


@runtime_checkable
class ProfileWriter(Protocol):
    def write_profile(self, user_id: str, sink: Dict[str, Any]) -> None:
        ...
