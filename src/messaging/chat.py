"""Chat transport: drops a copy of each message into the recipient's inbox."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Sequence, Tuple

from repository import RESOURCE_TYPE_PROPERTY, Repository, RepositoryError, Session, parent_path

from .models import (
    BOX_INBOX,
    MESSAGE_RESOURCE_TYPE,
    PROP_MESSAGEBOX,
    PROP_READ,
    PROP_SENDSTATE,
    PROP_TO,
    STATE_NOTIFIED,
    TYPE_CHAT,
    DeliveryResult,
    DeliveryStatus,
    Message,
    Route,
)
from .ports import ActivityCacheProtocol, PathResolver, ProfileFormatter

LOGGER = logging.getLogger(__name__)


class ChatTransport:
    """Delivers chat messages and writes compact profile info for chat peers.

    Collaborators are fixed at construction. Each call to :meth:`send` uses its
    own repository session; a failure on one route is logged and reported, and
    the remaining routes are still attempted.
    """

    def __init__(
        self,
        repository: Repository,
        path_resolver: PathResolver,
        activity_cache: ActivityCacheProtocol,
        profile_formatter: ProfileFormatter,
        name: str = TYPE_CHAT,
    ) -> None:
        self._repository = repository
        self._resolver = path_resolver
        self._activity = activity_cache
        self._profiles = profile_formatter
        self.name = name

    @property
    def type(self) -> str:
        """Message type handled by this transport."""
        return TYPE_CHAT

    def send(self, routes: Sequence[Route], message: Message) -> List[DeliveryResult]:
        results: List[DeliveryResult] = []
        with self._repository.session() as session:
            for route in routes:
                if route.transport != self.name:
                    results.append(DeliveryResult(route, DeliveryStatus.SKIPPED))
                    continue
                LOGGER.info("Delivering message %s to %s", message.id, route.recipient)
                try:
                    created, sender = self._deliver(session, route, message)
                except (RepositoryError, ValueError) as e:
                    LOGGER.exception("Delivery of %s to %s failed", message.id, route.recipient)
                    session.refresh()
                    results.append(DeliveryResult(route, DeliveryStatus.FAILED, str(e)))
                    continue
                results.append(self._touch_activity(route, sender, created))
        return results

    def _touch_activity(self, route: Route, sender: str, created: datetime) -> DeliveryResult:
        # Activity reflects when the message was written, not when it arrived.
        # The copy is already saved, so a cache failure does not undo delivery.
        try:
            self._activity.put(route.recipient, created)
            self._activity.put(sender, created)
        except Exception as e:
            LOGGER.exception("Activity update for %s to %s failed", sender, route.recipient)
            return DeliveryResult(route, DeliveryStatus.DELIVERED, f"activity not recorded: {e}")
        return DeliveryResult(route, DeliveryStatus.DELIVERED)

    def _deliver(self, session: Session, route: Route, message: Message) -> Tuple[datetime, str]:
        rcpt = route.recipient
        to_path = self._resolver.resolve(rcpt, message.id, session)

        session.create_node_if_absent(parent_path(to_path))  # type: ignore[arg-type]
        copy = session.copy(message.path, to_path)
        copy.set_property(PROP_READ, False)
        copy.set_property(PROP_TO, rcpt)
        copy.set_property(PROP_MESSAGEBOX, BOX_INBOX)
        copy.set_property(PROP_SENDSTATE, STATE_NOTIFIED)
        copy.set_property(RESOURCE_TYPE_PROPERTY, MESSAGE_RESOURCE_TYPE)

        # Read the source again: the event snapshot may predate the stored node.
        current = Message.from_node(session.get_node(message.path))
        created, sender = current.require_metadata()

        session.save()
        return created, sender

    def write_profile(self, user_id: str, sink: Dict[str, Any]) -> None:
        with self._repository.session() as session:
            self._profiles.write_compact_info(session, user_id, sink)
