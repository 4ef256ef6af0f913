"""Message, route and delivery records shared by transports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

from repository import RESOURCE_TYPE_PROPERTY, Node

LOGGER = logging.getLogger(__name__)

# -----------------------------
# Constants
# -----------------------------
TYPE_CHAT = "chat"

PROP_ID = "id"
PROP_FROM = "from"
PROP_TO = "to"
PROP_CREATED = "created"
PROP_BODY = "body"
PROP_READ = "read"
PROP_MESSAGEBOX = "messagebox"
PROP_SENDSTATE = "sendstate"

BOX_INBOX = "inbox"
STATE_NOTIFIED = "notified"
MESSAGE_RESOURCE_TYPE = "message"


class MessageMetadataError(ValueError):
    """A stored message lacks (or has unreadable) required metadata."""


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp (datetime, ISO string or epoch millis) to a datetime.

    Returns ``None`` when the value is absent or unreadable. Naive values are
    taken to be UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)):
        ts = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# -----------------------------
# Records
# -----------------------------
@dataclass(frozen=True)
class Route:
    """A (transport, recipient) pair attached to an outbound message."""

    transport: str
    recipient: str


@dataclass(frozen=True)
class Message:
    """Read-only snapshot of a stored message.

    ``sender`` and ``created`` may be missing on a malformed node; transports
    call :meth:`require_metadata` when they need them.
    """

    id: str
    path: str
    sender: Optional[str] = None
    created: Optional[datetime] = None
    body: Any = None
    resource_type: Optional[str] = None

    @classmethod
    def from_node(cls, node: Node) -> "Message":
        message_id = node.get(PROP_ID)
        if not message_id:
            raise MessageMetadataError(f"Message at {node.path} has no {PROP_ID!r} property")
        raw_created = node.get(PROP_CREATED)
        created = parse_timestamp(raw_created)
        if raw_created is not None and created is None:
            LOGGER.warning("Unreadable %s on %s: %r", PROP_CREATED, node.path, raw_created)
        sender = node.get(PROP_FROM)
        return cls(
            id=str(message_id),
            path=node.path,
            sender=str(sender) if sender else None,
            created=created,
            body=node.get(PROP_BODY),
            resource_type=node.get(RESOURCE_TYPE_PROPERTY),
        )

    def require_metadata(self) -> Tuple[datetime, str]:
        """Return ``(created, sender)`` or raise :class:`MessageMetadataError`."""
        if self.created is None:
            raise MessageMetadataError(f"Message {self.id} has a missing or malformed {PROP_CREATED!r}")
        if not self.sender:
            raise MessageMetadataError(f"Message {self.id} has no {PROP_FROM!r}")
        return self.created, self.sender


@dataclass(frozen=True)
class DeliveryEvent:
    """Ordered routes plus the message they apply to."""

    message: Message
    routes: Tuple[Route, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, message: Message, routes: Iterable[Route]) -> "DeliveryEvent":
        return cls(message=message, routes=tuple(routes))


@dataclass(frozen=True)
class DeliveryResult:
    route: Route
    status: DeliveryStatus
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "transport": self.route.transport,
            "recipient": self.route.recipient,
            "status": self.status.value,
            "error": self.error,
        }
