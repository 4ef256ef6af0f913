"""Message routing and delivery over pluggable transports."""

from __future__ import annotations

from .activity import ActivityCache
from .chat import ChatTransport
from .models import (
    DeliveryEvent,
    DeliveryResult,
    DeliveryStatus,
    Message,
    MessageMetadataError,
    Route,
)
from .profiles import CompactProfileFormatter
from .registry import TransportRegistry
from .resolver import HashedPathResolver

__all__ = [
    "ActivityCache",
    "ChatTransport",
    "CompactProfileFormatter",
    "DeliveryEvent",
    "DeliveryResult",
    "DeliveryStatus",
    "HashedPathResolver",
    "Message",
    "MessageMetadataError",
    "Route",
    "TransportRegistry",
]
