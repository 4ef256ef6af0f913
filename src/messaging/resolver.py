"""Recipient-scoped message locations."""
from __future__ import annotations

import hashlib
import re

from repository import Session, join, normalize_path

DEFAULT_STORE_ROOT = "/_user/message"


MAX_SEGMENT = 128
_DIGEST_LEN = 16


def _safe_segment(value: str) -> str:
    """Readable single path segment for ``value``.

    Values that are already safe and short pass through unchanged. Anything
    rewritten or cut short gets a digest of the original appended, so two
    distinct ids never share a segment.
    """
    raw = value.strip()
    s = re.sub(r"[^\w.\-@]+", "_", raw)
    if s == raw and len(s) <= MAX_SEGMENT:
        return s
    digest = hashlib.sha1(raw.encode("utf-8")).hexdigest()[:_DIGEST_LEN]
    return f"{s[:MAX_SEGMENT - _DIGEST_LEN - 1]}-{digest}"


class HashedPathResolver:
    """Shards recipients under two levels of their sha1 hash.

    ``alice`` + ``m1`` -> ``<root>/52/2b/alice/m1``
    """

    def __init__(self, store_root: str = DEFAULT_STORE_ROOT) -> None:
        self.store_root = normalize_path(store_root)

    def user_root(self, recipient: str) -> str:
        if not recipient or not recipient.strip():
            raise ValueError("recipient must be non-empty")
        digest = hashlib.sha1(recipient.encode("utf-8")).hexdigest()
        path = join(self.store_root, digest[0:2])
        path = join(path, digest[2:4])
        return join(path, _safe_segment(recipient))

    def resolve(self, recipient: str, message_id: str, session: Session) -> str:
        if not message_id or not str(message_id).strip():
            raise ValueError("message_id must be non-empty")
        return join(self.user_root(recipient), _safe_segment(str(message_id)))
