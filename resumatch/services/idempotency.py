"""
Idempotency cache for resume uploads
"""
import time
from typing import Any, Dict, Optional, Tuple

from resumatch.utils.config import IDEMPOTENCY_TTL_SECONDS
from resumatch.utils.logging_config import get_logger

logger = get_logger(__name__)


class IdempotencyCache:
    """Responses keyed by (user id, Idempotency-Key), kept for a fixed TTL"""

    def __init__(self, ttl_seconds: int = IDEMPOTENCY_TTL_SECONDS, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Tuple[str, str], Tuple[float, Any]] = {}

    def get(self, user_id: str, key: str) -> Optional[Any]:
        entry = self._entries.get((user_id, key))
        if entry is None:
            return None
        stored_at, response = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[(user_id, key)]
            return None
        return response

    def store(self, user_id: str, key: str, response: Any) -> None:
        if not key:
            return
        self._entries[(user_id, key)] = (self._clock(), response)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug(f"Purged {len(expired)} expired idempotency entries")
        return len(expired)

    def __len__(self):
        return len(self._entries)


idempotency_cache = IdempotencyCache()
