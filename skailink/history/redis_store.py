import json
import redis
from typing import Dict, List, Optional, Any
from datetime import datetime, timezone

from skailink.config import settings
from skailink.errors import HistoryWriteError
from skailink.obs.logger import log_event


class SearchHistoryStore:
    """Per-user search history kept as a capped Redis list (newest first).

    Falls back to an in-process dict when Redis is unreachable at start-up,
    mirroring how sessions are handled elsewhere in the stack.
    """

    def __init__(self, redis_url: str = None, max_entries: int = None, ttl_seconds: int = None,
                 client: Optional[redis.Redis] = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self.max_entries = max_entries or settings.HISTORY_MAX_ENTRIES
        self.ttl_seconds = ttl_seconds or settings.HISTORY_TTL_SECONDS
        self.prefix = "history:"
        self._fallback_store: Dict[str, List[Dict[str, Any]]] = {}
        self.client = client if client is not None else redis.from_url(self.redis_url, decode_responses=True)

        try:
            self.client.ping()
        except redis.RedisError:
            self.client = None
            log_event("history_store_fallback", level="WARNING", reason="redis unavailable")

    @property
    def backend(self) -> str:
        return "redis" if self.client is not None else "memory"

    def _get_key(self, user_id: str) -> str:
        return f"{self.prefix}{user_id}"

    def ping(self) -> bool:
        if self.client is None:
            return True
        return bool(self.client.ping())

    def build_record(self, user_id: str, search_params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "userId": user_id,
            "origin": search_params.get("origin"),
            "destination": search_params.get("destination"),
            "departDate": search_params.get("departDate"),
            "returnDate": search_params.get("returnDate"),
            "passengers": search_params.get("passengers", 1),
            "tripType": search_params.get("tripType"),
            "searchedAt": datetime.now(timezone.utc).isoformat(),
        }

    def append(self, user_id: str, search_params: Dict[str, Any]) -> Dict[str, Any]:
        if not user_id:
            raise HistoryWriteError("Cannot record history without a user id")
        record = self.build_record(user_id, search_params)

        if self.client is None:
            entries = self._fallback_store.setdefault(user_id, [])
            entries.insert(0, record)
            del entries[self.max_entries:]
            return record

        key = self._get_key(user_id)
        try:
            pipe = self.client.pipeline()
            pipe.lpush(key, json.dumps(record))
            pipe.ltrim(key, 0, self.max_entries - 1)
            pipe.expire(key, self.ttl_seconds)
            pipe.execute()
        except redis.RedisError as e:
            raise HistoryWriteError(f"Redis write failed: {e}") from e
        return record

    def recent(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        if self.client is None:
            return list(self._fallback_store.get(user_id, [])[:limit])
        rows = self.client.lrange(self._get_key(user_id), 0, limit - 1)
        return [json.loads(r) for r in rows]

    def clear(self, user_id: str) -> None:
        if self.client is None:
            self._fallback_store.pop(user_id, None)
            return
        self.client.delete(self._get_key(user_id))
