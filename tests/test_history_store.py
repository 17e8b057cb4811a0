import json
from unittest.mock import MagicMock, Mock

import pytest
import redis

from skailink.errors import HistoryWriteError
from skailink.history.redis_store import SearchHistoryStore

PARAMS = {"origin": "DEL", "destination": "BOM", "departDate": "2025-11-15",
          "returnDate": None, "passengers": 2, "tripType": "one-way"}


def test_appends_to_capped_redis_list():
    client = MagicMock()
    pipe = client.pipeline.return_value
    store = SearchHistoryStore(client=client, max_entries=5, ttl_seconds=60)

    record = store.append("u1", PARAMS)

    assert store.backend == "redis"
    key, raw = pipe.lpush.call_args.args
    assert key == "history:u1"
    assert json.loads(raw)["passengers"] == 2
    pipe.ltrim.assert_called_once_with("history:u1", 0, 4)
    pipe.expire.assert_called_once_with("history:u1", 60)
    pipe.execute.assert_called_once()
    assert record["userId"] == "u1"
    assert record["searchedAt"]


def test_redis_errors_become_history_write_errors():
    client = MagicMock()
    client.pipeline.return_value.execute.side_effect = redis.ConnectionError("gone")
    store = SearchHistoryStore(client=client)
    with pytest.raises(HistoryWriteError):
        store.append("u1", PARAMS)


def test_missing_user_is_rejected():
    client = MagicMock()
    with pytest.raises(HistoryWriteError):
        SearchHistoryStore(client=client).append("", PARAMS)


def test_in_memory_fallback_when_redis_unreachable():
    client = Mock()
    client.ping.side_effect = redis.ConnectionError("offline")
    store = SearchHistoryStore(client=client, max_entries=2)
    assert store.backend == "memory"

    for origin in ("DEL", "BLR", "MAA"):
        store.append("u1", dict(PARAMS, origin=origin))

    recent = store.recent("u1")
    assert [r["origin"] for r in recent] == ["MAA", "BLR"]
    store.clear("u1")
    assert store.recent("u1") == []


def test_recent_reads_from_redis():
    client = MagicMock()
    client.lrange.return_value = [json.dumps({"origin": "DEL"})]
    store = SearchHistoryStore(client=client)
    assert store.recent("u1", limit=3) == [{"origin": "DEL"}]
    client.lrange.assert_called_once_with("history:u1", 0, 2)
