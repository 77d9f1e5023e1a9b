from unittest.mock import MagicMock

from frontdesk.services.kv_store import InMemoryKeyValueStore, RedisKeyValueStore
from frontdesk.services.token_service import (
    BOOKING_PURPOSE,
    MODIFY_PURPOSE,
    build_booking_link,
    build_modify_link,
    build_payment_link,
    issue_token,
    resolve_token,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestInMemoryStore:
    def test_value_expires_after_ttl(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)
        store.set("a", {"x": 1}, ttl_seconds=60)

        clock.now += 59
        assert store.get("a") == {"x": 1}

        clock.now += 1
        assert store.get("a") is None

    def test_add_only_when_absent(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)

        assert store.add("inbound:1", 1, ttl_seconds=10) is True
        assert store.add("inbound:1", 1, ttl_seconds=10) is False

        clock.now += 10
        assert store.add("inbound:1", 1, ttl_seconds=10) is True

    def test_sweep_removes_expired_entries(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)
        store.set("short", 1, ttl_seconds=5)
        store.set("long", 2, ttl_seconds=500)

        clock.now += 10

        assert store.sweep() == 1
        assert len(store) == 1
        assert store.get("long") == 2

    def test_delete(self):
        store = InMemoryKeyValueStore()
        store.set("a", 1, ttl_seconds=60)
        store.delete("a")
        store.delete("missing")
        assert store.get("a") is None


class TestRedisStore:
    def test_values_are_json_with_prefix(self):
        client = MagicMock()
        client.get.return_value = '{"purpose": "booking"}'
        store = RedisKeyValueStore(client)

        store.set("token:abc", {"purpose": "booking"}, ttl_seconds=600)

        client.set.assert_called_once_with("frontdesk:token:abc", '{"purpose": "booking"}', ex=600)
        assert store.get("token:abc") == {"purpose": "booking"}

    def test_add_uses_nx(self):
        client = MagicMock()
        client.set.return_value = None
        store = RedisKeyValueStore(client)

        assert store.add("inbound:1", 1, ttl_seconds=60) is False
        assert client.set.call_args.kwargs["nx"] is True

    def test_missing_key(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisKeyValueStore(client).get("nope") is None


class TestTokens:
    def test_token_resolves_for_its_purpose(self):
        store = InMemoryKeyValueStore()
        token = issue_token(store, BOOKING_PURPOSE, {"phone": "+1555", "name": "Jane"})

        record = resolve_token(store, token, BOOKING_PURPOSE)

        assert record == {"purpose": "booking", "data": {"phone": "+1555", "name": "Jane"}}

    def test_purpose_mismatch_is_rejected(self):
        store = InMemoryKeyValueStore()
        token = issue_token(store, MODIFY_PURPOSE, {"booking_id": 1})

        assert resolve_token(store, token, BOOKING_PURPOSE) is None
        assert resolve_token(store, token)["purpose"] == MODIFY_PURPOSE

    def test_expired_token(self):
        clock = FakeClock()
        store = InMemoryKeyValueStore(clock=clock)
        token = issue_token(store, BOOKING_PURPOSE, {}, ttl_seconds=600)

        clock.now += 601

        assert resolve_token(store, token, BOOKING_PURPOSE) is None

    def test_unknown_token(self):
        assert resolve_token(InMemoryKeyValueStore(), "nope") is None

    def test_tokens_are_unique(self):
        store = InMemoryKeyValueStore()
        tokens = {issue_token(store, BOOKING_PURPOSE, {}) for _ in range(20)}
        assert len(tokens) == 20


class TestLinks:
    def test_links_point_to_web_app(self):
        store = InMemoryKeyValueStore()

        assert build_booking_link(store, "+1555", "Jane").startswith("http://hotel.test/booking?token=")
        assert build_modify_link(store, 4).startswith("http://hotel.test/modify?token=")
        assert build_payment_link(store, 4).startswith("http://hotel.test/payment?token=")

    def test_link_token_carries_booking(self):
        store = InMemoryKeyValueStore()
        link = build_payment_link(store, 42)

        token = link.split("token=", 1)[1]

        assert resolve_token(store, token, "payment")["data"] == {"booking_id": 42}
