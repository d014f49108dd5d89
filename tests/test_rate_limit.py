#!/usr/bin/env python3
import unittest
from datetime import datetime, timezone
from unittest import mock

import redis
from support import ScriptedOrchestrator, make_client, reset_app

from storefront.agents.crystal_consultant_agent import CrystalConsultant
from storefront.agents.shopping_insights import FALLBACK_RECOMMENDATIONS
from storefront.app.config import Config
from storefront.app.main import app
from storefront.app.rate_limit import DailyRequestLimiter
from storefront.app.session import KVStore


def fixed_clock():
    return datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


class BrokenStore:
    def incr(self, key, ttl=None):
        raise ConnectionError("kv down")


class DownRedis:
    """Redis client whose server went away after startup."""

    def _fail(self, *args, **kwargs):
        raise redis.ConnectionError("Connection refused")

    get = set = delete = scan_iter = pipeline = _fail


class TestKVStore(unittest.TestCase):
    def test_memory_backend_roundtrip_and_prefix(self):
        store = KVStore(use_redis=False)
        self.assertEqual(store.backend, "memory")
        store.put("analytics:1", {"event": "view"}, ttl=60)
        store.put("other", 1)
        self.assertEqual(store.get("analytics:1"), {"event": "view"})
        self.assertEqual(store.keys("analytics:"), ["analytics:1"])
        self.assertTrue(store.delete("other"))
        self.assertIsNone(store.get("other"))

    def test_counter_increments(self):
        store = KVStore(use_redis=False)
        self.assertEqual(store.incr("c", ttl=10), 1)
        self.assertEqual(store.incr("c", ttl=10), 2)

    def test_expired_entries_disappear(self):
        store = KVStore(use_redis=False)
        store.put("gone", "x", ttl=10)
        store._memory["gone"] = ("x", 0.0)
        self.assertIsNone(store.get("gone"))

    def test_redis_outage_switches_to_memory(self):
        store = KVStore(use_redis=True, client=DownRedis())
        self.assertEqual(store.backend, "redis")
        store.put("analytics:1", {"event": "view"})
        self.assertEqual(store.backend, "memory")
        self.assertEqual(store.get("analytics:1"), {"event": "view"})
        self.assertEqual(store.incr("requests:today"), 1)
        self.assertEqual(store.keys("analytics:"), ["analytics:1"])
        self.assertTrue(store.delete("analytics:1"))

    def test_each_operation_survives_outage(self):
        for call in (
            lambda s: s.get("k"),
            lambda s: s.incr("k"),
            lambda s: s.delete("k"),
            lambda s: s.keys("k"),
        ):
            store = KVStore(use_redis=True, client=DownRedis())
            call(store)
            self.assertEqual(store.backend, "memory")


class TestDailyRequestLimiter(unittest.TestCase):
    def test_counts_before_current_request(self):
        store = KVStore(use_redis=False)
        limiter = DailyRequestLimiter(store, max_requests=10, enabled=True, degrade_ratio=0.8, clock=fixed_clock)
        self.assertEqual(limiter.key(), "requests:2025-03-14")
        self.assertEqual(limiter.check(), 0)
        self.assertEqual(limiter.check(), 1)
        self.assertEqual(store.get("requests:2025-03-14"), 2)

    def test_thresholds(self):
        limiter = DailyRequestLimiter(KVStore(use_redis=False), max_requests=10, enabled=True, degrade_ratio=0.8)
        self.assertEqual(limiter.degrade_threshold, 8)
        self.assertFalse(limiter.is_degraded(8))
        self.assertTrue(limiter.is_degraded(9))
        self.assertFalse(limiter.is_exhausted(9))
        self.assertTrue(limiter.is_exhausted(10))

    def test_disabled_and_failing_store_fail_open(self):
        store = KVStore(use_redis=False)
        self.assertEqual(DailyRequestLimiter(store, max_requests=1, enabled=False).check(), 0)
        self.assertEqual(DailyRequestLimiter(BrokenStore(), max_requests=1, enabled=True).check(), 0)


class TestDailyLimitMiddleware(unittest.TestCase):
    def setUp(self):
        self.client, _ = make_client()
        self.store = app.state.kv_store
        app.state.request_limiter = DailyRequestLimiter(
            self.store, max_requests=3, enabled=True, degrade_ratio=0.5, clock=fixed_clock
        )

    def tearDown(self):
        reset_app()

    def test_degrade_then_redirect(self):
        self.assertNotIn("X-Degrade-Mode", self.client.get("/api/categories").headers)  # count 0
        self.client.get("/api/categories")  # count 1
        res = self.client.get("/api/categories")  # count 2 > 1
        self.assertEqual(res.headers["X-Degrade-Mode"], "true")

        res = self.client.get("/api/categories")  # count 3 >= 3
        self.assertEqual(res.status_code, 429)
        self.assertEqual(res.headers["Retry-After"], "86400")
        body = res.json()
        self.assertEqual(body["error"], "Daily request limit reached")
        self.assertTrue(body["redirect"].endswith("/api/categories"))
        self.assertEqual(res.headers["X-Fallback-URL"] + "/api/categories", body["redirect"])

    def test_health_is_not_counted(self):
        for _ in range(5):
            self.assertEqual(self.client.get("/health").status_code, 200)
        self.assertIsNone(self.store.get("requests:2025-03-14"))

    def test_degraded_chat_stays_local(self):
        app.state.consultant = CrystalConsultant(ScriptedOrchestrator("Amethyst would suit you."))
        self.store.put("requests:2025-03-14", 2)
        res = self.client.post("/api/ai/chat", json={"message": "I feel anxious lately"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.headers["X-Degrade-Mode"], "true")
        self.assertEqual(res.json()["provider"], "Local Intelligence")

    def test_degraded_support_uses_agent_fallback(self):
        scripted = ScriptedOrchestrator("should not be used")
        agent = app.state.agents["customer_service"]
        agent.orchestrator = scripted
        self.store.put("requests:2025-03-14", 2)
        with mock.patch.object(agent, "fallback_response", return_value="Please try again shortly.") as fallback:
            res = self.client.post("/api/ai/support", json={"message": "Where is my order?"})
        self.assertEqual(res.headers["X-Degrade-Mode"], "true")
        self.assertEqual(res.json(), {"response": "Please try again shortly.", "agent": "CustomerService-Agent"})
        fallback.assert_called_once_with("Where is my order?")
        self.assertEqual(scripted.requests, [])

    def test_degraded_recommendations_are_fixed(self):
        scripted = ScriptedOrchestrator('[{"productId": 9, "reason": "x"}]')
        app.state.orchestrator = scripted
        self.store.put("requests:2025-03-14", 2)
        res = self.client.post("/api/ai/recommendations", json={"productId": 1})
        self.assertEqual(res.json(), FALLBACK_RECOMMENDATIONS)
        self.assertEqual(scripted.requests, [])

    def test_preflight_is_not_counted(self):
        preflight = {"Origin": "https://shop.example", "Access-Control-Request-Method": "POST"}
        for _ in range(5):
            self.assertEqual(self.client.options("/api/cart", headers=preflight).status_code, 200)
        self.client.options("/api/cart")
        self.assertIsNone(self.store.get("requests:2025-03-14"))


class TestLimitConfig(unittest.TestCase):
    def test_defaults_are_valid(self):
        self.assertTrue(Config.validate())

    def test_rejects_unusable_limits(self):
        for name, value in (("DEGRADE_RATIO", 0), ("DEGRADE_RATIO", 1.5),
                            ("MAX_REQUESTS_PER_DAY", 0), ("MAX_REQUESTS_PER_DAY", -5)):
            with mock.patch.object(Config, name, value):
                with self.assertRaises(ValueError):
                    Config.validate()


if __name__ == '__main__':
    unittest.main()
