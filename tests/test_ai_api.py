#!/usr/bin/env python3
import unittest

import redis
from support import ScriptedOrchestrator, make_client, reset_app

from storefront.app.main import app
from storefront.app.session import KVStore
from storefront.schemas.ai_models import AIResponse


class TestAIRoutes(unittest.TestCase):
    def setUp(self):
        self.client, _ = make_client()

    def tearDown(self):
        reset_app()

    def test_status_lists_agents(self):
        status = self.client.get("/api/ai/status").json()
        self.assertEqual(status["totalEndpoints"], 0)
        self.assertEqual(sorted(a["name"] for a in status["agents"]), ["CustomerService-Agent", "RAG-Agent"])

    def test_ha_status(self):
        ha = self.client.get("/api/ha/status").json()
        self.assertIn("circuitBreakers", ha)
        self.assertIn("serviceTypes", ha)

    def test_chat_requires_message(self):
        self.assertEqual(self.client.post("/api/ai/chat", json={}).status_code, 400)
        self.assertEqual(self.client.post("/api/ai/chat", json={"message": "   "}).status_code, 400)

    def test_chat_local_consultation(self):
        res = self.client.post("/api/ai/chat", json={"prompt": "I love crystals for my heart"})
        self.assertEqual(res.status_code, 200)
        body = res.json()
        self.assertEqual(body["sentiment"]["emotion"], "positive")
        self.assertEqual(body["recommendations"][0]["crystal"], "rose quartz")
        self.assertNotIn("mediaUrl", body)

    def test_chat_image_request_attaches_media(self):
        media = AIResponse(content="image", model="flux", provider="Pollinations Image",
                           media_url="https://image.example/p.png")
        orchestrator = ScriptedOrchestrator("Citrine is lovely.", media)
        make_client(orchestrator=orchestrator)
        body = self.client.post("/api/ai/chat", json={"message": "A citrine pendant", "type": "image"}).json()
        self.assertEqual(body["content"], "Citrine is lovely.")
        self.assertEqual(body["mediaUrl"], "https://image.example/p.png")
        self.assertEqual(body["mediaType"], "image")
        self.assertEqual(orchestrator.requests[1].type, "image")

    def test_support_agent(self):
        make_client(orchestrator=ScriptedOrchestrator("We deliver across Winnipeg."))
        res = self.client.post("/api/ai/support", json={"message": "Do you deliver?"})
        self.assertEqual(res.json(), {"response": "We deliver across Winnipeg.", "agent": "CustomerService-Agent"})

    def test_widget_endpoints(self):
        res = self.client.post("/api/ai/contextual", json={"context": {"interactionPattern": "leaving", "cartItems": 0}})
        self.assertEqual(res.json()["suggestions"][0]["type"], "offers")

        res = self.client.post("/api/ai/product-insights",
                               json={"productId": 1, "userBehavior": {"timeViewing": 100, "interactions": []}})
        self.assertEqual(res.json()["emotionalResonance"], 70)

        res = self.client.post("/api/ai/behavior-analysis", json={"context": {"timeOnPage": 200}})
        self.assertEqual(res.json()["triggers"][0]["type"], "urgency")

        res = self.client.post("/api/ai/shopping-trigger",
                               json={"trigger": {"type": "guidance"}, "userContext": {"crystalPreferences": ["citrine"]}})
        self.assertEqual(res.json()["flowType"], "guidance")
        self.assertEqual(res.json()["personalization"]["energyAlignment"], ["citrine"])

        res = self.client.post("/api/ai/recommendations", json={"productId": 1})
        self.assertEqual([r["productId"] for r in res.json()], [2, 3])

        res = self.client.get("/api/ai/market-analysis")
        self.assertIn("Healing Crystals", res.json()["popularCategories"])

    def test_widget_numbers_are_coerced(self):
        res = self.client.post("/api/ai/contextual", json={"context": {"cartItems": "2", "timeOnPage": "200"}})
        self.assertEqual(res.status_code, 200)
        self.assertEqual([s["type"] for s in res.json()["suggestions"]], ["guidance"])

        res = self.client.post("/api/ai/product-insights", json={"productId": 1, "userBehavior": {"timeViewing": "30"}})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["emotionalResonance"], 63)

        res = self.client.post("/api/ai/behavior-analysis", json={"context": {"timeOnPage": "181.5"}})
        self.assertEqual(res.json()["triggers"][0]["type"], "urgency")

    def test_widget_bad_types_rejected(self):
        cases = [
            ("/api/ai/contextual", {"context": {"timeOnPage": "a while"}}),
            ("/api/ai/contextual", {"context": {"cartItems": -1}}),
            ("/api/ai/product-insights", {"userBehavior": {"interactions": "clicked"}}),
            ("/api/ai/behavior-analysis", {"context": {"cartItems": [1, 2]}}),
            ("/api/ai/shopping-trigger", {"userContext": {"crystalPreferences": "citrine"}}),
        ]
        for path, body in cases:
            res = self.client.post(path, json=body)
            self.assertEqual(res.status_code, 400, path)
            self.assertEqual(res.json()["detail"], "Invalid request data")


class TestAnalyticsRoute(unittest.TestCase):
    def setUp(self):
        self.client, _ = make_client()

    def tearDown(self):
        reset_app()

    def test_track_stores_event(self):
        res = self.client.post(
            "/api/analytics/track",
            json={"event": "product_view", "data": {"productId": 3}},
            headers={"User-Agent": "pytest", "CF-IPCountry": "CA", "CF-Connecting-IP": "203.0.113.9"},
        )
        self.assertEqual(res.json(), {"success": True})
        store = app.state.kv_store
        keys = store.keys("analytics:")
        self.assertEqual(len(keys), 1)
        event = store.get(keys[0])
        self.assertEqual(event["event"], "product_view")
        self.assertEqual(event["data"], {"productId": 3})
        self.assertEqual(event["country"], "CA")
        self.assertEqual(event["ip"], "203.0.113.9")
        self.assertEqual(event["userAgent"], "pytest")

    def test_event_name_required(self):
        self.assertEqual(self.client.post("/api/analytics/track", json={"data": {}}).status_code, 400)

    def test_track_survives_redis_outage(self):
        class DownRedis:
            def _fail(self, *args, **kwargs):
                raise redis.ConnectionError("Connection refused")

            get = set = delete = scan_iter = pipeline = _fail

        reset_app()
        self.client, _ = make_client(kv_store=KVStore(use_redis=True, client=DownRedis()))
        res = self.client.post("/api/analytics/track", json={"event": "page_view"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"success": True})
        store = app.state.kv_store
        self.assertEqual(store.backend, "memory")
        self.assertEqual(len(store.keys("analytics:")), 1)


if __name__ == '__main__':
    unittest.main()
