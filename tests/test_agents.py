#!/usr/bin/env python3
import random
import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from support import ScriptedOrchestrator, make_session_factory, offline_orchestrator

from storefront.agents.customer_service_agent import (
    CustomerServiceAgent, extract_crystal_name, match_intention, parse_price_range,
)
from storefront.agents.rag_agent import CRYSTALS, RAGAgent
from storefront.data.storage import Storage


class TestRAGAgent(unittest.TestCase):
    def setUp(self):
        self.agent = RAGAgent(offline_orchestrator(), make_session_factory())

    def test_index_covers_crystals_products_and_business(self):
        self.assertEqual(sorted(self.agent.category_index), ["crystals", "products", "winnipeg"])
        self.assertEqual(len(self.agent.category_index["products"]), 9)

    def test_search_ranks_by_relevance(self):
        results = self.agent.search_knowledge("lepidolite anxiety relief")
        self.assertLessEqual(len(results), 5)
        self.assertEqual(results[0]["id"], "crystal-lepidolite")
        self.assertAlmostEqual(results[0]["relevance"], 1.0)
        self.assertTrue(all(r["similarity"] > 0 for r in results))

    def test_search_by_category_and_short_words(self):
        results = self.agent.search_knowledge("winnipeg delivery", category="winnipeg")
        self.assertTrue(results)
        self.assertTrue(all(r["category"] == "winnipeg" for r in results))
        self.assertEqual(self.agent.search_knowledge("is a of"), [])

    def test_crystal_lookup(self):
        self.assertEqual(self.agent.lookup_crystal_properties("Rose Quartz")["chakra"], "Heart")
        self.assertEqual(self.agent.lookup_crystal_properties("lapis")["name"], "Lapis Lazuli")
        self.assertEqual(self.agent.lookup_crystal_properties("lepidolyte")["name"], "Lepidolite")
        missing = self.agent.lookup_crystal_properties("obsidian")
        self.assertIn("error", missing)
        self.assertIn("turquoise", missing["suggestion"])

    def test_shipping_info(self):
        self.assertEqual(self.agent.get_shipping_info("Winnipeg, MB")["type"], "local")
        self.assertEqual(self.agent.get_shipping_info("Toronto, Canada")["carrier"], "Canada Post")
        self.assertEqual(self.agent.get_shipping_info("Berlin")["timeframe"], "7-14 business days")

    def test_product_info(self):
        info = self.agent.get_product_info(5)
        self.assertEqual(info["product"]["sku"], "TC-ROS-001")
        self.assertEqual(info["crystalInfo"], CRYSTALS["rose-quartz"])
        self.assertTrue(info["inStock"])
        self.assertEqual(self.agent.get_product_info(999), {"error": "Product not found"})

    def test_tool_calls_in_model_output(self):
        agent = RAGAgent(
            ScriptedOrchestrator("Here you go: TOOL_CALL: lookup_crystal_properties(crystalName=\"citrine\") "
                                 "and TOOL_CALL: unknown_tool(x=1)"),
            make_session_factory(),
        )
        reply = agent.process_message("Tell me about citrine")
        self.assertIn("[lookup_crystal_properties executed:", reply)
        self.assertIn("Solar Plexus", reply)
        self.assertIn("TOOL_CALL: unknown_tool(x=1)", reply)
        self.assertEqual([m.type for m in agent.memory], ["user", "tool", "system"])
        self.assertFalse(agent.is_active)

    def test_failing_orchestrator_gives_fallback(self):
        agent = RAGAgent(ScriptedOrchestrator(RuntimeError("boom")), make_session_factory(), rng=random.Random(1))
        reply = agent.process_message("hello")
        self.assertTrue(reply)
        self.assertFalse(agent.is_active)

    def test_retrieve_and_generate(self):
        orchestrator = ScriptedOrchestrator("Lepidolite is calming.")
        agent = RAGAgent(orchestrator, make_session_factory())
        self.assertEqual(agent.retrieve_and_generate("calming lepidolite"), "Lepidolite is calming.")
        request = orchestrator.requests[0]
        self.assertEqual(request.temperature, 0.3)
        self.assertEqual(request.max_tokens, 800)
        self.assertIn("RETRIEVED KNOWLEDGE", request.prompt)

    def test_memory_is_bounded(self):
        for i in range(25):
            self.agent.add_to_memory("user", f"message {i}")
        self.assertEqual(len(self.agent.memory), 20)
        self.assertEqual(self.agent.memory[0].content, "message 5")


class TestCustomerServiceHelpers(unittest.TestCase):
    def test_parse_price_range(self):
        self.assertEqual(parse_price_range("under $50"), (None, 50.0))
        self.assertEqual(parse_price_range("over 80"), (80.0, None))
        self.assertEqual(parse_price_range("40-90"), (40.0, 90.0))
        self.assertEqual(parse_price_range("40 to 90"), (40.0, 90.0))
        self.assertEqual(parse_price_range("cheap"), (None, None))

    def test_extract_crystal_name(self):
        self.assertEqual(extract_crystal_name("Medium Rose Quartz Pendant"), "rose quartz")
        self.assertEqual(extract_crystal_name("Gold Chain Necklace"), "Gold")

    def test_match_intention(self):
        self.assertGreater(match_intention("love", CRYSTALS["rose-quartz"]), match_intention("love", CRYSTALS["citrine"]))
        self.assertEqual(match_intention(None, CRYSTALS["citrine"]), 0)
        self.assertEqual(match_intention("love", {"error": "x"}), 0)


class TestCustomerServiceAgent(unittest.TestCase):
    def setUp(self):
        self.factory = make_session_factory()
        self.now = datetime(2025, 5, 10, tzinfo=timezone.utc)
        rag = RAGAgent(offline_orchestrator(), self.factory)
        self.agent = CustomerServiceAgent(offline_orchestrator(), rag, self.factory, clock=lambda: self.now)

    def _order(self, address):
        db = self.factory()
        try:
            storage = Storage(db)
            storage.add_to_cart("session_cs", 5)
            return storage.create_order_from_cart("session_cs", {
                "customer_email": "jade@example.com", "shipping_address": address,
            }).id
        finally:
            db.close()

    def test_recommendations_filter_and_rank(self):
        result = self.agent.recommend_products(intention="love", price_range="under 50")
        self.assertEqual(result["totalFound"], 3)
        top = result["recommendations"][0]
        self.assertEqual(top["product"]["sku"], "TC-ROS-001")
        self.assertIn("particularly suitable for your interest in love", top["reasoning"])

    def test_recommendations_by_crystal(self):
        result = self.agent.recommend_products(crystal_type="lapis")
        self.assertEqual(result["totalFound"], 4)

    def test_order_status(self):
        order_id = self._order("12 Main St, Winnipeg")
        status = self.agent.check_order_status(order_id)
        self.assertEqual(status["statusDescription"], "Your order has been received and is being prepared.")
        self.assertIn("(local delivery)", status["estimatedDelivery"])
        self.assertEqual(status["trackingInfo"], "Tracking will be provided when your order ships.")
        self.assertIn("error", self.agent.check_order_status(999))

    def test_delivery_estimate(self):
        placed = self.now - timedelta(days=2)
        self.assertEqual(self.agent.delivery_estimate("pending", "Toronto", placed), "5 business days remaining")
        old = self.now - timedelta(days=30)
        self.assertEqual(self.agent.delivery_estimate("shipped", "Toronto", old), "1 business days remaining")
        self.assertEqual(self.agent.delivery_estimate("delivered", "Toronto", old), "Delivered")

    def test_shipping_costs(self):
        self.assertEqual(self.agent.calculate_shipping("Winnipeg", 80)["cost"], "0.00")
        local = self.agent.calculate_shipping("Winnipeg", 50)
        self.assertEqual(local["cost"], "10.00")
        self.assertEqual(local["amountToFreeShipping"], 25)
        self.assertEqual(self.agent.calculate_shipping("Canada", 100)["cost"], "15.00")
        self.assertEqual(self.agent.calculate_shipping("Canada", 300)["cost"], "24.00")
        self.assertEqual(self.agent.calculate_shipping("France", 300)["cost"], "36.00")

    def test_book_consultation(self):
        booking = self.agent.book_consultation("jade@example.com", "2025-06-01T10:00:00", "Chakra")
        self.assertIn("bookingId", booking)
        db = self.factory()
        try:
            saved = Storage(db).get_contact_submissions()
        finally:
            db.close()
        self.assertTrue(saved[0].is_consultation)
        self.assertEqual(saved[0].subject, "Chakra Consultation Request")

    def test_care_instructions(self):
        care = self.agent.get_care_instructions("citrine", "Sterling Silver")
        self.assertIn("sunlight", care["crystalCare"])
        self.assertIn("anti-tarnish", care["metalCare"]["storage"])
        self.assertEqual(len(care["generalTips"]), 4)

    def test_handle_inquiry_adds_retrieved_knowledge(self):
        orchestrator = ScriptedOrchestrator("Happy to help!")
        rag = self.agent.rag_agent
        agent = CustomerServiceAgent(orchestrator, rag, self.factory)
        with mock.patch.object(rag, "search_knowledge", wraps=rag.search_knowledge) as search:
            self.assertEqual(agent.handle_customer_inquiry("Do you deliver in Winnipeg?"), "Happy to help!")
        search.assert_called_once_with("Do you deliver in Winnipeg?")
        self.assertTrue(orchestrator.requests[0].prompt.endswith("RESPONSE:"))


if __name__ == '__main__':
    unittest.main()
