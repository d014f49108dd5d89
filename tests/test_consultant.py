#!/usr/bin/env python3
import random
import unittest

from support import ScriptedOrchestrator, offline_orchestrator

from storefront.agents import shopping_insights
from storefront.agents.crystal_consultant_agent import CrystalConsultant, parse_model_reply
from storefront.app.errors import ProviderError


class TestCrystalConsultant(unittest.TestCase):
    def test_model_reply_is_parsed(self):
        orchestrator = ScriptedOrchestrator("I hear your stress. Amethyst and RoseQuartz would suit you.")
        result = CrystalConsultant(orchestrator).consult("I'm worried about work")
        self.assertEqual(result.provider, "Test Provider")
        self.assertEqual(result.sentiment["emotion"], "concerned")
        self.assertEqual([r["crystal"] for r in result.recommendations], ["amethyst", "rose quartz"])
        self.assertEqual(orchestrator.requests[0].max_tokens, 300)
        self.assertIn("You are Sage", orchestrator.requests[0].prompt)

    def test_shopping_context_reaches_prompt(self):
        orchestrator = ScriptedOrchestrator("Citrine would brighten your cart.")
        CrystalConsultant(orchestrator).consult("What goes with my cart?", {"cartItems": 2, "page": "citrine-set"})
        prompt = orchestrator.requests[0].prompt
        self.assertIn('Shopping context: {"cartItems": 2, "page": "citrine-set"}', prompt)

        orchestrator = ScriptedOrchestrator("Amethyst.")
        CrystalConsultant(orchestrator).consult("Something calming")
        self.assertNotIn("Shopping context", orchestrator.requests[0].prompt)

    def test_provider_failure_uses_local_analysis(self):
        orchestrator = ScriptedOrchestrator(ProviderError("Pollinations AI", "HTTP 500"))
        result = CrystalConsultant(orchestrator).consult("I feel anxious and stressed")
        self.assertEqual(result.provider, "Local Intelligence")
        self.assertEqual(result.reasoning[0], "Detected intent: healing_emotional")
        self.assertEqual(result.recommendations[0]["crystal"], "amethyst")
        self.assertTrue(result.response.startswith("I sense you're seeking support and healing."))

    def test_no_provider_uses_local_analysis(self):
        result = CrystalConsultant(offline_orchestrator()).consult("Something for my relationship")
        self.assertEqual(result.recommendations[0]["crystal"], "rose quartz")
        self.assertIn("$25 to $65", result.response)

    def test_external_calls_can_be_skipped(self):
        orchestrator = ScriptedOrchestrator("should not be used")
        result = CrystalConsultant(orchestrator).consult("meditation help", allow_external=False)
        self.assertEqual(orchestrator.requests, [])
        self.assertEqual(result.recommendations[0]["crystal"], "clear quartz")

    def test_prohibited_message_stays_local(self):
        orchestrator = ScriptedOrchestrator("should not be used")
        result = CrystalConsultant(orchestrator).consult("I need medical advice")
        self.assertEqual(orchestrator.requests, [])
        self.assertEqual(result.provider, "Local Intelligence")

    def test_parse_reply_without_crystals(self):
        parsed = parse_model_reply("What a wonderful question!", "hello")
        self.assertEqual(parsed["sentiment"]["label"], "positive")
        self.assertEqual(parsed["recommendations"], [])


class TestShoppingInsights(unittest.TestCase):
    def test_contextual_suggestions(self):
        leaving = shopping_insights.contextual_suggestions({"interactionPattern": "leaving", "cartItems": 0})
        self.assertEqual([s["type"] for s in leaving], ["offers"])
        lingering = shopping_insights.contextual_suggestions(
            {"timeOnPage": 150, "cartItems": 2, "crystalPreferences": ["citrine"]}
        )
        self.assertEqual([s["type"] for s in lingering], ["guidance", "education"])
        self.assertIn("citrine", lingering[1]["message"])

    def test_product_insights_scores_are_capped(self):
        insights = shopping_insights.product_insights(
            3, {"timeViewing": 600, "interactions": ["zoom"] * 10}, rng=random.Random(7)
        )
        self.assertEqual(insights["emotionalResonance"], 95)
        self.assertEqual(insights["purchaseIntent"], 90)
        self.assertEqual(insights["personalityMatch"], 88)
        self.assertIn(insights["energeticProfile"], shopping_insights.ENERGETIC_PROFILES)
        self.assertIn(insights["moonPhaseRecommendation"], shopping_insights.MOON_PHASES)

        short = shopping_insights.product_insights(3, {"timeViewing": 40, "interactions": []})
        self.assertEqual(short["emotionalResonance"], 64)
        self.assertEqual(short["purchaseIntent"], 45)
        self.assertEqual(short["personalityMatch"], 50)

    def test_behavior_triggers(self):
        analysis = shopping_insights.behavior_analysis({"timeOnPage": 200, "interactionPattern": "deciding"})
        self.assertEqual([t["type"] for t in analysis["triggers"]], ["urgency", "educational"])
        self.assertEqual(shopping_insights.behavior_analysis({})["triggers"], [])

    def test_complementary_recommendations(self):
        reply = 'Sure! [{"productId": 5, "reason": "Rose quartz softens citrine"}, {"productId": 7}]'
        recs = shopping_insights.complementary_recommendations(3, ScriptedOrchestrator(reply))
        self.assertEqual(recs, [{"productId": 5, "reason": "Rose quartz softens citrine"},
                                {"productId": 7, "reason": ""}])

    def test_complementary_fallbacks(self):
        garbled = shopping_insights.complementary_recommendations(3, ScriptedOrchestrator("no json here"))
        self.assertEqual(garbled, shopping_insights.FALLBACK_RECOMMENDATIONS)
        offline = shopping_insights.complementary_recommendations(3, offline_orchestrator())
        self.assertEqual([r["productId"] for r in offline], [2, 3])


if __name__ == '__main__':
    unittest.main()
