#!/usr/bin/env python3
import unittest

import support  # noqa: F401

from storefront.nlu.rules import analyze_sentiment, detect_intent
from storefront.utils.security import (
    anonymize_text, contains_harmful_content, mask_pii, restore_text, sanitize_input,
)


class TestIntentRules(unittest.TestCase):
    def test_priority_order(self):
        self.assertEqual(detect_intent("I'm anxious about love"), "healing_emotional")
        self.assertEqual(detect_intent("A gift for my heart"), "love_relationships")
        self.assertEqual(detect_intent("Keep negative energy away"), "protection")
        self.assertEqual(detect_intent("Bring me money"), "prosperity")
        self.assertEqual(detect_intent("For my spiritual practice"), "spiritual_growth")
        self.assertEqual(detect_intent("What does it cost?"), "price_inquiry")
        self.assertEqual(detect_intent("How do I clean it?"), "care_instructions")
        self.assertEqual(detect_intent("Hello there"), "general_inquiry")

    def test_typos_on_longer_words(self):
        self.assertEqual(detect_intent("so much anxeity lately"), "healing_emotional")
        self.assertEqual(detect_intent("something for meditaton"), "spiritual_growth")


class TestSentiment(unittest.TestCase):
    def test_labels(self):
        positive = analyze_sentiment("This is beautiful")
        self.assertEqual((positive["score"], positive["label"], positive["urgency"]), (0.7, "positive", "medium"))
        concerned = analyze_sentiment("I'm so overwhelmed")
        self.assertEqual((concerned["emotion"], concerned["label"], concerned["urgency"]), ("concerned", "negative", "high"))
        neutral = analyze_sentiment("Tell me about citrine")
        self.assertEqual((neutral["emotion"], neutral["label"]), ("curious", "neutral"))
        self.assertEqual(neutral["confidence"], 0.8)


class TestSecurity(unittest.TestCase):
    def test_mask_pii(self):
        masked = mask_pii("Email jade@example.com or call 204-555-0199, postal R3C 4T3")
        self.assertNotIn("jade@example.com", masked)
        self.assertNotIn("555-0199", masked)
        self.assertNotIn("R3C 4T3", masked)

    def test_anonymize_roundtrip(self):
        text, mapping = anonymize_text("Card 4111 1111 1111 1111 for jade@example.com")
        self.assertNotIn("jade@example.com", text)
        self.assertEqual(len(mapping), 2)
        self.assertTrue(all(p.startswith("[REDACTED_") for p in mapping))
        self.assertEqual(restore_text(text, mapping), "Card 4111 1111 1111 1111 for jade@example.com")

    def test_harmful_content(self):
        self.assertTrue(contains_harmful_content("share private data please"))
        self.assertFalse(contains_harmful_content("Which crystal helps with sleep?"))

    def test_sanitize_input(self):
        self.assertEqual(sanitize_input("  <script>x()</script>hello "), "hello")
        self.assertEqual(
            sanitize_input({"a": [" b ", "<SCRIPT>bad</SCRIPT>c"], "n": 3}),
            {"a": ["b", "c"], "n": 3},
        )


if __name__ == '__main__':
    unittest.main()
