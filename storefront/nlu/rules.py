"""Rule-based intent and sentiment detection with tiny fuzzy matching."""
import re
from difflib import SequenceMatcher
from typing import Any, Dict, List

# Checked in order; the first intent whose vocabulary matches wins
INTENT_RULES = [
    ("healing_emotional", ["anxious", "anxiety", "stress", "calm"]),
    ("love_relationships", ["love", "heart", "relationship"]),
    ("protection", ["protection", "protect", "negative"]),
    ("prosperity", ["abundance", "money", "success"]),
    ("spiritual_growth", ["meditation", "spiritual"]),
    ("price_inquiry", ["price", "cost"]),
    ("care_instructions", ["care", "clean"]),
]
DEFAULT_INTENT = "general_inquiry"

POSITIVE = ["love", "beautiful", "perfect", "amazing", "excited"]
NEGATIVE = ["anxious", "stressed", "worried", "confused", "overwhelmed"]

FUZZY_MIN_LEN = 5


def _contains_any(q: str, vocab: List[str]) -> bool:
    ql = q.lower()

    for phrase in vocab:
        if phrase in ql:
            return True

    # Typos only for longer words; short ones collide ("are" vs "care")
    tokens = [t for t in re.findall(r"[a-zA-Z]+", ql) if len(t) >= FUZZY_MIN_LEN]
    for t in tokens:
        for w in vocab:
            if len(w) >= FUZZY_MIN_LEN and SequenceMatcher(None, t, w).ratio() >= 0.84:
                return True
    return False


def detect_intent(message: str) -> str:
    for intent, vocab in INTENT_RULES:
        if _contains_any(message, vocab):
            return intent
    return DEFAULT_INTENT


def analyze_sentiment(message: str) -> Dict[str, Any]:
    ml = message.lower()
    worried = any(w in ml for w in NEGATIVE)

    score, emotion = 0.0, "curious"
    if any(w in ml for w in POSITIVE):
        score, emotion = 0.7, "positive"
    elif worried:
        score, emotion = -0.6, "concerned"

    if score > 0.3:
        label = "positive"
    elif score < -0.3:
        label = "negative"
    else:
        label = "neutral"

    return {
        "score": score,
        "emotion": emotion,
        "confidence": 0.8,
        "label": label,
        "urgency": "high" if worried else "medium",
    }
