"""Behaviour-driven shopping helpers for the storefront widgets."""
import json
import random
import time
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..app.ai_orchestrator import AIOrchestrator
from ..app.errors import NoProviderAvailableError, ProviderError
from ..schemas.ai_models import AIRequest
from ..utils.logger import get_logger

logger = get_logger("insights")

ENERGETIC_PROFILES = ["High Vibration", "Grounding", "Healing", "Protective"]
MOON_PHASES = ["New Moon", "Waxing", "Full Moon", "Waning"]

FALLBACK_RECOMMENDATIONS = [
    {"productId": 2, "reason": "Complementary healing properties for emotional balance"},
    {"productId": 3, "reason": "Aesthetic harmony with rose gold wire wrapping"},
]

MARKET_TRENDS = {
    "popularCategories": ["Healing Crystals", "Wire Wrapped Jewellery", "Chakra Accessories"],
    "seasonalTrends": "Spring collection showing increased demand for rose quartz and green aventurine",
    "priceInsights": "Premium handcrafted pieces commanding 15-20% higher prices in Canadian market",
    "customerPreferences": "Canadian customers prefer authentic, ethically-sourced crystals with verified origins",
}


def contextual_suggestions(context: Dict[str, Any]) -> List[Dict[str, Any]]:
    suggestions = []
    cart_items = context.get("cartItems", 0) or 0
    time_on_page = context.get("timeOnPage", 0) or 0
    preferences = context.get("crystalPreferences") or []

    if context.get("interactionPattern") == "leaving" and cart_items == 0:
        suggestions.append({
            "type": "offers",
            "title": "Crystal Connection Detected",
            "message": "Your browsing suggests a strong connection to our crystals. "
                       "Would you like a personalized recommendation?",
            "action": "get_recommendation",
            "urgency": "high",
            "timing": 5,
        })
    if time_on_page > 120 and cart_items > 0:
        suggestions.append({
            "type": "guidance",
            "title": "Perfect Crystal Pairing",
            "message": "Based on your cart, I can suggest complementary crystals that enhance energy flow.",
            "action": "show_pairings",
            "urgency": "medium",
            "timing": 10,
        })
    if preferences:
        suggestions.append({
            "type": "education",
            "title": "Crystal Care Wisdom",
            "message": f"Learn advanced care techniques for {preferences[0]} crystals.",
            "action": "show_care_guide",
            "urgency": "low",
            "timing": 30,
        })
    return suggestions


def product_insights(product_id: Any, behavior: Dict[str, Any],
                     rng: Optional[random.Random] = None) -> Dict[str, Any]:
    rng = rng or random.Random()
    viewing = behavior.get("timeViewing", 0) or 0
    interactions = behavior.get("interactions") or []

    return {
        "id": str(int(time.time() * 1000)),
        "productId": product_id,
        "viewingTime": viewing,
        "emotionalResonance": min(95, 60 + viewing / 10),
        "purchaseIntent": min(90, 40 + viewing / 8),
        "crystalAlignment": ["healing", "protection", "clarity", "manifestation"],
        "personalityMatch": min(88, 50 + len(interactions) * 8),
        "energeticProfile": rng.choice(ENERGETIC_PROFILES),
        "recommendedTiming": "This crystal resonates best during evening meditation or morning intention setting",
        "complementaryProducts": [2, 3, 5],
        "chakraAlignment": ["Heart Chakra", "Crown Chakra", "Third Eye"],
        "moonPhaseRecommendation": rng.choice(MOON_PHASES),
    }


def behavior_analysis(context: Dict[str, Any]) -> Dict[str, Any]:
    pattern = {
        "hesitationPoints": ["price_comparison", "authenticity_questions", "shipping_concerns"],
        "motivators": ["spiritual_growth", "healing_properties", "aesthetic_appeal"],
        "priceRange": [25, 150],
        "preferredTiming": "evening_browsing",
        "socialInfluence": 0.7,
    }
    triggers = []
    if (context.get("timeOnPage", 0) or 0) > 180:
        triggers.append({
            "type": "urgency",
            "message": "This crystal resonates strongly with your energy. Others are also viewing it right now.",
            "action": "secure_now",
            "confidence": 0.85,
            "timing": 10,
        })
    if context.get("interactionPattern") == "deciding":
        triggers.append({
            "type": "educational",
            "message": "This crystal's vibration aligns perfectly with your current energy needs.",
            "action": "show_properties",
            "confidence": 0.9,
            "timing": 15,
        })
    return {"pattern": pattern, "triggers": triggers}


def shopping_trigger(trigger: Dict[str, Any], user_context: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "flowType": trigger.get("type"),
        "personalization": {
            "crystalRecommendations": ["amethyst", "rose_quartz", "clear_quartz"],
            "energyAlignment": user_context.get("crystalPreferences", []),
            "timingAdvice": "Current moon phase supports manifestation work",
        },
        "success": True,
    }


def _parse_recommendations(text: str) -> Optional[List[Dict[str, Any]]]:
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        return None
    try:
        items = json.loads(text[start:end + 1])
    except ValueError:
        return None
    parsed = [
        {"productId": item["productId"], "reason": str(item.get("reason", ""))}
        for item in items
        if isinstance(item, dict) and "productId" in item
    ]
    return parsed or None


def complementary_recommendations(product_id: Any, orchestrator: AIOrchestrator) -> List[Dict[str, Any]]:
    request = AIRequest(
        prompt=(
            "As a Canadian crystal jewellery expert, recommend 3 complementary products for someone viewing "
            f"product {product_id}. Focus on healing properties and aesthetic harmony. "
            'Return a JSON array of objects with "productId" and "reason".'
        ),
        max_tokens=1000,
    )
    try:
        reply = orchestrator.complete(request)
    except (ProviderError, NoProviderAvailableError, ValidationError) as e:
        logger.info(f"[INSIGHTS] recommendation model unavailable: {e}")
        return [dict(r) for r in FALLBACK_RECOMMENDATIONS]

    parsed = _parse_recommendations(reply.content)
    if parsed is None:
        logger.info("[INSIGHTS] unparseable recommendation reply, using fallback")
        return [dict(r) for r in FALLBACK_RECOMMENDATIONS]
    return parsed[:3]


def market_analysis() -> Dict[str, Any]:
    return dict(MARKET_TRENDS)
