"""Crystal consultant behind the chat endpoint.

Asks the orchestrator first (the "Sage" persona) and, when external calls are
not allowed or every provider fails, answers from a local crystal table using
the keyword intent and sentiment rules.
"""
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..app.ai_orchestrator import AIOrchestrator, clip_prompt
from ..app.errors import NoProviderAvailableError, ProviderError
from ..nlu.rules import analyze_sentiment, detect_intent
from ..schemas.ai_models import AIRequest
from ..utils.logger import get_logger

logger = get_logger("consultant")

CRYSTAL_TABLE: Dict[str, Dict[str, Any]] = {
    "amethyst": {
        "properties": "Calming, spiritual protection, enhanced intuition",
        "healing": "Anxiety relief, insomnia, addictive behaviors",
        "chakras": ["Crown", "Third Eye"],
        "price": [35, 75],
    },
    "rose quartz": {
        "properties": "Unconditional love, emotional healing, self-acceptance",
        "healing": "Heart wounds, self-love, relationship harmony",
        "chakras": ["Heart"],
        "price": [25, 65],
    },
    "clear quartz": {
        "properties": "Amplification, clarity, universal healing",
        "healing": "General healing, mental clarity, energy amplification",
        "chakras": ["All"],
        "price": [20, 55],
    },
    "citrine": {
        "properties": "Abundance, confidence, creative energy",
        "healing": "Depression, self-esteem, manifestation",
        "chakras": ["Solar Plexus"],
        "price": [30, 70],
    },
    "lepidolite": {
        "properties": "Anxiety relief, emotional balance, peaceful sleep",
        "healing": "Stress, panic attacks, emotional trauma",
        "chakras": ["Heart", "Third Eye", "Crown"],
        "price": [40, 80],
    },
}

# (crystal, confidence) pairs per intent; anything unlisted gets the default
INTENT_CRYSTALS = {
    "healing_emotional": [("amethyst", 0.9), ("lepidolite", 0.85)],
    "love_relationships": [("rose quartz", 0.95), ("amethyst", 0.7)],
    "spiritual_growth": [("clear quartz", 0.9), ("amethyst", 0.85)],
}
DEFAULT_CRYSTALS = [("clear quartz", 0.8), ("amethyst", 0.8)]

SAGE_PROMPT = """You are Sage, an expert crystal consultant for Troves & Coves jewelry.
Customer message: "{message}"
{context_line}
Provide a warm, personalized response that:
1. Acknowledges their emotional state
2. Recommends specific crystals with clear reasoning
3. Includes practical guidance (pricing $20-80, care instructions)
4. Invites further conversation

Crystal expertise: Amethyst (calming, $35-75), Rose Quartz (love, $25-65), Clear Quartz (clarity, $20-55), Citrine (abundance, $30-70), Lepidolite (anxiety relief, $40-80).

Response (max 200 words):"""


@dataclass
class ConsultationResult:
    response: str
    reasoning: List[str]
    sentiment: Dict[str, Any]
    recommendations: List[Dict[str, Any]]
    provider: str = "Local Intelligence"
    model: str = "crystal-rules"
    media_url: Optional[str] = None
    media_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def recommend_for_intent(intent: str) -> List[Dict[str, Any]]:
    return [
        {"crystal": name, **CRYSTAL_TABLE[name], "confidence": confidence}
        for name, confidence in INTENT_CRYSTALS.get(intent, DEFAULT_CRYSTALS)
    ]


def personalized_response(sentiment: Dict[str, Any], recommendations: List[Dict[str, Any]]) -> str:
    if sentiment["emotion"] == "concerned":
        parts = ["I sense you're seeking support and healing. "]
    elif sentiment["emotion"] == "positive":
        parts = ["I love your enthusiasm for crystal energy! "]
    else:
        parts = ["Thank you for reaching out about crystal guidance. "]

    if recommendations:
        top = recommendations[0]
        low, high = top["price"]
        parts.append(f"Based on your message, I'm drawn to recommend {top['crystal']} for you. {top['properties']}. ")
        parts.append(f"This beautiful stone is particularly helpful for {top['healing']}. ")
        parts.append(f"Our {top['crystal']} pieces range from ${low} to ${high}. ")

    parts.append("Would you like to see our current collection, or would you prefer to tell me more about "
                  "your specific needs?")
    return "".join(parts)


def parse_model_reply(reply: str, message: str) -> Dict[str, Any]:
    """Derive sentiment and crystal recommendations from free-form model text."""
    text = reply.lower()
    asked = message.lower()

    if "anxious" in text or "stress" in text or "worried" in asked:
        sentiment = {"score": -0.6, "emotion": "concerned", "confidence": 0.9, "label": "negative", "urgency": "high"}
    elif "love" in text or "excited" in text or "wonderful" in text:
        sentiment = {"score": 0.7, "emotion": "positive", "confidence": 0.9, "label": "positive", "urgency": "medium"}
    else:
        sentiment = {"score": 0, "emotion": "curious", "confidence": 0.8, "label": "neutral", "urgency": "medium"}

    mentions = []
    for name, info in CRYSTAL_TABLE.items():
        if name in text or name.replace(" ", "") in text:
            mentions.append({
                "crystal": name,
                "confidence": 0.9,
                "reasoning": f"AI recommended {name} based on customer needs",
                "properties": info["properties"],
                "price": info["price"],
            })

    return {
        "sentiment": sentiment,
        "recommendations": mentions[:3],
        "reasoning": [
            "AI analyzed customer message using free language model",
            f"Detected emotional tone: {sentiment['emotion']}",
            f"Recommended crystals: {', '.join(m['crystal'] for m in mentions)}",
            "Response personalized for crystal consultation context",
        ],
    }


def sage_prompt(message: str, context: Optional[Dict[str, Any]] = None) -> str:
    context_line = f"Shopping context: {json.dumps(context, default=str)}\n" if context else ""
    return SAGE_PROMPT.format(message=message, context_line=context_line)


class CrystalConsultant:
    def __init__(self, orchestrator: AIOrchestrator):
        self.orchestrator = orchestrator

    def consult(self, message: str, context: Optional[Dict[str, Any]] = None,
                allow_external: bool = True) -> ConsultationResult:
        """Answer with the model when allowed; ``context`` (cart, page, preferences) is shared with it."""
        if allow_external:
            try:
                return self._ask_model(message, context)
            except (ProviderError, NoProviderAvailableError, ValidationError) as e:
                logger.info(f"[CONSULT] external consultation unavailable, using local analysis: {e}")
        return self.local_consultation(message)

    def _ask_model(self, message: str, context: Optional[Dict[str, Any]] = None) -> ConsultationResult:
        request = AIRequest(
            prompt=clip_prompt(sage_prompt(message, context)),
            max_tokens=300,
            temperature=0.7,
        )
        reply = self.orchestrator.complete(request)
        analysis = parse_model_reply(reply.content, message)
        return ConsultationResult(
            response=reply.content.strip(),
            reasoning=analysis["reasoning"],
            sentiment=analysis["sentiment"],
            recommendations=analysis["recommendations"],
            provider=reply.provider,
            model=reply.model,
        )

    def local_consultation(self, message: str) -> ConsultationResult:
        intent = detect_intent(message)
        sentiment = analyze_sentiment(message)
        recommendations = recommend_for_intent(intent)
        approach = "supportive healing" if sentiment["label"] == "negative" else "encouraging guidance"
        top = recommendations[0]["crystal"] if recommendations else "amethyst"

        return ConsultationResult(
            response=personalized_response(sentiment, recommendations),
            reasoning=[
                f"Detected intent: {intent}",
                f"Emotional state: {sentiment['emotion']}",
                f"Recommended approach: {approach}",
                f"Top crystal match: {top}",
            ],
            sentiment=sentiment,
            recommendations=recommendations,
        )
