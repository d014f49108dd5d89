"""Customer service agent: recommendations, order status, shipping, consultations and care."""
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .base_agent import AgentConfig, BaseAgent, Tool, logger
from .rag_agent import RAGAgent
from ..app.ai_orchestrator import AIOrchestrator
from ..data.storage import Storage
from ..schemas.io_models import ProductOut
from ..schemas.order_models import OrderOut

KNOWN_CRYSTALS = ["lepidolite", "turquoise", "citrine", "lapis", "rose quartz", "amethyst", "clear quartz"]

INTENTION_KEYWORDS = {
    "love": ["love", "heart", "relationship", "compassion"],
    "anxiety": ["calming", "anxiety", "stress", "peace"],
    "prosperity": ["abundance", "wealth", "success", "manifestation"],
    "protection": ["protection", "shield", "safety", "grounding"],
    "healing": ["healing", "health", "wellness", "recovery"],
    "communication": ["communication", "throat", "expression", "speaking"],
}

STATUS_DESCRIPTIONS = {
    "pending": "Your order has been received and is being prepared.",
    "processing": "Your jewelry is being carefully crafted and prepared for shipping.",
    "shipped": "Your order has been shipped and is on its way to you.",
    "delivered": "Your order has been successfully delivered.",
    "cancelled": "This order has been cancelled.",
}

METAL_CARE = {
    "gold filled": {
        "cleaning": "Clean with warm soapy water and soft cloth",
        "storage": "Store in dry place, preferably in individual pouches",
        "warnings": "Avoid harsh chemicals and abrasive materials",
    },
    "sterling silver": {
        "cleaning": "Use silver polishing cloth or mild silver cleaner",
        "storage": "Store with anti-tarnish strips in airtight container",
        "warnings": "Remove before swimming, exercising, or applying lotions",
    },
    "copper": {
        "cleaning": "Clean with lemon juice and salt, rinse thoroughly",
        "storage": "Store in dry environment to prevent oxidation",
        "warnings": "Patina development is natural and can be embraced or removed",
    },
}

GENERAL_CARE_TIPS = [
    "Cleanse crystals energetically with moonlight or sage",
    "Avoid exposing crystals to direct sunlight for extended periods",
    "Remove jewelry before water activities",
    "Store pieces separately to prevent scratching",
]

FREE_SHIPPING_THRESHOLD = 75.0


def parse_price_range(price_range: str) -> Tuple[Optional[float], Optional[float]]:
    """'under 50' -> (None, 50); 'over 80' -> (80, None); '40-90' / '40 to 90' -> (40, 90)."""
    text = (price_range or "").lower()
    numbers = [float(n) for n in re.findall(r"\d+(?:\.\d+)?", text)]
    if not numbers:
        return None, None
    if "under" in text or "below" in text:
        return None, numbers[0]
    if "over" in text or "above" in text:
        return numbers[0], None
    if ("-" in text or "to" in text) and len(numbers) >= 2:
        return numbers[0], numbers[1]
    return None, None


def extract_crystal_name(product_name: str) -> str:
    lowered = product_name.lower()
    for crystal in KNOWN_CRYSTALS:
        if crystal in lowered:
            return crystal
    return product_name.split(" ")[0] if product_name else ""


def match_intention(intention: Optional[str], crystal_info: Dict[str, Any]) -> int:
    if not intention or not crystal_info or "error" in crystal_info:
        return 0
    wanted = intention.lower()
    properties = [p.lower() for p in crystal_info.get("properties", [])]
    healing = crystal_info.get("healing", "").lower()

    score = sum(3 for p in properties if p in wanted)
    if wanted in healing:
        score += 2
    for key, keywords in INTENTION_KEYWORDS.items():
        if key in wanted:
            score += sum(1 for k in keywords if k in healing or any(k in p for p in properties))
    return score


class CustomerServiceAgent(BaseAgent):
    def __init__(self, orchestrator: AIOrchestrator, rag_agent: RAGAgent,
                 session_factory: Callable[[], Any], clock: Optional[Callable[[], datetime]] = None, **kwargs):
        config = AgentConfig(
            name="CustomerService-Agent",
            role="Customer Service Specialist for Crystal Jewelry",
            system_prompt=(
                "You are a friendly and knowledgeable customer service agent for Troves and Coves, a crystal "
                "jewelry business in Winnipeg. You specialize in:\n\n"
                "1. Product recommendations based on customer needs\n"
                "2. Crystal healing properties and spiritual guidance\n"
                "3. Order assistance and shipping information\n"
                "4. Local Winnipeg delivery and pickup options\n"
                "5. Jewelry care and maintenance advice\n"
                "6. Crystal consultation bookings\n\n"
                "Always maintain a warm, helpful tone while providing accurate information. When discussing "
                "crystal properties, present them as traditional beliefs. Focus on the craftsmanship and "
                "beauty of the jewelry alongside any spiritual aspects."
            ),
            capabilities=["Product recommendations", "Order assistance", "Shipping and delivery info",
                          "Crystal guidance", "Care instructions", "Consultation booking",
                          "Local Winnipeg services"],
            priority="high",
        )
        self.rag_agent = rag_agent
        self.session_factory = session_factory
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        super().__init__(config, orchestrator, **kwargs)

    def initialize_tools(self) -> None:
        self.register_tool(Tool(
            "recommend_products",
            "Recommend products based on customer needs, intentions, or crystal preferences",
            {"intention": "string", "priceRange": "string", "style": "string", "crystalType": "string"},
            lambda p: self.recommend_products(p.get("intention"), p.get("priceRange"), p.get("crystalType")),
        ))
        self.register_tool(Tool(
            "check_order_status", "Check the status of a customer order",
            {"orderId": "number"},
            lambda p: self.check_order_status(int(p["orderId"])),
        ))
        self.register_tool(Tool(
            "calculate_shipping", "Calculate shipping costs and delivery timeframes",
            {"location": "string", "orderValue": "number"},
            lambda p: self.calculate_shipping(p.get("location", ""), float(p.get("orderValue", 0))),
        ))
        self.register_tool(Tool(
            "book_consultation", "Help customers book crystal consultations",
            {"customerEmail": "string", "preferredDate": "string", "consultationType": "string"},
            lambda p: self.book_consultation(p.get("customerEmail", ""), p.get("preferredDate"),
                                             p.get("consultationType", "Crystal")),
        ))
        self.register_tool(Tool(
            "get_care_instructions", "Provide care instructions for specific crystals or jewelry pieces",
            {"crystalType": "string", "metalType": "string"},
            lambda p: self.get_care_instructions(p.get("crystalType"), p.get("metalType")),
        ))

    # --- tools ---

    def recommend_products(self, intention: Optional[str] = None, price_range: Optional[str] = None,
                           crystal_type: Optional[str] = None) -> Dict[str, Any]:
        db = self.session_factory()
        try:
            products = [ProductOut.model_validate(p).model_dump(by_alias=True, mode="json")
                        for p in Storage(db).get_products()]
        except Exception as e:
            logger.error(f"[AGENT] recommendation lookup failed: {e}")
            return {"error": "Failed to generate recommendations"}
        finally:
            db.close()

        candidates = [p for p in products if p["stockQuantity"] > 0]
        if crystal_type:
            candidates = [p for p in candidates if crystal_type.lower() in p["name"].lower()]
        low, high = parse_price_range(price_range) if price_range else (None, None)
        candidates = [
            p for p in candidates
            if (low is None or p["price"] >= low) and (high is None or p["price"] <= high)
        ]

        recommendations = []
        for product in candidates[:5]:
            crystal_info = self.rag_agent.lookup_crystal_properties(extract_crystal_name(product["name"]))
            score = match_intention(intention, crystal_info)
            recommendations.append({
                "product": product,
                "crystalInfo": None if "error" in crystal_info else crystal_info,
                "intentionMatch": score,
                "reasoning": self._reasoning(product, crystal_info, intention, score),
            })
        recommendations.sort(key=lambda r: r["intentionMatch"], reverse=True)

        return {
            "recommendations": recommendations[:3],
            "totalFound": len(candidates),
            "searchCriteria": {"intention": intention, "priceRange": price_range, "crystalType": crystal_type},
        }

    @staticmethod
    def _reasoning(product: Dict[str, Any], crystal_info: Dict[str, Any], intention: Optional[str],
                   score: int) -> str:
        reasons: List[str] = []
        if "error" not in crystal_info:
            reasons.append(f"{crystal_info['name']} is known for {' and '.join(crystal_info['properties'][:2])}")
            if intention and score > 0:
                reasons.append(f"particularly suitable for your interest in {intention}")
        category = (product.get("category") or {}).get("name")
        reasons.append(f"beautiful {category.lower() if category else 'jewelry piece'} handcrafted in Winnipeg")
        reasons.append(f"currently in stock at ${product['price']}")
        return ", ".join(reasons)

    def check_order_status(self, order_id: int) -> Dict[str, Any]:
        db = self.session_factory()
        try:
            order = Storage(db).get_order(order_id)
            if not order:
                return {"error": "Order not found. Please check your order number."}
            data = OrderOut.model_validate(order).model_dump(by_alias=True, mode="json")
            estimate = self.delivery_estimate(order.status, order.shipping_address, order.created_at)
        except Exception as e:
            logger.error(f"[AGENT] order status lookup failed: {e}")
            return {"error": "Unable to retrieve order information. Please try again."}
        finally:
            db.close()

        return {
            "order": data,
            "statusDescription": STATUS_DESCRIPTIONS.get(order.status, "Order status information is being updated."),
            "estimatedDelivery": estimate,
            "trackingInfo": (
                "Tracking information will be sent to your email once available."
                if order.status == "shipped"
                else "Tracking will be provided when your order ships."
            ),
        }

    def delivery_estimate(self, status: str, shipping_address: str, created_at: Optional[datetime]) -> str:
        if status == "delivered":
            return "Delivered"
        days_since = 0
        if created_at is not None:
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)
            days_since = (self.clock() - created_at).days
        if "winnipeg" in (shipping_address or "").lower():
            return f"{max(1, 3 - days_since)} business days remaining (local delivery)"
        return f"{max(1, 7 - days_since)} business days remaining"

    def calculate_shipping(self, location: str, order_value: float) -> Dict[str, Any]:
        info = self.rag_agent.get_shipping_info(location)
        free = False
        if info["type"] == "local" and order_value >= FREE_SHIPPING_THRESHOLD:
            cost, free = 0.0, True
        elif info["type"] == "local":
            cost = 10.0
        elif info["type"] == "national":
            cost = max(15.0, order_value * 0.08)
        else:
            cost = max(25.0, order_value * 0.12)

        return {
            **info,
            "cost": f"{cost:.2f}",
            "freeShippingEligible": free,
            "freeShippingThreshold": FREE_SHIPPING_THRESHOLD if info["type"] == "local" else None,
            "amountToFreeShipping": 0 if free else max(0.0, FREE_SHIPPING_THRESHOLD - order_value),
        }

    def book_consultation(self, customer_email: str, preferred_date: Optional[str],
                          consultation_type: str = "Crystal") -> Dict[str, Any]:
        db = self.session_factory()
        try:
            when = datetime.fromisoformat(preferred_date) if preferred_date else None
            submission = Storage(db).create_contact_submission(
                name="Crystal Consultation Booking",
                email=customer_email,
                subject=f"{consultation_type} Consultation Request",
                message=f"Consultation booking request for {consultation_type}",
                is_consultation=True,
                preferred_date=when,
            )
            booking_id = submission.id
        except Exception as e:
            logger.error(f"[AGENT] consultation booking failed: {e}")
            return {
                "error": "Unable to book consultation at this time. Please try contacting us directly.",
                "fallback": "You can reach us through the contact form or email for consultation bookings.",
            }
        finally:
            db.close()

        return {
            "bookingId": booking_id,
            "message": "Your consultation request has been received! We will contact you within 24 hours "
                       "to confirm your appointment.",
            "consultationType": consultation_type,
            "preferredDate": preferred_date,
            "nextSteps": [
                "Check your email for confirmation",
                "Prepare any questions about crystals or jewelry",
                "Consider your intentions and goals for the consultation",
            ],
        }

    def get_care_instructions(self, crystal_type: Optional[str] = None,
                              metal_type: Optional[str] = None) -> Dict[str, Any]:
        crystal_care = None
        if crystal_type:
            crystal_care = self.rag_agent.lookup_crystal_properties(crystal_type).get("care")
        return {
            "crystalCare": crystal_care,
            "metalCare": METAL_CARE.get(metal_type.lower()) if metal_type else None,
            "generalTips": list(GENERAL_CARE_TIPS),
            "localService": "Professional cleaning and repair services available in Winnipeg",
        }

    def handle_customer_inquiry(self, message: str, context: Optional[Dict[str, Any]] = None) -> str:
        enriched = dict(context or {})
        enriched["retrievedKnowledge"] = self.rag_agent.search_knowledge(message)
        return self.process_message(message, enriched)
