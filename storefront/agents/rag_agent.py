"""Knowledge agent: keyword retrieval over crystal, catalog and business documents."""
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from rapidfuzz import process

from .base_agent import AgentConfig, BaseAgent, Tool, logger
from ..app.ai_orchestrator import AIOrchestrator, clip_prompt
from ..data.storage import Storage
from ..schemas.ai_models import AIRequest
from ..schemas.io_models import ProductOut

CRYSTALS: Dict[str, Dict[str, Any]] = {
    "lepidolite": {
        "name": "Lepidolite",
        "properties": ["calming", "anxiety relief", "emotional balance", "stress reduction"],
        "chakra": "Crown and Third Eye",
        "color": "Purple to lavender",
        "hardness": "2.5-3",
        "description": 'A lithium-rich mica that promotes emotional healing and tranquility. Known as the "stone of transition" for its ability to help during times of change.',
        "healing": "Reduces anxiety, promotes restful sleep, aids in emotional healing, balances mood swings",
        "care": "Gentle cleaning with soft cloth, avoid water exposure for extended periods",
    },
    "turquoise": {
        "name": "Turquoise",
        "properties": ["protection", "communication", "healing", "wisdom"],
        "chakra": "Throat and Heart",
        "color": "Blue to blue-green",
        "hardness": "5-6",
        "description": "A sacred stone of protection, communication, and spiritual expansion. Revered by many cultures for its healing properties.",
        "healing": "Enhances communication, provides protection during travel, aids in emotional healing, promotes wisdom",
        "care": "Clean with soft brush and mild soap, store separately to avoid scratching",
    },
    "citrine": {
        "name": "Citrine",
        "properties": ["abundance", "manifestation", "joy", "energy"],
        "chakra": "Solar Plexus and Sacral",
        "color": "Yellow to golden brown",
        "hardness": "7",
        "description": 'Known as the "merchant\'s stone" and "stone of abundance." Carries the power of the sun and brings joy, wonder, and enthusiasm.',
        "healing": "Attracts wealth and prosperity, enhances creativity, boosts self-confidence, promotes joy and positivity",
        "care": "Durable stone, can be cleaned with water and mild soap, charge in sunlight",
    },
    "lapis-lazuli": {
        "name": "Lapis Lazuli",
        "properties": ["wisdom", "truth", "royalty", "honor"],
        "chakra": "Throat and Third Eye",
        "color": "Deep blue with gold flecks",
        "hardness": "5-5.5",
        "description": "A stone of wisdom and truth, prized since ancient times. Encourages honesty, compassion, and moral integrity.",
        "healing": "Enhances intellectual ability, stimulates wisdom, promotes honesty, aids in communication",
        "care": "Clean gently with soft cloth, avoid harsh chemicals, store carefully",
    },
    "rose-quartz": {
        "name": "Rose Quartz",
        "properties": ["love", "compassion", "emotional healing", "self-love"],
        "chakra": "Heart",
        "color": "Pale pink to deep rose",
        "hardness": "7",
        "description": "The stone of unconditional love and infinite peace. The most important crystal for healing the heart and heart chakra.",
        "healing": "Promotes self-love, attracts romantic love, heals emotional wounds, reduces stress and tension",
        "care": "Fade-resistant, can be cleansed with water, charge in moonlight",
    },
}

BUSINESS_INFO: Dict[str, Dict[str, str]] = {
    "shipping": {
        "localDelivery": "Free local delivery within Winnipeg city limits for orders over $75",
        "canadaShipping": "Canada Post standard shipping available across Manitoba and Canada",
        "internationalShipping": "International shipping available to select countries",
        "processing": "1-3 business days processing time",
        "packaging": "Eco-friendly packaging with care instructions included",
    },
    "business": {
        "location": "Winnipeg, Manitoba, Canada",
        "timezone": "Central Time (CST/CDT)",
        "businessHours": "Monday-Friday 9AM-6PM, Saturday 10AM-4PM CST",
        "consultations": "Virtual crystal consultations available by appointment",
        "localEvents": "Participation in Winnipeg artisan markets and crystal shows",
    },
}

CRYSTAL_FUZZY_CUTOFF = 80


@dataclass
class Document:
    id: str
    content: str
    source: str
    category: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class RAGAgent(BaseAgent):
    def __init__(self, orchestrator: AIOrchestrator, session_factory: Callable[[], Any], **kwargs):
        config = AgentConfig(
            name="RAG-Agent",
            role="Knowledge Retrieval and Information Specialist",
            system_prompt=(
                "You are a retrieval agent specializing in crystal jewelry, healing properties, and local "
                "Winnipeg business information. You have knowledge about:\n\n"
                "1. Crystal properties and healing benefits\n"
                "2. Jewelry craftsmanship and materials\n"
                "3. Local Winnipeg market and shipping\n"
                "4. Product specifications and availability\n\n"
                "Always provide accurate, helpful information based on retrieved knowledge. When you don't "
                "have specific information, clearly state limitations and suggest alternatives."
            ),
            capabilities=["Document retrieval", "Knowledge synthesis", "Product information",
                          "Crystal properties lookup", "Local business information"],
            priority="high",
        )
        self.session_factory = session_factory
        self.documents: Dict[str, Document] = {}
        self.category_index: Dict[str, List[str]] = {}
        super().__init__(config, orchestrator, **kwargs)
        self.index_knowledge_base()

    def initialize_tools(self) -> None:
        self.register_tool(Tool(
            "search_knowledge", "Search the knowledge base for relevant information",
            {"query": "string", "category": "string"},
            lambda p: self.search_knowledge(p.get("query", ""), p.get("category")),
        ))
        self.register_tool(Tool(
            "get_product_info", "Retrieve detailed product information",
            {"productId": "number"},
            lambda p: self.get_product_info(int(p["productId"])),
        ))
        self.register_tool(Tool(
            "lookup_crystal_properties", "Get healing properties and information about specific crystals",
            {"crystalName": "string"},
            lambda p: self.lookup_crystal_properties(p.get("crystalName", "")),
        ))
        self.register_tool(Tool(
            "get_shipping_info", "Get shipping and local delivery information for Winnipeg",
            {"location": "string"},
            lambda p: self.get_shipping_info(p.get("location", "")),
        ))

    # --- indexing ---

    def _add(self, doc: Document) -> None:
        self.documents[doc.id] = doc
        self.category_index.setdefault(doc.category, []).append(doc.id)

    def _load_products(self) -> List[Dict[str, Any]]:
        db = self.session_factory()
        try:
            return [ProductOut.model_validate(p).model_dump(by_alias=True, mode="json")
                    for p in Storage(db).get_products()]
        finally:
            db.close()

    def index_knowledge_base(self) -> None:
        """(Re)build the document index from crystals, the live catalog and business info."""
        self.documents.clear()
        self.category_index.clear()

        for key, crystal in CRYSTALS.items():
            self._add(Document(
                id=f"crystal-{key}",
                content=f"{crystal['name']}: {crystal['description']} Properties: {', '.join(crystal['properties'])}. Healing: {crystal['healing']}",
                source="crystal-database",
                category="crystals",
                metadata=crystal,
            ))

        try:
            products = self._load_products()
        except Exception as e:
            logger.error(f"[AGENT] failed to load product knowledge: {e}")
            products = []
        for product in products:
            category = (product.get("category") or {}).get("name", "")
            self._add(Document(
                id=f"product-{product['id']}",
                content=f"{product['name']}: {product['description']} Price: ${product['price']} Category: {category}",
                source="product-database",
                category="products",
                metadata=product,
            ))

        for key, info in BUSINESS_INFO.items():
            self._add(Document(
                id=f"winnipeg-{key}",
                content=json.dumps(info),
                source="business-info",
                category="winnipeg",
                metadata=info,
            ))

    # --- tools ---

    def search_knowledge(self, query: str, category: Optional[str] = None) -> List[Dict[str, Any]]:
        words = [w for w in (query or "").lower().split() if len(w) > 2]
        if not words:
            return []

        if category:
            docs = [self.documents[i] for i in self.category_index.get(category, [])]
        else:
            docs = list(self.documents.values())

        results = []
        for doc in docs:
            content = doc.content.lower()
            similarity = sum(1 for w in words if w in content)
            if similarity:
                results.append({
                    "id": doc.id,
                    "source": doc.source,
                    "category": doc.category,
                    "content": doc.content,
                    "similarity": similarity,
                    "relevance": similarity / len(words),
                })

        results.sort(key=lambda r: r["relevance"], reverse=True)
        return results[:5]

    def lookup_crystal_properties(self, crystal_name: str) -> Dict[str, Any]:
        raw = (crystal_name or "").strip().lower()
        slug = "-".join(raw.split())
        if slug in CRYSTALS:
            return CRYSTALS[slug]

        if slug:
            for key, crystal in CRYSTALS.items():
                if slug in key or key.replace("-", " ") in raw:
                    return crystal

            match = process.extractOne(slug, list(CRYSTALS), score_cutoff=CRYSTAL_FUZZY_CUTOFF)
            if match:
                return CRYSTALS[match[0]]

        return {
            "error": "Crystal information not found",
            "suggestion": "Available crystals: " + ", ".join(CRYSTALS),
        }

    def get_shipping_info(self, location: str) -> Dict[str, Any]:
        shipping = BUSINESS_INFO["shipping"]
        loc = (location or "").lower()

        if "winnipeg" in loc or "manitoba" in loc:
            return {
                "type": "local",
                "cost": "Free for orders over $75",
                "timeframe": "1-2 business days",
                "details": shipping,
                "businessHours": BUSINESS_INFO["business"]["businessHours"],
            }
        if "canada" in loc:
            return {
                "type": "national",
                "cost": "Calculated at checkout",
                "timeframe": "3-7 business days",
                "carrier": "Canada Post",
                "details": shipping,
            }
        return {
            "type": "international",
            "cost": "Calculated at checkout",
            "timeframe": "7-14 business days",
            "note": "International shipping available to select countries",
            "details": shipping,
        }

    def get_product_info(self, product_id: int) -> Dict[str, Any]:
        db = self.session_factory()
        try:
            product = Storage(db).get_product(product_id)
            if not product:
                return {"error": "Product not found"}
            data = ProductOut.model_validate(product).model_dump(by_alias=True, mode="json")
        finally:
            db.close()

        haystack = " ".join([data["name"]] + data["gemstones"]).lower()
        crystal_info = next(
            (info for key, info in CRYSTALS.items() if key.replace("-", " ") in haystack),
            None,
        )
        return {
            "product": data,
            "crystalInfo": crystal_info,
            "inStock": data["stockQuantity"] > 0,
            "shippingEstimate": "Ships within 1-3 business days from Winnipeg",
        }

    def retrieve_and_generate(self, query: str, context: Optional[Dict[str, Any]] = None) -> str:
        try:
            retrieved = "\n\n".join(
                f"Source: {r['source']}\nContent: {r['content']}\nRelevance: {r['relevance']}"
                for r in self.search_knowledge(query)
            )
            extra = f"ADDITIONAL CONTEXT: {json.dumps(context, default=str)}" if context else ""
            prompt = f"""{self.config.system_prompt}

RETRIEVED KNOWLEDGE:
{retrieved}

QUERY: {query}
{extra}

Based on the retrieved knowledge above, provide a comprehensive and accurate response. If the retrieved information is insufficient, clearly indicate what information is missing and suggest alternatives."""

            response = self.orchestrator.process_request(AIRequest(
                prompt=clip_prompt(prompt),
                max_tokens=800,
                temperature=0.3,
                priority=self.config.priority,
            ))
            return response.content
        except Exception as e:
            logger.error(f"[AGENT] retrieval and generation failed: {e}")
            return self.fallback_response(query)
