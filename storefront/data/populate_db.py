from .database import SessionLocal, create_tables
from .models import Category, Product
from ..utils.logger import get_logger

logger = get_logger("seed")

IMAGES = {
    "lepidolite": [
        "/images/jewelry/lepidolite-necklace-1.png",
        "/images/jewelry/lepidolite-flower-front-1.png",
        "/images/jewelry/lepidolite-flower-side-1.png",
        "/images/jewelry/lepidolite-flower-flat-1.png",
        "/images/jewelry/lepidolite-flower-hand-1.png",
        "/images/jewelry/lepidolite-wire-detail-1.png",
    ],
    "citrine": [
        "/images/jewelry/citrine-necklace-set-1.png",
        "/images/jewelry/citrine-pearl-set-full-1.png",
        "/images/jewelry/citrine-pearl-detail-1.png",
        "/images/jewelry/citrine-pearl-choker-1.png",
        "/images/jewelry/citrine-pearl-pendant-1.png",
        "/images/jewelry/citrine-flower-detail-1.png",
    ],
    "turquoise": [
        "/images/jewelry/gold-chain-crystal-1.png",
        "/images/jewelry/authentic-rose-quartz-1.png",
    ],
    "turquoise_beaded": [
        "/images/jewelry/turquoise-beaded-frame-display-1.png",
        "/images/jewelry/turquoise-beaded-flower-detail-1.png",
        "/images/jewelry/turquoise-beaded-flower-full-1.png",
        "/images/jewelry/turquoise-beaded-flat-layout-1.png",
        "/images/jewelry/turquoise-beaded-clasp-detail-1.png",
        "/images/jewelry/turquoise-beaded-worn-1.png",
    ],
    "lapis_lazuli": [
        "/images/jewelry/lapis-black-cord-1.png",
        "/images/jewelry/authentic-lapis-pendant-1.png",
    ],
    "lapis_mixed_stones": [
        "/images/jewelry/lapis-mixed-stones-full-length-1.png",
        "/images/jewelry/lapis-mixed-stones-flower-display-1.png",
        "/images/jewelry/lapis-mixed-stones-frame-display-1.png",
        "/images/jewelry/lapis-mixed-stones-frame-side-1.png",
        "/images/jewelry/lapis-mixed-stones-pendant-detail-1.png",
        "/images/jewelry/lapis-mixed-stones-pendant-close-1.png",
    ],
    "rose_quartz": [
        "/images/jewelry/rose-quartz-flower-display-1.png",
        "/images/jewelry/rose-quartz-frame-display-1.png",
        "/images/jewelry/rose-quartz-wire-detail-1.png",
        "/images/jewelry/rose-quartz-worn-leather-1.png",
    ],
    "lapis_leather": [
        "/images/jewelry/lapis-leather-flower-display-1.png",
        "/images/jewelry/lapis-leather-flower-close-1.png",
        "/images/jewelry/lapis-leather-pendant-detail-1.png",
        "/images/jewelry/lapis-leather-center-flower-1.png",
        "/images/jewelry/lapis-leather-full-layout-1.png",
        "/images/jewelry/lapis-leather-worn-1.png",
        "/images/jewelry/lapis-leather-worn-close-1.png",
    ],
    "upcycled_enamel": [
        "/images/jewelry/gold-enamel-flower-1.png",
        "/images/jewelry/gold-enamel-flower-2.png",
        "/images/jewelry/gold-enamel-full-chain-1.png",
        "/images/jewelry/gold-enamel-chain-detail-1.png",
    ],
}

CATEGORIES = [
    {
        "name": "Crystal Necklaces",
        "slug": "crystal-necklaces",
        "description": "Handcrafted crystal necklaces featuring authentic gemstones with spiritual and healing properties. Each piece is uniquely wire-wrapped and designed to channel positive energy.",
        "image_url": IMAGES["lepidolite"][0],
    },
    {
        "name": "Healing Crystals",
        "slug": "healing-crystals",
        "description": "Powerful healing crystal jewelry designed to balance chakras, enhance spiritual connection, and promote emotional well-being through ancient crystal wisdom.",
        "image_url": IMAGES["turquoise"][0],
    },
    {
        "name": "Wire Wrapped Jewelry",
        "slug": "wire-wrapped",
        "description": "Artisan wire-wrapped jewelry featuring raw crystals and gemstones in organic, nature-inspired settings that preserve the stone's natural energy flow.",
        "image_url": IMAGES["citrine"][0],
    },
]

# Each piece is one of a kind, so stock is 1 across the catalog
PRODUCTS = [
    {
        "name": "Wire Wrapped Crystal Pendant Collection",
        "description": "Collection of crystal pendants featuring lepidolite for tranquility, obsidian for protection, and citrine for manifestation. Each stone is wire-wrapped in gold filled wire.",
        "price": 90.00,
        "category": "crystal-necklaces",
        "images": "lepidolite",
        "sku": "TC-LEP-001",
        "weight": "25g",
        "materials": ["Wire wrap", "Gold filled", "Stone"],
        "gemstones": ["Lepidolite", "Obsidian", "Citrine"],
        "care_instructions": "Cleanse in moonlight or with sage. Store away from other jewelry.",
        "is_featured": True,
    },
    {
        "name": "Gold Chain Crystal Necklace with Wire Wrapped Pendant",
        "description": "Gold chain with a wire-wrapped crystal pendant. A clear quartz point held in gold filled wire, made to amplify intention.",
        "price": 70.00,
        "category": "crystal-necklaces",
        "images": "turquoise",
        "sku": "TC-TUR-001",
        "weight": "30g",
        "materials": ["Gold Filled", "Wire wrap", "Crystal"],
        "gemstones": ["Clear Quartz"],
        "care_instructions": "Keep away from water. Wipe with a soft cloth and recharge in moonlight.",
        "is_featured": True,
    },
    {
        "name": "Pretty Handwrapped Citrine, Pearl, Hematite, Crystal Necklace Set",
        "description": "Two-piece set: a pink pearl and hematite choker and a wire-wrapped citrine pendant strung with pearls. Citrine for abundance, hematite for grounding.",
        "price": 200.00,
        "category": "healing-crystals",
        "images": "citrine",
        "sku": "TC-CIT-SET-001",
        "weight": "45g",
        "materials": ["Citrine", "Pearl strung", "Gold filled", "14k", "14k gold filled", "Pearl",
                      "Hematite", "EMF protecting", "Crystal", "Stone", "Mineral"],
        "gemstones": ["Citrine", "Hematite", "Pearl"],
        "care_instructions": "Protect from moisture. Cleanse in moonlight or sage smoke.",
        "is_featured": True,
    },
    {
        "name": "Lapis Lazuli, Wire Wrapped Necklace, Leather, Spiritual, Royal, Psychic Abilities",
        "description": "Wire-wrapped lapis lazuli pendant on a brown leather cord. Lapis supports intuition and third eye work. 15 inches with leather closure.",
        "price": 40.00,
        "category": "wire-wrapped",
        "images": "lapis_lazuli",
        "sku": "TC-LAP-001",
        "weight": "20g",
        "materials": ["Leather", "Stone"],
        "gemstones": ["Lapis Lazuli"],
        "care_instructions": "Protect from water and chemicals. Store wrapped in a soft cloth.",
        "is_featured": False,
    },
    {
        "name": "Medium Rose Quartz Pendant, Wire Wrapped, Brown Leather",
        "description": "Raw rose quartz pendant on a brown leather cord. Rose quartz is the stone of unconditional love, self-love and heart chakra healing. 18 inches.",
        "price": 40.00,
        "category": "wire-wrapped",
        "images": "rose_quartz",
        "sku": "TC-ROS-001",
        "weight": "22g",
        "materials": ["Leather", "Stone"],
        "gemstones": ["Rose Quartz"],
        "care_instructions": "Handle gently and keep away from harsh chemicals. Cleanse in moonlight.",
        "is_featured": False,
    },
    {
        "name": "Lapis Lazuli, Brown Leather, Masculine, Men's Necklace",
        "description": "Handcrafted lapis lazuli pendant on brown leather, wire-wrapped for a 26 inch masculine necklace. Lapis for perception and protection.",
        "price": 40.00,
        "category": "wire-wrapped",
        "images": "lapis_leather",
        "sku": "TC-LAP-MEN-001",
        "weight": "25g",
        "materials": ["Leather", "Stone"],
        "gemstones": ["Lapis Lazuli"],
        "care_instructions": "Keep leather dry. Store somewhere cool. Cleanse the stone with sage.",
        "is_featured": False,
    },
    {
        "name": "Unique Lapis Lazuli, Onyx, Smoky Quartz, Jade, Lava Stone Crystal Necklace",
        "description": "Five-stone necklace: lapis lazuli for insight, smoky quartz for grounding, jade for prosperity, onyx for protection and lava stone that holds essential oils.",
        "price": 80.00,
        "category": "healing-crystals",
        "images": "lapis_mixed_stones",
        "sku": "TC-LAP-ONY-001",
        "weight": "35g",
        "materials": ["Stone"],
        "gemstones": ["Lapis Lazuli", "Onyx", "Smoky Quartz", "Jade", "Lava Stone"],
        "care_instructions": "Lava stone absorbs essential oils. Store separately and cleanse under moonlight.",
        "is_featured": True,
    },
    {
        "name": "Unique Turquoise Beaded Necklace, Pearl Strung, lapis Lazuli, Pink Pearl, Hematite, Leaf, Handmade, Gold Filled, one of a kind",
        "description": "Turquoise beaded necklace strung with lapis lazuli, pink pearls and pink hematite, finished with a leaf pendant. 21 inches with a gold filled closure.",
        "price": 70.00,
        "category": "crystal-necklaces",
        "images": "turquoise_beaded",
        "sku": "TC-TUR-BEAD-001",
        "weight": "32g",
        "materials": ["Stone", "Turquoise", "Lapis Lazuli", "Pink Pearl", "Hematite", "Gold Filled"],
        "gemstones": ["Turquoise", "Lapis Lazuli", "Hematite", "Pink Pearl"],
        "care_instructions": "Keep away from water. Handle pearls gently. Store in a soft cloth.",
        "is_featured": True,
    },
    {
        "name": "Upcycled Gold Plated Enamel Pendant, 14k Gold Filled Necklace, Chain, 18KGF Lobster Clasp, Citrine, Peridot, Good Fortune, Lucky, Confident",
        "description": "Upcycled enamel flower pendant set with peridot and citrine for luck and confidence, on a 14 inch 14k gold filled curb chain with an 18KGF lobster clasp.",
        "price": 80.00,
        "category": "crystal-necklaces",
        "images": "upcycled_enamel",
        "sku": "TC-UPC-ENA-001",
        "weight": "18g",
        "materials": ["14k Gold Filled", "Gold Plated Enamel", "18KGF", "5mm Curb Chain"],
        "gemstones": ["Citrine", "Peridot"],
        "care_instructions": "Keep dry. Polish with a soft cloth. Remove before sleeping.",
        "is_featured": True,
    },
]


def populate_catalog(db=None) -> int:
    """Seed categories and products; returns how many products were inserted (0 when already seeded)."""
    own_session = db is None
    if own_session:
        create_tables()
        db = SessionLocal()
    try:
        if db.query(Product).count() > 0:
            logger.info("Products table is not empty. Skipping population.")
            return 0

        categories = {c.slug: c for c in db.query(Category).all()}
        for row in CATEGORIES:
            if row["slug"] in categories:
                continue
            category = Category(**row)
            db.add(category)
            categories[row["slug"]] = category
        db.flush()

        for row in PRODUCTS:
            fields = dict(row)
            images = IMAGES[fields.pop("images")]
            category = categories[fields.pop("category")]
            db.add(Product(
                category_id=category.id,
                image_url=images[0],
                image_urls=list(images),
                stock_quantity=1,
                is_active=True,
                **fields,
            ))

        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products across {len(CATEGORIES)} categories.")
        return len(PRODUCTS)
    except Exception:
        db.rollback()
        logger.exception("Error populating catalog")
        raise
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    populate_catalog()
