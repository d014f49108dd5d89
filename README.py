"""
Troves & Coves Storefront - System Documentation
================================================

This module-style README documents the architecture, components, data flows
and operational practices of the Troves & Coves storefront backend. It can be
imported to surface sections programmatically or printed for human reading.

How to use this file
--------------------
- View in an editor for structured reading.
- Run `python README.py` to print the outline.
- Import `README` in tools or scripts to surface sections.

Table of Contents
-----------------
1. System Overview
2. Architecture
3. Backend Components
4. Data & Persistence
5. Cart & Checkout Flow
6. AI Orchestration
7. Agents & Consultation
8. Request Limits & Degrade Mode
9. Configuration & Environment
10. Testing Strategy
11. Security & PII Handling
12. Observability
13. Deployment
14. Troubleshooting

"""

from __future__ import annotations

import textwrap


def section(title: str, body: str) -> str:
    return f"\n{title}\n{'-' * len(title)}\n{body.strip()}\n"


SYSTEM_OVERVIEW = section(
    "1. System Overview",
    """
    The storefront backend serves a small handcrafted crystal jewellery shop.
    It exposes a JSON API for the catalog, a session-scoped cart, checkout,
    order tracking and contact/consultation requests, plus an AI layer that
    answers crystal questions, recommends pieces and handles support queries.
    Every AI path has a deterministic local fallback, so the shop keeps working
    when no external model is reachable.
    """,
)


ARCHITECTURE = section(
    "2. Architecture",
    """
    - HTTP: FastAPI app with routers mounted under `/api`.
    - Middleware (outermost first): CORS, request logging, daily request limit,
      session id assignment.
    - Data: SQLAlchemy models over SQLite (default) or any `DATABASE_URL`.
    - KV: Redis when reachable, in-process dictionary otherwise. Holds request
      counters and analytics events.
    - AI: `AIOrchestrator` routes requests over a provider registry with
      circuit breakers, retries and health checks.
    """,
)


BACKEND_COMPONENTS = section(
    "3. Backend Components",
    """
    app/
      - main.py: App factory pieces, lifespan, exception handlers, `build_services`.
      - config.py: Env-driven configuration (`.env` aware).
      - deps.py: Request dependencies (storage, session id, degrade flag).
      - middleware.py: Session id and request logging middleware.
      - rate_limit.py: Daily request counter and degrade-mode middleware.
      - session.py: KV store (Redis with in-memory fallback).
      - ai_orchestrator.py/providers.py: Provider registry, breakers, routing.
      - errors.py: Domain exceptions mapped to HTTP status codes.
      - routes/: catalog, cart, orders, contact, ai, analytics.

    agents/
      - base_agent.py: Shared agent plumbing (tools, prompts, status).
      - rag_agent.py: Knowledge base over crystals, products and shop policy.
      - customer_service_agent.py: Orders, shipping, bookings, care guides.
      - crystal_consultant_agent.py: Sentiment-aware crystal consultation.
      - shopping_insights.py: Widget helpers (suggestions, triggers, trends).

    data/
      - models.py/database.py: SQLAlchemy models and session management.
      - storage.py: Repository over the session (catalog, cart, orders, contact).
      - populate_db.py: Seeds the nine-piece starter catalog.
      - etsy_links.py: SKU to Etsy listing map.
    """,
)


DATA_AND_PERSISTENCE = section(
    "4. Data & Persistence",
    """
    - Entities: Category, Product, CartItem, Order, OrderItem, ContactSubmission.
    - Prices are stored as floats in the shop currency (CAD by default).
    - Orders snapshot each item's unit price at checkout.
    - `python storefront/scripts/inspect_db.py` prints a read-only snapshot.
    """,
)


CART_FLOW = section(
    "5. Cart & Checkout Flow",
    """
    - Carts are keyed by the `X-Session-ID` header; one is issued when missing.
    - Adding an existing product increases its quantity.
    - Setting quantity to 0 or less removes the line.
    - `POST /api/orders` totals the cart server-side, snapshots prices and
      clears the cart. An empty cart is rejected with 400.
    - Status changes: pending, processing, shipped, delivered, cancelled.
    """,
)


AI_ORCHESTRATION = section(
    "6. AI Orchestration",
    """
    - Providers: Pollinations (text, image, audio), Hugging Face, a local
      OpenAI-compatible server and Anthropic, each enabled by config.
    - Routing: highest-priority healthy provider supporting the request type.
    - Failures trip a per-provider circuit breaker; requests fail over.
    - `GET /api/ai/status` and `GET /api/ha/status` report provider health.
    """,
)


AGENTS = section(
    "7. Agents & Consultation",
    """
    - `POST /api/ai/chat`: crystal consultation. Uses the model when allowed,
      falls back to local sentiment and intent rules otherwise.
    - `POST /api/ai/support`: customer service with knowledge-base context.
    - Widget endpoints: contextual, product-insights, behavior-analysis,
      shopping-trigger, recommendations, market-analysis.
    """,
)


LIMITS = section(
    "8. Request Limits & Degrade Mode",
    """
    - With REQUEST_LIMIT_ENABLED, every request increments a per-day counter
      (UTC date key).
    - Past `DEGRADE_RATIO` of `MAX_REQUESTS_PER_DAY`, responses carry
      `X-Degrade-Mode: true` and AI endpoints answer locally.
    - At the limit, requests get 429 with a fallback URL.
    - KV failures fail open.
    """,
)


CONFIG_ENV = section(
    "9. Configuration & Environment",
    """
    - `.env` compatible; keys include DATABASE_URL, REDIS_HOST, MAX_REQUESTS_PER_DAY,
      DEGRADE_RATIO, ALLOWED_ORIGINS, HF_API_KEY, LOCAL_LLM_URL, ANTHROPIC_API_KEY.
    - Defaults live in `storefront/app/config.py`.
    """,
)


TESTING = section(
    "10. Testing Strategy",
    """
    - unittest-style tests in `/tests`, collected by pytest.
    - Tests use in-memory SQLite and an in-memory KV store; no network.
    - `python tests/run_tests.py --all` runs everything.
    """,
)


SECURITY = section(
    "11. Security & PII Handling",
    """
    - `utils/security.py`: PII masking for logs and input sanitisation.
    - Chat input is checked for harmful content before reaching a model.
    - Keys are loaded from env; never commit secrets.
    """,
)


OBSERVABILITY = section(
    "12. Observability",
    """
    - Logs via `utils/logger.py`, one named logger per area.
    - Every request is logged with method, path, status and duration.
    - Analytics events are kept in the KV store with a TTL.
    """,
)


DEPLOYMENT = section(
    "13. Deployment",
    """
    - Install: `pip install -e .[test]`.
    - Run locally via `uvicorn storefront.app.main:app --reload`.
    - Set `SEED_CATALOG=false` in production once the catalog is managed.
    """,
)


TROUBLESHOOTING = section(
    "14. Troubleshooting",
    """
    - Every AI answer says "Local Intelligence": no provider is healthy; check
      `/api/ai/status` and provider keys.
    - Counters reset on restart: Redis is unreachable and the in-memory store is active.
    - 429 on every request: the daily limit was reached; raise MAX_REQUESTS_PER_DAY.
    """,
)


def as_text() -> str:
    return "\n".join(
        [
            SYSTEM_OVERVIEW,
            ARCHITECTURE,
            BACKEND_COMPONENTS,
            DATA_AND_PERSISTENCE,
            CART_FLOW,
            AI_ORCHESTRATION,
            AGENTS,
            LIMITS,
            CONFIG_ENV,
            TESTING,
            SECURITY,
            OBSERVABILITY,
            DEPLOYMENT,
            TROUBLESHOOTING,
        ]
    )


def main() -> None:
    print(textwrap.dedent(as_text()))


if __name__ == "__main__":
    main()
