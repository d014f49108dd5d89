#!/usr/bin/env python3
"""
Main FastAPI application for the Troves & Coves storefront.
"""

from contextlib import asynccontextmanager
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .ai_orchestrator import AIOrchestrator
from .config import Config
from .errors import StorefrontError
from .middleware import RequestLoggingMiddleware, SessionIdMiddleware
from .rate_limit import DailyLimitMiddleware, DailyRequestLimiter
from .routes.ai import router as ai_router
from .routes.analytics import router as analytics_router
from .routes.cart import router as cart_router
from .routes.catalog import router as catalog_router
from .routes.contact import router as contact_router
from .routes.orders import router as orders_router
from .session import KVStore
from ..agents.crystal_consultant_agent import CrystalConsultant
from ..agents.customer_service_agent import CustomerServiceAgent
from ..agents.rag_agent import RAGAgent
from ..data.database import SessionLocal, create_tables
from ..data.populate_db import populate_catalog
from ..utils.logger import get_logger

logger = get_logger("app")


def build_services(app: FastAPI, session_factory: Callable[[], Any] = SessionLocal,
                   kv_store: Optional[KVStore] = None,
                   orchestrator: Optional[AIOrchestrator] = None) -> None:
    """Attach the KV store, request limiter, orchestrator and agents to ``app.state``."""
    store = kv_store or KVStore()
    orchestrator = orchestrator or AIOrchestrator()
    rag = RAGAgent(orchestrator, session_factory)

    app.state.kv_store = store
    app.state.request_limiter = DailyRequestLimiter(
        store,
        max_requests=Config.MAX_REQUESTS_PER_DAY,
        enabled=Config.REQUEST_LIMIT_ENABLED,
        degrade_ratio=Config.DEGRADE_RATIO,
    )
    app.state.orchestrator = orchestrator
    app.state.consultant = CrystalConsultant(orchestrator)
    app.state.agents = {
        "rag": rag,
        "customer_service": CustomerServiceAgent(orchestrator, rag, session_factory),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    Config.debug_print()
    create_tables()
    if Config.SEED_CATALOG:
        seeded = populate_catalog()
        if seeded:
            logger.info(f"Seeded catalog with {seeded} products")

    build_services(app)
    if Config.AI_HEALTH_CHECKS_ENABLED:
        app.state.orchestrator.registry.start_periodic_checks()
    logger.info(f"Storefront ready (kv backend: {app.state.kv_store.backend})")

    yield

    app.state.orchestrator.shutdown()
    logger.info("Storefront stopped")


# Initialize FastAPI app
app = FastAPI(
    title="Troves & Coves Storefront API",
    description="Catalog, cart, checkout and crystal consultation backend",
    version="1.0.0",
    lifespan=lifespan,
)

# Innermost first: session id, then the daily limit, then access logging, then CORS
app.add_middleware(SessionIdMiddleware)
app.add_middleware(DailyLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Session-ID", "X-Degrade-Mode"],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"detail": "Invalid request data", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


for router in (catalog_router, cart_router, orders_router, contact_router, ai_router, analytics_router):
    app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
