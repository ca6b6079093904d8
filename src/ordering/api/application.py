"""FastAPI application factory for the ordering service."""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from protean.integrations.fastapi import register_exception_handlers

from ordering.api.errors import register_ordering_exception_handlers
from ordering.api.routes import cart_router, order_router
from ordering.config import get_policy
from ordering.domain import ordering

ORDERING_PREFIXES = ("/carts", "/orders")


def create_app() -> FastAPI:
    """Build the HTTP surface. The ordering domain must already be initialized."""
    app = FastAPI(
        title="Storefront Ordering API",
        description="Carts, catalogue reconciliation, checkout and the order workflow",
        version="0.1.0",
    )

    # The storefront pages are served from another origin
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def ordering_context(request: Request, call_next):
        if not request.url.path.startswith(ORDERING_PREFIXES):
            return await call_next(request)
        with ordering.domain_context(), structlog.contextvars.bound_contextvars(
            method=request.method, path=request.url.path
        ):
            return await call_next(request)

    app.include_router(cart_router)
    app.include_router(order_router)
    register_exception_handlers(app)
    register_ordering_exception_handlers(app)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "domain": ordering.name, "catalogue": get_policy().catalogue_adapter}

    return app
