"""Ordering FastAPI application.

Serves the order lifecycle, payment, stock and maintenance routes. Commands
are processed synchronously inside each request's domain context, and the
expiration sweeper runs on a background thread for the lifetime of the app.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay in ordering/domain.toml
from ordering.domain import ordering
from ordering.order.sweeper import ExpirationSweeper
from ordering.utils.logging import add_context, clear_context, get_logger
from ordering.utils.settings import get_settings

ordering.init()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = None
    if get_settings().sweeper_enabled:
        sweeper = ExpirationSweeper(domain=ordering)
        sweeper.start()
    app.state.sweeper = sweeper
    yield
    if sweeper is not None:
        sweeper.stop()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Ordering API",
    description="Pickup orders against dated menu stock, with payment reconciliation",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context and bind request details to the log context."""
    clear_context()
    add_context(request_id=request.headers.get("X-Request-ID", uuid4().hex), path=request.url.path)
    try:
        with ordering.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import (  # noqa: E402
    maintenance_router,
    order_router,
    payment_router,
    register_error_handlers,
    stock_router,
)

app.include_router(order_router)
app.include_router(payment_router)
app.include_router(stock_router)
app.include_router(maintenance_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health(request: Request):
    sweeper = getattr(request.app.state, "sweeper", None)
    return JSONResponse(
        content={
            "status": "ok",
            "domain": ordering.name,
            "sweeper": {"running": bool(sweeper and sweeper.running)},
        }
    )
