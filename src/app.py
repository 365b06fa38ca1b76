"""Mailroom FastAPI application.

Admin surface for delivery records: history, statistics, retries and
ad-hoc test sends. Every request runs inside the mailroom domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → memory adapters, dispatch attempts run inline
#   - "production" → PostgreSQL, dispatch attempts run on the worker pool
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mailroom.domain import mailroom
from mailroom.utils.logging import configure_logging
from protean.integrations.fastapi import register_exception_handlers

configure_logging()
mailroom.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    from mailroom.config import get_settings
    from mailroom.delivery.dispatcher import build_dispatcher, reset_dispatcher, set_dispatcher

    with mailroom.domain_context():
        dispatcher = build_dispatcher(get_settings())
        set_dispatcher(dispatcher)
    try:
        yield
    finally:
        dispatcher.drain(timeout=30)
        reset_dispatcher()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Mailroom API",
    description="Notification dispatch — delivery audit and operator actions",
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
    """Push the mailroom domain context for each request."""
    with mailroom.domain_context():
        response = await call_next(request)
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from mailroom.api.routes import router as notifications_router  # noqa: E402

app.include_router(notifications_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    from mailroom.delivery.dispatcher import get_dispatcher

    return JSONResponse(
        content={
            "status": "ok",
            "domain": mailroom.name,
            "dispatch_in_flight": get_dispatcher().in_flight,
        }
    )
