"""Stockflow FastAPI application.

Web server for the requisitions domain that processes commands synchronously
via HTTP. Every request runs inside the domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"       → event_processing = "sync"  (notifications fan out in-request)
#   - "production" → event_processing = "async" (notifications fan out via Engine)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from requisitions.domain import requisitions  # noqa: E402
from requisitions.utils.logging import add_context, clear_context, configure_logging

configure_logging(log_file_prefix="stockflow")
requisitions.init()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Stockflow API",
    description="Internal stock requests from branch request to receipt",
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
    """Push the requisitions domain context and bind the actor to log lines."""
    add_context(path=request.url.path, actor_id=request.headers.get("X-Actor-Id"))
    try:
        with requisitions.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from requisitions.api import (  # noqa: E402
    contact_router,
    maintenance_router,
    notification_router,
    order_router,
)
from requisitions.api.errors import register_exception_handlers  # noqa: E402

register_exception_handlers(app)
app.include_router(order_router)
app.include_router(notification_router)
app.include_router(contact_router)
app.include_router(maintenance_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"requisitions": {"name": requisitions.name}},
        }
    )
