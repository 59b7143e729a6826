"""Settlement FastAPI application.

Web server for the settlement engine: commission rules, checkout ledger,
payment webhooks, admin order transitions, ticket orders and seller revenue.
Every request runs inside the settlement domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
import os
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from settlement.domain import settlement
from settlement.payment.gateway import get_gateway
from settlement.utils.logging import add_context, clear_context, configure_logging

configure_logging(log_dir=os.getenv("LOG_DIR"))
settlement.init()
get_gateway()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Settlement API",
    description="Order settlement and commission engine",
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
    """Push the settlement domain context and bind request details to every log line."""
    clear_context()
    add_context(request_id=request.headers.get("x-request-id") or str(uuid.uuid4()), path=request.url.path)
    with settlement.domain_context():
        response = await call_next(request)
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from settlement.api.routes import routers  # noqa: E402

for router in routers:
    app.include_router(router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "settlement": {"name": settlement.name},
            },
        }
    )
