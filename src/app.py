"""ShipTrack FastAPI application.

Serves the shipment, automation and carrier routers. Commands run
synchronously inside the request; ``PROTEAN_ENV`` picks the config overlay
from ``domain.toml`` (``production`` switches the projectors to async).

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers
from tracking.domain import tracking
from tracking.utils.logging import bind_tenant, clear_context

tracking.init()

# Paths served outside the domain context
_UNSCOPED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


app = FastAPI(
    title="ShipTrack API",
    description="Carrier event ingestion, shipment tracking and carrier performance analytics",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def tracking_context_middleware(request: Request, call_next):
    """Run domain requests inside the tracking context, tagging logs with the tenant."""
    if request.url.path.startswith(_UNSCOPED_PATHS):
        return await call_next(request)

    bind_tenant(request.headers.get("x-tenant-id"))
    try:
        with tracking.domain_context():
            return await call_next(request)
    finally:
        clear_context()


from tracking.api import automation_router, carrier_router, shipment_router  # noqa: E402

for router in (shipment_router, automation_router, carrier_router):
    app.include_router(router)


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": tracking.name})
