import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from billing_engine.core.config import settings
from billing_engine.core.database import init_db
from billing_engine.routers import billing, invoices

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    yield


OPENAPI_TAGS = [
    {"name": "Billing", "description": "Calculate charges and roll over unapproved time."},
    {"name": "Invoices", "description": "Generate, inspect and recalculate invoices."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Billing calculation engine: fixed, time, usage and bucket charges, "
        "proration, discounts, tax and invoice recalculation."
    ),
    openapi_tags=OPENAPI_TAGS,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(billing.router, prefix="/v1/billing", tags=["Billing"])
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])


@app.get("/health", include_in_schema=False)
async def health() -> dict[str, str]:
    return {"status": "ok"}
