import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, ledger_engine
from shared.helpers.exception_handler import setup_exception_handlers

from . import models  # noqa: F401  registers every table on Base.metadata
from .router.leasing import installments_router, leases_router, tenants_router
from .router.maintenance import maintenance_charges_router
from .router.properties import properties_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s]: %(message)s"
)

app = FastAPI(title="Lease Ledger API")

# Create all tables
Base.metadata.create_all(bind=ledger_engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Include routers
app.include_router(tenants_router.router)
app.include_router(properties_router.router)
app.include_router(leases_router.router)
app.include_router(installments_router.router)
app.include_router(maintenance_charges_router.router)


@app.get("/api/health", tags=["health"])
def health():
    return {"status": "ok"}
