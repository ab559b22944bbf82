import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from shared.core.config import settings
from shared.core.database import rental_engine, Base
from shared.exception_handler import setup_exception_handlers

from .models.space_sites import properties, units
from .models.leasing_tenants import applications, leases
from .models.financials import invoices
from .models.service_ticket import maintenance_tickets, tickets_timeline

from .router.space_sites import properties_router, units_router
from .router.leasing_tenants import applications_router, leases_router
from .router.financials import invoices_router, payments_router
from .router.service_ticket import maintenance_tickets_router
from .router.common import uploads_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title=settings.APP_NAME)

# Create all tables
Base.metadata.create_all(bind=rental_engine)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Include routers
app.include_router(properties_router.router)
app.include_router(units_router.router)
app.include_router(applications_router.router)
app.include_router(leases_router.router)
app.include_router(invoices_router.router)
app.include_router(payments_router.router)
app.include_router(maintenance_tickets_router.router)
app.include_router(uploads_router.router)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(settings.UPLOAD_BASE_URL, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/health")
def health():
    return {"status": "ok"}
