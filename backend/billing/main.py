import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from billing.core.config import settings
from billing.core.errors import register_exception_handlers
from billing.routers import charges, customers, health, invoices, notifications

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

OPENAPI_TAGS = [
    {"name": "Health", "description": "Liveness check."},
    {"name": "Customers", "description": "Create and read customers."},
    {"name": "Charges", "description": "Record, edit, and void unbilled charges."},
    {"name": "Invoices", "description": "Generate invoices from charges and apply payments."},
    {"name": "Notifications", "description": "Remind customers about unpaid invoices."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Billing backend: customers accrue charges, charges are aggregated into "
        "invoices, invoices accept payments, and customers with unpaid invoices "
        "are notified."
    ),
    openapi_tags=OPENAPI_TAGS,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)

register_exception_handlers(app)

app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(customers.router, prefix="/v1/customers", tags=["Customers"])
app.include_router(charges.router, prefix="/v1/charges", tags=["Charges"])
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])
app.include_router(notifications.router, prefix="/v1/notifications", tags=["Notifications"])
