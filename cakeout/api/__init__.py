"""FastAPI routes for the invoicing application."""

from cakeout.api.auth import router as auth_router
from cakeout.api.customers import router as customers_router
from cakeout.api.drafts import router as drafts_router
from cakeout.api.invoices import router as invoices_router

__all__ = ["auth_router", "customers_router", "drafts_router", "invoices_router"]
