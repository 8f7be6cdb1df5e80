"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cakeout import __version__
from cakeout.api import auth_router, customers_router, drafts_router, invoices_router
from cakeout.config import settings
from cakeout.database import init_db

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create local storage tables before serving requests."""
    logger.info("Starting Cake Out invoicing v%s", __version__)
    logger.info("Invoicing backend: %s", settings.api_base_url)
    await init_db()
    yield
    logger.info("Shutting down Cake Out invoicing")


app = FastAPI(
    title="Cake Out Invoicing",
    description="Invoice drafting, customer lookup and invoice export",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

# Include API routers
app.include_router(auth_router)
app.include_router(customers_router)
app.include_router(drafts_router)
app.include_router(invoices_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cakeout.main:app", host=settings.api_host, port=settings.api_port)
