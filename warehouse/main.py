from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from warehouse.config import get_settings
from warehouse.clients.products_client import ProductsClient
from warehouse.inventory import build_inventory
from warehouse.api import health, notifications, products, stock_in

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(products_client: ProductsClient = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        products_client: Client for the products service. Built from
            settings when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for startup and shutdown events.
        """
        # Startup
        logger.info("Starting up application...")
        inventory = build_inventory(settings, products_client)
        app.state.inventory = inventory

        if settings.REFRESH_ON_STARTUP:
            logger.info("Loading product list...")
            await inventory.cache.refresh()

        yield

        # Shutdown
        logger.info("Shutting down application...")
        await inventory.client.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="""
        Warehouse inventory stock-in controller on top of a products REST service:

        - **Stock-In**: scan a barcode, then add the received quantity
        - **Products**: list, search and delete products
        - **Notifications**: user-visible success and failure messages

        ## Stock Reconciliation
        The quantity entered during a stock-in is always **added** to the
        current stock of the product with the same barcode. A barcode that
        matches no product creates a new product. Product barcodes are unique:
        a save that would reuse another product's barcode is rejected.

        ## Product List
        The product list is cached in memory and reloaded from the products
        service after every successful write.
        """,
        version=settings.APP_VERSION,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(health.router, prefix="/api/v1")
    app.include_router(products.router, prefix="/api/v1")
    app.include_router(stock_in.router, prefix="/api/v1")
    app.include_router(notifications.router, prefix="/api/v1")

    @app.get("/", tags=["Root"])
    def root():
        """Root endpoint with API information."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "redoc": "/redoc",
            "health": "/api/v1/health"
        }

    return app


app = create_app()
