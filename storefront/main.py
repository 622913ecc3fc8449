import logging
import uvicorn
from fastapi import FastAPI

from storefront.core.config import settings
from storefront.core.context import StorefrontContext
from storefront.api import cart, orders

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{settings.SHOP_NAME} - Cart & Orders",
    description="Shopping cart and order placement client for the catalog/order service",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Include API routers
app.include_router(cart.router)
app.include_router(orders.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "shop_name": settings.SHOP_NAME,
        "order_service": settings.ORDER_API_BASE_URL
    }


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.SHOP_NAME}")
    app.state.context = await StorefrontContext.create(settings)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down shop application")
    context = getattr(app.state, "context", None)
    if context is not None:
        await context.close()
        app.state.context = None


def run():
    """Entry point of the `storefront` console script."""
    uvicorn.run("storefront.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
