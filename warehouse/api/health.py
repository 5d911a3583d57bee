from fastapi import APIRouter, Depends

from warehouse.inventory import Inventory, get_inventory

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check that the products service answers and the product list is loaded."
)
async def readiness_check(inventory: Inventory = Depends(get_inventory)):
    """
    Readiness check for all dependencies.

    Returns status of:
    - Products service connection
    - Inventory cache (loaded at least once)
    """
    checks = {
        "products_service": await inventory.client.ping(),
        "inventory_cache": inventory.cache.last_refreshed_at is not None,
    }
    if inventory.cache.last_error:
        checks["inventory_cache_error"] = inventory.cache.last_error

    all_healthy = checks["products_service"] and checks["inventory_cache"]

    return {
        "status": "ready" if all_healthy else "not_ready",
        "checks": checks
    }


@router.get(
    "/cache/stats",
    summary="Cache statistics",
    description="Get inventory cache statistics."
)
def cache_stats(inventory: Inventory = Depends(get_inventory)):
    """Get cache statistics."""
    cache = inventory.cache
    return {
        "total_products": len(cache),
        "total_stock": sum(product.stock for product in cache.snapshot),
        "last_refreshed_at": cache.last_refreshed_at,
        "last_error": cache.last_error,
        "engine_busy": inventory.engine.busy,
    }
