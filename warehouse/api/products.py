from fastapi import APIRouter, Depends, HTTPException, Query, status

from warehouse.api.errors import to_http_exception
from warehouse.exceptions import InventoryError
from warehouse.inventory import get_cache, get_engine
from warehouse.schemas.product import ProductListResponse, ProductRecord
from warehouse.services.inventory_cache import InventoryCache
from warehouse.services.reconciliation import ReconciliationEngine, answer

router = APIRouter(prefix="/products", tags=["Products"])


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="List products",
    description="List the cached products, optionally filtered by barcode or name."
)
def list_products(
    search: str = Query("", description="Substring of the product barcode or name (case-sensitive)"),
    cache: InventoryCache = Depends(get_cache)
):
    """Filter the inventory cache. No request is sent to the products service."""
    items = list(cache.filter(search))
    return ProductListResponse(items=items, total=len(items), search=search)


@router.get(
    "/{product_id}",
    response_model=ProductRecord,
    summary="Get product by ID",
)
def get_product(
    product_id: str,
    cache: InventoryCache = Depends(get_cache)
):
    product = cache.get(product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found"
        )
    return product


@router.post(
    "/refresh",
    summary="Reload the product list",
    description="Replace the cached product list with the products service's listing."
)
async def refresh_products(cache: InventoryCache = Depends(get_cache)):
    refreshed = await cache.refresh()
    if not refreshed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=cache.last_error
        )
    return {"refreshed": True, "total": len(cache)}


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Delete a product. Requires **confirm=true**; there is no undo."
)
async def delete_product(
    product_id: str,
    confirm: bool = Query(False, description="Answer to the 'delete this product?' prompt"),
    engine: ReconciliationEngine = Depends(get_engine)
):
    try:
        deleted = await engine.delete(product_id, answer(confirm))
    except InventoryError as e:
        raise to_http_exception(e)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Deletion was not confirmed"
        )
    return None
