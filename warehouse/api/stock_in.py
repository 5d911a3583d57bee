from fastapi import APIRouter, Depends

from warehouse.api.errors import to_http_exception
from warehouse.exceptions import InventoryError
from warehouse.inventory import get_engine
from warehouse.schemas.stock_in import FormUpdate, ScanRequest, StockInResult, StockInState
from warehouse.services.reconciliation import ReconciliationEngine, answer

router = APIRouter(prefix="/stock-in", tags=["Stock-In"])

# Handlers are async so every engine call runs on the event loop thread.


@router.get(
    "/",
    response_model=StockInState,
    summary="Current stock-in state",
    description="The phase, working form, quantity and lock status of the stock-in form."
)
async def get_state(engine: ReconciliationEngine = Depends(get_engine)):
    return engine.state


@router.post(
    "/scan",
    response_model=StockInResult,
    summary="Scan a barcode",
    description="""
    Resolve a product or box barcode against the inventory.

    - A known barcode opens the product read-only with quantity 0.
    - An unknown barcode opens a new product form only when
      **create_if_missing** is true; otherwise the form goes back to idle.
    """
)
async def scan_barcode(
    request: ScanRequest,
    engine: ReconciliationEngine = Depends(get_engine)
):
    try:
        return await engine.scan(request.barcode, answer(request.create_if_missing))
    except InventoryError as e:
        raise to_http_exception(e)


@router.post(
    "/edit/{product_id}",
    response_model=StockInResult,
    summary="Open a listed product",
    description="Load a product from the list into the stock-in form without scanning."
)
async def edit_product(
    product_id: str,
    engine: ReconciliationEngine = Depends(get_engine)
):
    try:
        return engine.edit(product_id)
    except InventoryError as e:
        raise to_http_exception(e)


@router.post(
    "/unlock",
    response_model=StockInResult,
    summary="Unlock product fields",
)
async def unlock_fields(engine: ReconciliationEngine = Depends(get_engine)):
    """Allow editing the barcodes, name and spec of an existing product."""
    try:
        return engine.unlock()
    except InventoryError as e:
        raise to_http_exception(e)


@router.patch(
    "/form",
    response_model=StockInResult,
    summary="Edit the stock-in form",
    description="Set the quantity to add and/or edit unlocked fields. Only provided fields change."
)
async def update_form(
    update: FormUpdate,
    engine: ReconciliationEngine = Depends(get_engine)
):
    try:
        return engine.update_form(update)
    except InventoryError as e:
        raise to_http_exception(e)


@router.post(
    "/submit",
    response_model=StockInResult,
    summary="Commit the stock-in",
    description="""
    Validate and save the form.

    **Quantity is always added to current stock.** If a product with the
    barcode exists its stock is incremented; otherwise a new product is
    created with the quantity as its stock.
    """
)
async def submit_stock_in(engine: ReconciliationEngine = Depends(get_engine)):
    try:
        return await engine.submit()
    except InventoryError as e:
        raise to_http_exception(e)


@router.post(
    "/details",
    response_model=StockInResult,
    summary="Save product details",
    description="Save edits to an unlocked existing product without changing its stock."
)
async def save_details(engine: ReconciliationEngine = Depends(get_engine)):
    try:
        return await engine.save_details()
    except InventoryError as e:
        raise to_http_exception(e)


@router.post(
    "/reset",
    response_model=StockInResult,
    summary="Discard the form",
)
async def reset_form(engine: ReconciliationEngine = Depends(get_engine)):
    try:
        return engine.reset()
    except InventoryError as e:
        raise to_http_exception(e)
