import asyncio
from typing import Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from warehouse.clients.products_client import ProductsClient
from warehouse.main import create_app
from warehouse.services.inventory_cache import InventoryCache
from warehouse.services.notifications import Notifier
from warehouse.services.reconciliation import ReconciliationEngine


PRODUCTS_URL = "http://products.test/api/products"


class ProductStore:
    """In-memory state of the fake products service."""

    def __init__(self):
        self.products = {}
        self.calls = []
        self.fail_status: Optional[int] = None
        self.listing_override = None
        self.hold: Optional[asyncio.Event] = None
        self._next_id = 1

    def add(self, **fields) -> dict:
        """Insert a record directly, as another client would."""
        record = {"boxBarcode": "", "spec": "", "stock": 0, **fields}
        record["_id"] = f"{self._next_id:024x}"
        self._next_id += 1
        self.products[record["_id"]] = record
        return record

    def writes(self):
        return [call for call in self.calls if call[0] != "GET"]


def create_products_service(store: ProductStore) -> FastAPI:
    """A products REST service that keeps records in a ProductStore."""
    service = FastAPI()

    @service.middleware("http")
    async def record_calls(request: Request, call_next):
        store.calls.append((request.method, request.url.path))
        if store.fail_status:
            return JSONResponse({"message": "failure"}, status_code=store.fail_status)
        return await call_next(request)

    @service.get("/api/products")
    def list_products():
        if store.listing_override is not None:
            return store.listing_override
        return list(store.products.values())

    @service.post("/api/products", status_code=201)
    async def create_product(request: Request):
        body = await request.json()
        return store.add(**body)

    @service.put("/api/products/{product_id}")
    async def update_product(product_id: str, request: Request):
        if store.hold is not None:
            await store.hold.wait()
        if product_id not in store.products:
            return JSONResponse({"message": "not found"}, status_code=404)
        body = await request.json()
        body["_id"] = product_id
        store.products[product_id] = body
        return body

    @service.delete("/api/products/{product_id}")
    def delete_product(product_id: str):
        if product_id not in store.products:
            return JSONResponse({"message": "not found"}, status_code=404)
        del store.products[product_id]
        return {"message": "deleted"}

    return service


@pytest.fixture
def store():
    return ProductStore()


@pytest_asyncio.fixture
async def products_client(store):
    """ProductsClient wired to the fake service in-process."""
    http_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_products_service(store))
    )
    yield ProductsClient(base_url=PRODUCTS_URL, http_client=http_client)
    await http_client.aclose()


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def cache(products_client, notifier):
    return InventoryCache(products_client, notifier)


@pytest.fixture
def engine(products_client, cache, notifier):
    return ReconciliationEngine(products_client, cache, notifier)


@pytest.fixture
def client_factory(products_client):
    """Build a test client whose startup loads whatever the store holds then."""
    return lambda: TestClient(create_app(products_client=products_client))


@pytest.fixture(scope="function")
def client(client_factory):
    """Create test client for the stock-in API backed by the fake service."""
    with client_factory() as test_client:
        yield test_client
