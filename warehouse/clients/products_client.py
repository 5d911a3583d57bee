import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError as SchemaError

from warehouse.config import get_settings
from warehouse.exceptions import TransportError
from warehouse.schemas.product import ProductCreate, ProductId, ProductRecord

logger = logging.getLogger(__name__)


class ProductsClient:
    """
    Async client for the products persistence service.

    The service contract:
    - GET    {base}        -> list of product records
    - POST   {base}        -> create a record (body without id)
    - PUT    {base}/{id}   -> replace a record (full body)
    - DELETE {base}/{id}   -> remove a record

    Any non-2xx status, network failure, timeout or unreadable body is
    raised as TransportError. Error bodies are not interpreted.
    """

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        http_client: httpx.AsyncClient = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.PRODUCTS_API_URL).rstrip("/")
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(
            timeout=timeout or settings.REQUEST_TIMEOUT
        )

    def _item_url(self, product_id: ProductId) -> str:
        return f"{self.base_url}/{product_id}"

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {url} timed out: {e!r}")
            raise TransportError("The products service did not answer in time") from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e!r}")
            raise TransportError("Could not reach the products service") from e

        if not response.is_success:
            logger.error(f"{method} {url} returned HTTP {response.status_code}")
            raise TransportError(
                f"The products service rejected the request (HTTP {response.status_code})"
            )
        return response

    async def list_products(self) -> List[ProductRecord]:
        """
        Fetch every product record.

        Raises:
            TransportError: on failure or when the body is not a list of records
        """
        response = await self._send("GET", self.base_url)
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError("The products service returned a malformed listing") from e
        if not isinstance(data, list):
            raise TransportError("The products service returned a malformed listing")
        try:
            return [ProductRecord.model_validate(item) for item in data]
        except SchemaError as e:
            logger.error(f"Malformed product record in listing: {e}")
            raise TransportError("The products service returned a malformed listing") from e

    async def create_product(self, product: ProductCreate) -> Optional[ProductRecord]:
        """Create a record. Returns the created record when the service echoes it."""
        response = await self._send("POST", self.base_url, json=product.to_payload())
        return self._parse_record(response)

    async def update_product(self, product: ProductRecord) -> Optional[ProductRecord]:
        """Replace a persisted record with the given full record."""
        if product.id is None:
            raise ValueError("Cannot update a product without an id")
        response = await self._send(
            "PUT", self._item_url(product.id), json=product.to_payload()
        )
        return self._parse_record(response)

    async def delete_product(self, product_id: ProductId) -> None:
        await self._send("DELETE", self._item_url(product_id))

    async def ping(self) -> bool:
        """Return True when the listing endpoint answers successfully."""
        try:
            await self._send("GET", self.base_url)
            return True
        except TransportError:
            return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    def _parse_record(self, response: httpx.Response) -> Optional[ProductRecord]:
        # A 2xx without a usable body still counts as success.
        try:
            return ProductRecord.model_validate(response.json())
        except (ValueError, SchemaError):
            logger.debug(f"No product record in {response.request.method} response body")
            return None
