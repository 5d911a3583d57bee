import logging
from datetime import datetime, timezone
from typing import Iterator, Optional, Tuple

from warehouse.clients.products_client import ProductsClient
from warehouse.exceptions import TransportError
from warehouse.schemas.product import ProductId, ProductRecord
from warehouse.services.notifications import Notifier

logger = logging.getLogger(__name__)


class FilteredProducts:
    """Lazy, restartable view over a snapshot filtered by a search term."""

    def __init__(self, snapshot: Tuple[ProductRecord, ...], search_term: str):
        self._snapshot = snapshot
        self.search_term = search_term

    def __iter__(self) -> Iterator[ProductRecord]:
        term = self.search_term
        for product in self._snapshot:
            if term in product.product_barcode or term in product.name:
                yield product


class InventoryCache:
    """
    In-memory snapshot of every product record.

    The snapshot is an immutable tuple that only refresh() replaces, and it
    is replaced whole, so readers always see one complete listing. Lookups
    never touch the network.
    """

    def __init__(self, client: ProductsClient, notifier: Notifier):
        self.client = client
        self.notifier = notifier
        self._snapshot: Tuple[ProductRecord, ...] = ()
        self.last_refreshed_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def snapshot(self) -> Tuple[ProductRecord, ...]:
        return self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    async def refresh(self, notify: bool = True) -> bool:
        """
        Replace the snapshot with the persistence service's current listing.

        Failures are reported as an error notification (unless notify is
        False) and the previous snapshot is kept.

        Returns:
            True if the snapshot was replaced, False otherwise
        """
        try:
            products = await self.client.list_products()
        except TransportError as e:
            self.last_error = str(e)
            if notify:
                self.notifier.error(f"Could not load the product list: {e}")
            else:
                logger.warning(f"Inventory cache refresh failed: {e}")
            return False

        self._snapshot = tuple(products)
        self.last_refreshed_at = datetime.now(timezone.utc)
        self.last_error = None
        logger.info(f"Inventory cache refreshed with {len(self._snapshot)} products")
        return True

    def find_by_barcode(self, code: str) -> Optional[ProductRecord]:
        """First record whose product barcode or box barcode equals code."""
        for product in self._snapshot:
            if product.product_barcode == code or product.box_barcode == code:
                return product
        return None

    def find_by_product_barcode(self, code: str) -> Optional[ProductRecord]:
        for product in self._snapshot:
            if product.product_barcode == code:
                return product
        return None

    def find_duplicate_barcode(
        self, code: str, excluding_id: Optional[ProductId]
    ) -> Optional[ProductRecord]:
        """A record other than excluding_id that already uses code as its product barcode."""
        for product in self._snapshot:
            if product.product_barcode == code and product.id != excluding_id:
                return product
        return None

    def get(self, product_id: ProductId) -> Optional[ProductRecord]:
        # Path parameters arrive as strings while the service may use numeric ids.
        for product in self._snapshot:
            if product.id is not None and str(product.id) == str(product_id):
                return product
        return None

    def filter(self, search_term: str = "") -> FilteredProducts:
        """Records whose product barcode or name contains search_term (case-sensitive)."""
        return FilteredProducts(self._snapshot, search_term or "")
