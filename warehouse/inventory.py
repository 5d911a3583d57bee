from dataclasses import dataclass

from fastapi import Request

from warehouse.clients.products_client import ProductsClient
from warehouse.config import Settings
from warehouse.services.inventory_cache import InventoryCache
from warehouse.services.notifications import Notifier
from warehouse.services.reconciliation import ReconciliationEngine


@dataclass
class Inventory:
    """The collaborators of one client process, created once at startup."""
    client: ProductsClient
    notifier: Notifier
    cache: InventoryCache
    engine: ReconciliationEngine


def build_inventory(settings: Settings, client: ProductsClient = None) -> Inventory:
    """Wire the products client, cache, notifier and engine together."""
    client = client or ProductsClient(
        base_url=settings.PRODUCTS_API_URL,
        timeout=settings.REQUEST_TIMEOUT,
    )
    notifier = Notifier(history_size=settings.NOTIFICATION_HISTORY)
    cache = InventoryCache(client, notifier)
    engine = ReconciliationEngine(
        client,
        cache,
        notifier,
        refresh_before_commit=settings.REFRESH_BEFORE_COMMIT,
    )
    return Inventory(client=client, notifier=notifier, cache=cache, engine=engine)


def get_inventory(request: Request) -> Inventory:
    """Dependency returning the application's inventory collaborators."""
    return request.app.state.inventory


def get_engine(request: Request) -> ReconciliationEngine:
    return get_inventory(request).engine


def get_cache(request: Request) -> InventoryCache:
    return get_inventory(request).cache


def get_notifier(request: Request) -> Notifier:
    return get_inventory(request).notifier
