"""Tests for the in-memory inventory cache."""
import pytest

from warehouse.schemas.stock_in import NotificationLevel


@pytest.fixture
def seeded(store):
    store.add(productBarcode="A1", boxBarcode="BOX-1", name="Apple Juice", spec="12x1L", stock=5)
    store.add(productBarcode="B2", boxBarcode="BOX-1", name="Banana Chips", stock=0)
    store.add(productBarcode="C3", name="apple cider", stock=7)
    return store


@pytest.mark.asyncio
async def test_refresh_loads_snapshot(cache, seeded):
    """Test refresh replaces the snapshot with the service listing."""
    assert len(cache) == 0

    assert await cache.refresh() is True

    assert len(cache) == 3
    assert [p.product_barcode for p in cache.snapshot] == ["A1", "B2", "C3"]
    assert cache.last_refreshed_at is not None
    assert cache.last_error is None


@pytest.mark.asyncio
async def test_refresh_twice_yields_same_snapshot(cache, seeded):
    """Test refreshing without intervening writes is idempotent."""
    await cache.refresh()
    first = cache.snapshot

    await cache.refresh()

    assert cache.snapshot == first


@pytest.mark.asyncio
async def test_refresh_failure_keeps_previous_snapshot(cache, seeded, notifier):
    """Test a failed refresh keeps the old snapshot and notifies the user."""
    await cache.refresh()
    before = cache.snapshot

    seeded.fail_status = 503
    assert await cache.refresh() is False

    assert cache.snapshot is before
    assert "HTTP 503" in cache.last_error
    latest = notifier.recent(1)[0]
    assert latest.level == NotificationLevel.ERROR
    assert "product list" in latest.message


@pytest.mark.asyncio
async def test_refresh_rejects_malformed_listing(cache, seeded):
    """Test a listing that is not an array of records is a failure."""
    seeded.listing_override = {"items": []}

    assert await cache.refresh() is False
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_refresh_without_notification(cache, seeded, notifier):
    seeded.fail_status = 500

    assert await cache.refresh(notify=False) is False
    assert notifier.recent() == []


@pytest.mark.asyncio
async def test_find_by_barcode_matches_product_or_box_barcode(cache, seeded):
    """Test scan lookup accepts product and box barcodes."""
    await cache.refresh()

    assert cache.find_by_barcode("C3").name == "apple cider"
    # First record in snapshot order wins for a shared box barcode
    assert cache.find_by_barcode("BOX-1").product_barcode == "A1"
    assert cache.find_by_barcode("missing") is None


@pytest.mark.asyncio
async def test_find_duplicate_barcode_ignores_box_barcode_and_own_id(cache, seeded):
    """Test duplicate check uses only product barcodes of other records."""
    await cache.refresh()
    apple = cache.find_by_product_barcode("A1")

    assert cache.find_duplicate_barcode("A1", apple.id) is None
    assert cache.find_duplicate_barcode("A1", None) == apple
    assert cache.find_duplicate_barcode("A1", "another-id") == apple
    assert cache.find_duplicate_barcode("BOX-1", None) is None


@pytest.mark.asyncio
async def test_get_by_id(cache, seeded):
    await cache.refresh()
    apple = cache.find_by_product_barcode("A1")

    assert cache.get(apple.id) == apple
    assert cache.get("unknown") is None


@pytest.mark.asyncio
async def test_filter_by_name_or_barcode(cache, seeded):
    """Test filter matches a substring of the name or product barcode."""
    await cache.refresh()

    assert [p.product_barcode for p in cache.filter("Apple")] == ["A1"]
    assert [p.product_barcode for p in cache.filter("apple")] == ["C3"]
    assert [p.product_barcode for p in cache.filter("2")] == ["B2"]
    assert list(cache.filter("BOX")) == []


@pytest.mark.asyncio
async def test_filter_empty_term_returns_everything_in_order(cache, seeded):
    await cache.refresh()

    assert list(cache.filter("")) == list(cache.snapshot)


@pytest.mark.asyncio
async def test_filter_is_restartable(cache, seeded):
    """Test the filtered view can be iterated more than once."""
    await cache.refresh()
    view = cache.filter("a")

    assert list(view) == list(view)
    assert len(list(view)) == 2
