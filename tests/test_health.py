"""Tests for health check endpoints."""


def test_health_check(client):
    """Test basic health check."""
    response = client.get("/api/v1/health/")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_readiness_check(client):
    """Test readiness once the product list was loaded at startup."""
    response = client.get("/api/v1/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["products_service"] is True
    assert data["checks"]["inventory_cache"] is True


def test_not_ready_when_products_service_fails(client, store):
    store.fail_status = 500

    data = client.get("/api/v1/health/ready").json()

    assert data["status"] == "not_ready"
    assert data["checks"]["products_service"] is False


def test_cache_stats(client, store):
    store.add(productBarcode="A1", name="Apple Juice", stock=5)
    store.add(productBarcode="B2", name="Banana Chips", stock=2)
    client.post("/api/v1/products/refresh")

    data = client.get("/api/v1/health/cache/stats").json()

    assert data["total_products"] == 2
    assert data["total_stock"] == 7
    assert data["engine_busy"] is False


def test_root_endpoint(client):
    """Test root endpoint returns API info."""
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert "version" in data
    assert "docs" in data
