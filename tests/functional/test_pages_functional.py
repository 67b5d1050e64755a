from fastapi.testclient import TestClient
from fastapi_limiter import FastAPILimiter

from conftest import make_settings
from storefront.app import create_app
from storefront.orders.repository import InMemoryOrderRepository
from storefront.services import build_services


def test_root_and_favicon(client):
    assert client.get("/").json()["ok"] is True
    assert client.get("/favicon.ico").status_code == 204


def test_shop_page(client):
    client.post("/cart/items", json={"productId": 3, "qty": 2})
    res = client.get("/shop")
    assert res.status_code == 200
    assert "Suncatcher Sticker Pack" in res.text
    assert "$6.50" in res.text
    assert 'id="nav-cart-count">2<' in res.text


def test_product_page(client):
    res = client.get("/product/1")
    assert res.status_code == 200
    assert "application/ld+json" in res.text
    assert "Suncatcher Spirit (Signed Edition)" in res.text


def test_product_page_not_found(client):
    for path in ("/product/99", "/product/abc"):
        res = client.get(path)
        assert res.status_code == 404
        assert "Product not found" in res.text


def test_products_api(client):
    products = client.get("/products").json()
    assert len(products) == 5
    assert products[2] == client.get("/products/3").json()
    assert client.get("/products/99").json() == {"detail": "Product not found"}


def test_security_headers(client):
    res = client.get("/shop")
    assert res.headers["x-frame-options"] == "DENY"
    assert res.headers["x-content-type-options"] == "nosniff"
    assert "https://js.stripe.com" in res.headers["content-security-policy"]


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/health/supabase").json() == {"configured": False, "url": None}
    assert client.get("/health/rate-limit").json()["enabled"] is False


def test_rate_limit_local_fallback_returns_429():
    settings = make_settings(local_rate_limit_fallback=True)
    services = build_services(settings, orders=InMemoryOrderRepository())
    with TestClient(create_app(settings, services)) as client:
        codes = [client.post("/create-stripe-session", json={"items": [{"id": 1}]}).status_code for _ in range(11)]
    assert codes[:10] == [200] * 10
    assert codes[10] == 429


def test_lifespan_falls_back_when_redis_unreachable(monkeypatch):
    monkeypatch.setattr(FastAPILimiter, "redis", None)
    settings = make_settings(
        disable_rate_limiter=False,
        rate_limit_redis_url="redis://127.0.0.1:1/0",
        local_rate_limit_fallback=True,
    )
    services = build_services(settings, orders=InMemoryOrderRepository())
    app = create_app(settings, services)
    with TestClient(app) as client:
        assert app.state.rate_limit_enabled is True
        assert client.get("/health/rate-limit").json()["backend"] == "memory"
