from fastapi.testclient import TestClient

from conftest import make_settings
from storefront.app import create_app
from storefront.orders.models import OrderStatus
from storefront.orders.repository import InMemoryOrderRepository
from storefront.payments import PayPalProvider
from storefront.services import build_services


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        return self._body


class FakePayPalHttp:
    def __init__(self):
        self.calls = []

    def post(self, url, timeout=None, **kwargs):
        self.calls.append(url)
        if url.endswith("/v1/oauth2/token"):
            return FakeResponse(200, {"access_token": "A21"})
        return FakeResponse(201, {
            "id": "PP-1",
            "status": "CREATED",
            "links": [{"rel": "approve", "href": "https://www.sandbox.paypal.com/checkoutnow?token=PP-1"}],
        })


def _client_for(**overrides):
    settings = make_settings(**overrides)
    services = build_services(settings, orders=InMemoryOrderRepository())
    return TestClient(create_app(settings, services))


def test_create_stripe_session(client, services, fake_stripe):
    res = client.post("/create-stripe-session", json={
        "items": [{"id": 1, "qty": 2}, {"id": 3}],
        "customer": {"name": "Luna", "email": "luna@example.com"},
        "discountCode": "sun10",
    })
    assert res.status_code == 200
    assert res.json() == {"url": "https://checkout.stripe.test/pay/cs_test_1", "id": "cs_test_1"}

    order = services.orders.get_by_session("cs_test_1")
    assert order.status == OrderStatus.CREATED
    assert float(order.total_amount) == 41.83
    assert fake_stripe.coupons[0]["amount_off"] == 465


def test_create_stripe_session_passes_redirect_urls(client, fake_stripe):
    client.post("/create-stripe-session", json={
        "items": [{"id": 2}],
        "successUrl": "https://shop.test/thanks",
        "cancelUrl": "https://shop.test/cart",
    })
    assert fake_stripe.sessions[0]["success_url"] == "https://shop.test/thanks"
    assert fake_stripe.sessions[0]["cancel_url"] == "https://shop.test/cart"


def test_create_stripe_session_validation_errors(client, fake_stripe):
    for body, message in [
        ({}, "Items array is required"),
        ({"items": []}, "Items array is required"),
        ({"items": [{"id": "x"}]}, "items[0].id must be a positive integer"),
        ({"items": [{"id": 1, "qty": 0}]}, "items[0].qty must be a positive integer"),
        ({"items": [{"id": 42}]}, "Unknown product id 42"),
    ]:
        res = client.post("/create-stripe-session", json=body)
        assert res.status_code == 400
        assert res.json() == {"error": message}
    assert fake_stripe.sessions == []


def test_create_stripe_session_not_configured():
    with _client_for(stripe_secret_key="") as client:
        res = client.post("/create-stripe-session", json={"items": [{"id": 1}]})
    assert res.status_code == 500
    assert res.json() == {"error": "Stripe not configured"}


def test_provider_errors_are_generic_in_production():
    with _client_for(stripe_secret_key="", environment="production") as client:
        res = client.post("/create-stripe-session", json={"items": [{"id": 1}]})
    assert res.status_code == 500
    assert res.json() == {"error": "Service not configured"}


def test_create_paypal_order(client, services):
    paypal = PayPalProvider(make_settings(paypal_client_id="client", paypal_secret="secret"), http=FakePayPalHttp())
    services.intake.providers["paypal"] = paypal

    res = client.post("/create-paypal-order", json={"items": [{"id": 4, "qty": 1}], "returnUrl": "https://shop.test/done"})

    assert res.status_code == 200
    body = res.json()
    assert body["id"] == "PP-1"
    assert body["links"][0]["rel"] == "approve"
    order = services.orders.get_by_session("PP-1")
    assert order.provider == "paypal"
    assert order.to_row()["paypal_order_id"] == "PP-1"


def test_create_paypal_order_not_configured(client):
    res = client.post("/create-paypal-order", json={"items": [{"id": 4}]})
    assert res.status_code == 500
    assert res.json() == {"error": "PayPal not configured"}


def test_submit_order(client, services, transport):
    res = client.post("/submit-order", json={
        "name": "Luna",
        "email": "luna@example.com",
        "items": [{"id": 5, "title": "Print", "price": 15, "qty": 1}],
        "address": "1 Moon St",
        "city": "Avalon",
        "giftWrap": True,
        "pay": "card",
    })
    assert res.status_code == 200
    assert res.json() == {"ok": True, "id": "sub_1"}
    assert services.orders.submissions[0]["items"][0]["title"] == "Signed Poem Print"
    assert transport.drafts[0].subject == "🛒 New Order - $15.00"


def test_submit_order_validation(client):
    bad_email = client.post("/submit-order", json={"name": "Luna", "email": "not-an-email", "items": [{"id": 1}]})
    assert bad_email.status_code == 400
    assert "errors" in bad_email.json()

    no_items = client.post("/submit-order", json={"name": "Luna", "email": "luna@example.com", "items": []})
    assert no_items.status_code == 400

    no_name = client.post("/submit-order", json={"name": "", "email": "luna@example.com", "items": [{"id": 1}]})
    assert no_name.status_code == 400


def test_submit_order_rejects_non_finite_or_negative_price(client, services):
    for price in ("NaN", "Infinity", -5):
        res = client.post("/submit-order", json={
            "name": "Luna",
            "email": "luna@example.com",
            "items": [{"id": 99, "title": "Custom", "price": price}],
        })
        assert res.status_code == 400
    assert services.orders.submissions == []
