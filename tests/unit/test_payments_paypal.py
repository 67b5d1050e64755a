from decimal import Decimal

import pytest
import requests

from conftest import make_settings
from storefront.errors import ConfigurationError, NetworkError, ProviderError
from storefront.orders.models import Customer, Order, OrderLine
from storefront.payments import PayPalProvider, approve_link

APPROVE = "https://www.sandbox.paypal.com/checkoutnow?token=PP-1"


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    def json(self):
        return self._body


class FakeHttp:
    def __init__(self, *responses):
        self.calls = []
        self._responses = list(responses)

    def post(self, url, timeout=None, **kwargs):
        self.calls.append((url, kwargs))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _settings():
    return make_settings(paypal_client_id="client", paypal_secret="secret", paypal_api_base="https://api.paypal.test")


def _order():
    return Order(
        items=[OrderLine(id=1, title="Suncatcher Spirit (Signed Edition)", price=Decimal("19.99"), qty=2)],
        subtotal=Decimal("39.98"),
        total_amount=Decimal("35.98"),
        customer=Customer(name="Luna", email="luna@example.com"),
        discount_code="SUN10",
        discount_amount=Decimal("4.00"),
    )


def _created():
    return FakeResponse(201, {
        "id": "PP-1",
        "status": "CREATED",
        "links": [{"rel": "self", "href": "https://api.paypal.test/v2/checkout/orders/PP-1"}, {"rel": "approve", "href": APPROVE}],
    })


def test_create_session_returns_approve_link():
    http = FakeHttp(FakeResponse(200, {"access_token": "A21"}), _created())
    session = PayPalProvider(_settings(), http=http).create_session(_order())

    assert session.provider == "paypal"
    assert session.session_id == "PP-1"
    assert session.redirect_url == APPROVE
    assert session.raw["status"] == "CREATED"

    token_url, token_kwargs = http.calls[0]
    assert token_url == "https://api.paypal.test/v1/oauth2/token"
    assert token_kwargs["auth"] == ("client", "secret")
    assert token_kwargs["data"] == {"grant_type": "client_credentials"}

    order_url, order_kwargs = http.calls[1]
    assert order_url == "https://api.paypal.test/v2/checkout/orders"
    assert order_kwargs["headers"]["Authorization"] == "Bearer A21"
    body = order_kwargs["json"]
    assert body["intent"] == "CAPTURE"
    unit = body["purchase_units"][0]
    assert unit["amount"]["value"] == "35.98"
    assert unit["amount"]["currency_code"] == "USD"
    assert unit["amount"]["breakdown"]["item_total"]["value"] == "39.98"
    assert unit["amount"]["breakdown"]["discount"]["value"] == "4.00"
    assert unit["items"][0]["quantity"] == "2"
    assert body["application_context"]["return_url"] == "https://shop.test/index.html"
    assert body["application_context"]["cancel_url"] == "https://shop.test/cart.html"


def test_missing_credentials_is_configuration_error():
    with pytest.raises(ConfigurationError) as exc:
        PayPalProvider(make_settings(), http=FakeHttp()).create_session(_order())
    assert str(exc.value) == "PayPal not configured"


def test_rejected_token_is_provider_error():
    http = FakeHttp(FakeResponse(401, {"error": "invalid_client", "error_description": "Client Authentication failed"}))
    with pytest.raises(ProviderError) as exc:
        PayPalProvider(_settings(), http=http).create_session(_order())
    assert "Client Authentication failed" in str(exc.value)


def test_network_failure_is_network_error():
    http = FakeHttp(requests.ConnectionError("unreachable"))
    with pytest.raises(NetworkError):
        PayPalProvider(_settings(), http=http).create_session(_order())


def test_missing_approve_link_is_provider_error():
    http = FakeHttp(FakeResponse(200, {"access_token": "A21"}), FakeResponse(201, {"id": "PP-2", "links": []}))
    with pytest.raises(ProviderError):
        PayPalProvider(_settings(), http=http).create_session(_order())


def test_approve_link():
    assert approve_link({"links": [{"rel": "approve", "href": APPROVE}]}) == APPROVE
    assert approve_link({}) is None
