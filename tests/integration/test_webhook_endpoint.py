import json

from fastapi.testclient import TestClient

from conftest import make_settings
from storefront.app import create_app
from storefront.orders.models import OrderStatus
from storefront.orders.repository import InMemoryOrderRepository
from storefront.services import build_services


def _event(session_id, event_id="evt_1", event_type="checkout.session.completed"):
    return {
        "id": event_id,
        "type": event_type,
        "data": {"object": {"id": session_id, "customer_details": {"email": "buyer@example.com", "name": "Buyer"}}},
    }


def _start_session(client):
    return client.post("/create-stripe-session", json={"items": [{"id": 1, "qty": 1}]}).json()["id"]


def test_webhook_replay_marks_paid_once(client, services, transport):
    session_id = _start_session(client)

    first = client.post("/webhook/stripe", content=json.dumps(_event(session_id)))
    second = client.post("/webhook/stripe", content=json.dumps(_event(session_id)))

    assert first.status_code == 200
    assert first.json()["received"] is True
    assert first.json()["status"] == "paid"
    assert second.status_code == 200
    assert second.json() == {"received": True, "status": "duplicate"}
    assert services.orders.get_by_session(session_id).status == OrderStatus.PAID
    # une notification boutique + une confirmation client, rien de plus au rejeu
    assert [(d.kind, d.to) for d in transport.drafts] == [
        ("order", "shop@example.com"),
        ("confirmation", "buyer@example.com"),
    ]
    assert "Thank you for your order, Buyer!" in transport.drafts[1].html


def test_webhook_ignores_other_event_types(client, transport):
    res = client.post("/webhook/stripe", json=_event("cs_x", event_type="payment_intent.succeeded"))
    assert res.json() == {"received": True, "status": "ignored"}
    assert transport.drafts == []


def test_webhook_unknown_session(client):
    res = client.post("/webhook/stripe", json=_event("cs_unknown"))
    assert res.status_code == 200
    assert res.json()["status"] == "unknown_order"


def test_webhook_invalid_json(client):
    res = client.post("/webhook/stripe", content=b"not json")
    assert res.status_code == 400
    assert res.json()["error"].startswith("Webhook Error")


def test_webhook_rejects_bad_signature():
    settings = make_settings(stripe_webhook_secret="whsec_test")
    services = build_services(settings, orders=InMemoryOrderRepository())
    with TestClient(create_app(settings, services)) as client:
        res = client.post(
            "/webhook/stripe",
            content=json.dumps(_event("cs_1")),
            headers={"stripe-signature": "t=1,v1=deadbeef"},
        )
    assert res.status_code == 400
    assert res.json()["error"].startswith("Webhook Error")
    assert services.processed_events.claim("evt_1") is True
