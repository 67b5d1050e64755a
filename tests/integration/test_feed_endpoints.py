from fastapi.testclient import TestClient

from conftest import make_settings
from storefront.app import create_app
from storefront.orders.repository import InMemoryOrderRepository
from storefront.services import build_services


def test_newsletter_subscribe(client, services, transport):
    res = client.post("/newsletter", json={"email": "reader@example.com", "source": "footer"})
    assert res.status_code == 200
    assert res.json() == {"ok": True}
    assert services.feed.repository.subscribers[0]["email"] == "reader@example.com"
    assert transport.drafts[0].subject == "✨ New Newsletter Subscriber"


def test_newsletter_invalid_email(client):
    res = client.post("/newsletter", json={"email": "nope"})
    assert res.status_code == 400
    assert "errors" in res.json()


def test_newsletter_recaptcha_checked_when_configured(monkeypatch):
    settings = make_settings(recaptcha_secret="secret")
    services = build_services(settings, orders=InMemoryOrderRepository())
    seen = {}

    def fake_verify(secret, token, remote_ip=None):
        seen["token"] = token
        return False

    monkeypatch.setattr("storefront.feed.views.verify_recaptcha", fake_verify)
    with TestClient(create_app(settings, services)) as client:
        res = client.post("/newsletter", json={"email": "reader@example.com", "g-recaptcha-response": "tok"})
    assert res.status_code == 400
    assert res.json() == {"error": "recaptcha verification failed"}
    assert seen["token"] == "tok"
    assert services.feed.repository.subscribers == []


def test_comments_roundtrip(client, transport):
    assert client.get("/comments").json() == []
    assert client.post("/comments", json={"name": "Luna", "text": "Such gentle verses"}).json() == {"ok": True}
    assert client.post("/comments", json={"name": "Sol", "text": "Beautiful"}).status_code == 200

    comments = client.get("/comments").json()
    assert [c["name"] for c in comments] == ["Sol", "Luna"]
    assert set(comments[0]) == {"name", "text", "created_at"}
    assert transport.drafts[0].subject == "💬 New Comment from Luna"


def test_comment_requires_name_and_text(client):
    assert client.post("/comments", json={"name": "", "text": "hi"}).status_code == 400
    assert client.post("/comments", json={"name": "Luna"}).status_code == 400
