import pytest
from types import SimpleNamespace
from typing import Any, Dict, Generator, List

import stripe
from fastapi.testclient import TestClient

from storefront.app import create_app
from storefront.config import Settings
from storefront.errors import ProviderError
from storefront.feed.repository import InMemoryFeedRepository
from storefront.notifications.dispatcher import NotificationDispatcher
from storefront.notifications.transports import EmailDraft, SendOutcome
from storefront.orders.idempotency import InMemoryProcessedEventStore
from storefront.orders.repository import InMemoryOrderRepository
from storefront.services import build_services


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


class FakeTransport:
    """Transport d'e-mail qui garde les brouillons en mémoire."""

    name = "fake"

    def __init__(self, fail: bool = False):
        self.drafts: List[EmailDraft] = []
        self.fail = fail

    def send(self, draft: EmailDraft) -> SendOutcome:
        if self.fail:
            raise ProviderError("mailbox unavailable", provider=self.name)
        self.drafts.append(draft)
        return SendOutcome(message_id=f"msg_{len(self.drafts)}")


class FakeStripe:
    """Remplace stripe.checkout.Session.create et stripe.Coupon.create (aucun appel réseau)."""

    def __init__(self):
        self.sessions: List[Dict[str, Any]] = []
        self.coupons: List[Dict[str, Any]] = []

    def create_session(self, **params):
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions.append(params)
        return SimpleNamespace(id=session_id, url=f"https://checkout.stripe.test/pay/{session_id}")

    def create_coupon(self, **params):
        self.coupons.append(params)
        return SimpleNamespace(id=f"coupon_{len(self.coupons)}")


def make_settings(**overrides) -> Settings:
    values = dict(
        environment="test",
        site_url="https://shop.test",
        session_secret_key="test-session-secret",
        stripe_secret_key="sk_test_x",
        company_email="shop@example.com",
        email_from="no-reply@shop.test",
        disable_rate_limiter=True,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def fake_stripe(monkeypatch) -> FakeStripe:
    fake = FakeStripe()
    monkeypatch.setattr(stripe.checkout.Session, "create", fake.create_session)
    monkeypatch.setattr(stripe.Coupon, "create", fake.create_coupon)
    return fake


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def services(settings, transport):
    return build_services(
        settings,
        orders=InMemoryOrderRepository(),
        processed_events=InMemoryProcessedEventStore(),
        feed_repository=InMemoryFeedRepository(),
        notifier=NotificationDispatcher([transport], settings.sender, settings.company_email),
    )


@pytest.fixture
def app(settings, services):
    return create_app(settings, services)


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
