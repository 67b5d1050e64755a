import pytest

from conftest import FakeTransport
from storefront.notifications.dispatcher import HISTORY_SIZE, NotificationDispatcher, render_subject
from storefront.notifications.transports import EmailJsTransport


def test_subjects():
    assert render_subject("newsletter", {}) == "✨ New Newsletter Subscriber"
    assert render_subject("comment", {"name": "Luna"}) == "💬 New Comment from Luna"
    assert render_subject("order", {"total": 35.98}) == "🛒 New Order - $35.98"


def test_no_transport_is_skipped():
    result = NotificationDispatcher([], "from@shop.test", "shop@example.com").notify("newsletter", {"email": "a@b.c"})
    assert result.success is True
    assert result.skipped is True


def test_no_recipient_is_skipped():
    transport = FakeTransport()
    result = NotificationDispatcher([transport], "from@shop.test", "").notify("newsletter", {"email": "a@b.c"})
    assert result.skipped is True
    assert transport.drafts == []


def test_unknown_kind_raises():
    with pytest.raises(ValueError):
        NotificationDispatcher([FakeTransport()], "from@shop.test", "shop@example.com").notify("sms", {})


def test_transport_failure_is_reported_not_raised():
    dispatcher = NotificationDispatcher([FakeTransport(fail=True)], "from@shop.test", "shop@example.com")
    result = dispatcher.notify("comment", {"name": "Luna", "text": "hi"})
    assert result.success is False
    assert "mailbox unavailable" in result.error
    assert dispatcher.sent() == []


def test_only_first_transport_is_used():
    first, second = FakeTransport(), FakeTransport()
    dispatcher = NotificationDispatcher([first, second], "from@shop.test", "shop@example.com")
    result = dispatcher.notify("comment", {"name": "Luna", "email": "luna@example.com", "text": "Lovely poems"})
    assert result.message_id == "msg_1"
    assert len(first.drafts) == 1
    assert second.drafts == []
    draft = first.drafts[0]
    assert draft.subject == "💬 New Comment from Luna"
    assert draft.reply_to == "luna@example.com"
    assert "Lovely poems" in draft.html
    sent = dispatcher.sent()
    assert sent[0]["kind"] == "comment"
    assert sent[0]["to"] == "shop@example.com"


def test_explicit_recipient_overrides_default():
    transport = FakeTransport()
    NotificationDispatcher([transport], "from@shop.test", "shop@example.com").notify(
        "newsletter", {"email": "a@b.c"}, to="owner@example.com"
    )
    assert transport.drafts[0].to == "owner@example.com"


def test_history_is_bounded():
    dispatcher = NotificationDispatcher([FakeTransport()], "from@shop.test", "shop@example.com")
    for i in range(HISTORY_SIZE + 5):
        dispatcher.notify("newsletter", {"email": f"user{i}@example.com"})
    assert len(dispatcher.sent()) == HISTORY_SIZE


def test_emailjs_skips_comments():
    dispatcher = NotificationDispatcher([EmailJsTransport("svc", "tpl", "user")], "from@shop.test", "shop@example.com")
    result = dispatcher.notify("comment", {"name": "Luna", "text": "hi"})
    assert result.skipped is True
    assert result.transport == "emailjs"


def test_confirmation_goes_to_customer():
    transport = FakeTransport()
    dispatcher = NotificationDispatcher([transport], "from@shop.test", "shop@example.com")
    result = dispatcher.notify(
        "confirmation",
        {"order_id": "ord_1", "customer_name": "Luna", "items": [], "total": 24.99},
        to="luna@example.com",
    )
    assert result.success and not result.skipped
    draft = transport.drafts[0]
    assert draft.to == "luna@example.com"
    assert draft.subject == "Yaya Starchild - Order confirmation"
    assert "Thank you for your order, Luna!" in draft.html
    assert "$24.99" in draft.html
    assert dispatcher.sent()[0]["order_id"] == "ord_1"
