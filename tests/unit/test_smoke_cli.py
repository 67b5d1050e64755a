from types import SimpleNamespace

from storefront.smoke import main, run


class FakeHttp:
    def __init__(self, session_status=200):
        self.session_status = session_status
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json))
        if url.endswith("/create-stripe-session"):
            return SimpleNamespace(status_code=self.session_status, text="boom", json=lambda: {"id": "cs_test_9", "url": "https://checkout.stripe.test"})
        return SimpleNamespace(status_code=200, text="", json=lambda: {"received": True})

    def get(self, url, timeout=None):
        return SimpleNamespace(status_code=200, json=lambda: [{"path": url}])


def test_run_posts_webhook_for_created_session():
    http = FakeHttp()
    assert run("http://localhost:4242", auto=True, http=http, interval=0) == 0
    url, event = http.posts[1]
    assert url == "http://localhost:4242/webhook/stripe"
    assert event["type"] == "checkout.session.completed"
    assert event["data"]["object"]["id"] == "cs_test_9"


def test_run_waits_for_enter_without_auto():
    prompts = []
    run("http://localhost:4242", auto=False, http=FakeHttp(), wait=prompts.append, interval=0)
    assert len(prompts) == 1


def test_run_fails_when_session_creation_fails():
    assert run("http://localhost:4242", http=FakeHttp(session_status=500), interval=0) == 1


def test_main_parses_arguments(monkeypatch):
    seen = {}

    def fake_run(base_url, auto=True):
        seen.update(base_url=base_url, auto=auto)
        return 0

    monkeypatch.setattr("storefront.smoke.run", fake_run)
    assert main(["http://staging.test/", "--auto"]) == 0
    assert seen == {"base_url": "http://staging.test", "auto": True}
