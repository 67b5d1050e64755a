"""
Parcours d'achat de bout en bout contre un serveur en marche (dev / staging).

Usage:
    storefront-smoke [BASE_URL] [--auto]
    python -m storefront.smoke http://localhost:4242 --auto

Étapes:
  1) POST /create-stripe-session avec un article
  2) POST /webhook/stripe (checkout.session.completed simulé, sans signature)
  3) Lecture de /_debug/orders puis /_debug/sent-emails (quelques tentatives)
Sans --auto (ni AUTO_SIMULATE=1), le script attend Entrée avant de simuler le webhook:
cela laisse le temps de lancer `stripe trigger` à la place.
"""
import argparse
import os
import sys
import time
from typing import Any, Callable, List, Optional

import requests

DEFAULT_BASE_URL = "http://localhost:4242"
TIMEOUT = 10


def poll(base_url: str, path: str, attempts: int = 8, interval: float = 0.4, http: Any = requests) -> Optional[List[Any]]:
    """Interroge path jusqu'à obtenir une liste non vide; None après `attempts` essais."""
    for _ in range(attempts):
        try:
            r = http.get(base_url + path, timeout=TIMEOUT)
            if r.status_code == 200:
                body = r.json()
                if isinstance(body, list) and body:
                    return body
        except (requests.RequestException, ValueError):
            pass
        time.sleep(interval)
    return None


def run(base_url: str, auto: bool = True, http: Any = requests, wait: Callable[[str], Any] = input, interval: float = 0.4) -> int:
    print("Starting E2E test against", base_url)
    try:
        resp = http.post(
            base_url + "/create-stripe-session",
            json={"items": [{"id": 1, "qty": 1}], "customer": {"email": "buyer@example.com"}},
            timeout=TIMEOUT,
        )
    except requests.RequestException as e:
        print("create session failed:", e)
        return 1
    if resp.status_code != 200:
        print("create session failed", resp.status_code, resp.text)
        return 1
    data = resp.json()
    print("session response", data)
    session_id = data.get("id") or f"cs_test_e2e_{int(time.time())}"

    print("\nTo forward a real Stripe webhook for this session with the Stripe CLI, run:")
    print(f"stripe trigger checkout.session.completed --add 'checkout_session:id={session_id}' --forward-to {base_url}/webhook/stripe")
    if not auto:
        wait("Press Enter to simulate the webhook... ")

    event = {
        "id": f"evt_smoke_{int(time.time() * 1000)}",
        "type": "checkout.session.completed",
        "data": {"object": {"id": session_id, "customer_details": {"email": "buyer@example.com"}}},
    }
    wh = http.post(base_url + "/webhook/stripe", json=event, timeout=TIMEOUT)
    print("/webhook/stripe status", wh.status_code)
    if wh.status_code != 200:
        print(wh.text)
        return 1

    orders = poll(base_url, "/_debug/orders", http=http, interval=interval)
    print("orders (latest):", orders[:3] if orders else "none")
    emails = poll(base_url, "/_debug/sent-emails", http=http, interval=interval)
    print("sent emails:", emails or "none")
    print("E2E test complete.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Simulated Stripe purchase against a running storefront")
    parser.add_argument("base_url", nargs="?", default=DEFAULT_BASE_URL)
    parser.add_argument("--auto", action="store_true", help="simulate the webhook without waiting")
    args = parser.parse_args(argv)
    auto = args.auto or os.environ.get("AUTO_SIMULATE") == "1"
    return run(args.base_url.rstrip("/"), auto=auto)


if __name__ == "__main__":
    sys.exit(main())
