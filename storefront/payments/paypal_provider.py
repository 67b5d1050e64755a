"""
Adaptateur PayPal (REST Orders v2) via requests.
1) POST /v1/oauth2/token (client_credentials, Basic auth)
2) POST /v2/checkout/orders (intent=CAPTURE) -> lien "approve" pour la redirection
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from storefront.config import Settings
from storefront.errors import ConfigurationError, NetworkError, ProviderError
from storefront.orders.models import Order
from storefront.payments.base import PaymentSession

logger = logging.getLogger(__name__)

TIMEOUT = 10
BRAND_NAME = "Pastel Poetics"


def _money(value) -> Dict[str, str]:
    return {"currency_code": "USD", "value": f"{value:.2f}"}


def approve_link(order_json: Dict[str, Any]) -> Optional[str]:
    for link in order_json.get("links") or []:
        if link.get("rel") == "approve":
            return link.get("href")
    return None


# module storefront.payments.paypal_provider
class PayPalProvider:
    name = "paypal"

    def __init__(self, settings: Settings, http: Any = requests):
        self._client_id = settings.paypal_client_id
        self._secret = settings.paypal_secret
        self._base = settings.paypal_api_base
        self._site_url = settings.site_url
        self._http = http

    @property
    def configured(self) -> bool:
        return bool(self._client_id and self._secret)

    def _post(self, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self._base}{path}"
        try:
            resp = self._http.post(url, timeout=TIMEOUT, **kwargs)
        except requests.RequestException as e:
            logger.exception("payments.paypal request failed url=%s", url)
            raise NetworkError(f"PayPal unreachable: {e}", provider=self.name) from e
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400:
            message = body.get("message") or body.get("error_description") or f"HTTP {resp.status_code}"
            logger.error("payments.paypal %s rejected status=%s message=%s", path, resp.status_code, message)
            raise ProviderError(f"PayPal error: {message}", provider=self.name)
        return body

    def access_token(self) -> str:
        if not self.configured:
            raise ConfigurationError("PayPal not configured", provider=self.name)
        body = self._post(
            "/v1/oauth2/token",
            auth=(self._client_id, self._secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        token = body.get("access_token")
        if not token:
            raise ProviderError("PayPal error: no access token returned", provider=self.name)
        return token

    def purchase_unit(self, order: Order) -> Dict[str, Any]:
        items: List[Dict[str, Any]] = [
            {"name": line.title[:127], "quantity": str(line.qty), "unit_amount": _money(line.price)}
            for line in order.items
        ]
        breakdown: Dict[str, Any] = {"item_total": _money(order.subtotal)}
        if order.discount_amount > 0:
            breakdown["discount"] = _money(order.discount_amount)
        return {
            "reference_id": order.id,
            "amount": {**_money(order.total_amount), "breakdown": breakdown},
            "items": items,
        }

    def create_session(
        self,
        order: Order,
        *,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> PaymentSession:
        """
        Crée une commande PayPal (intent CAPTURE) en USD.
        Retour: PaymentSession(session_id=<id PayPal>, redirect_url=<lien approve>, raw=<JSON PayPal>)
        """
        token = self.access_token()
        body = self._post(
            "/v2/checkout/orders",
            json={
                "intent": "CAPTURE",
                "purchase_units": [self.purchase_unit(order)],
                "application_context": {
                    "brand_name": BRAND_NAME,
                    "return_url": success_url or f"{self._site_url}/index.html",
                    "cancel_url": cancel_url or f"{self._site_url}/cart.html",
                },
            },
            headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        )
        href = approve_link(body)
        if not body.get("id") or not href:
            raise ProviderError("Could not create PayPal order", provider=self.name)
        return PaymentSession(provider=self.name, session_id=body["id"], redirect_url=href, raw=body)
