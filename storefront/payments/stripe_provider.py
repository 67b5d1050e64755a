"""
Adaptateur Stripe: session Checkout hébergée + vérification des webhooks.
La clé API est passée à chaque appel (api_key=...): aucun état global stripe.api_key.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import stripe

from storefront.config import Settings
from storefront.errors import ConfigurationError, NetworkError, ProviderError, ValidationError
from storefront.orders.models import Order
from storefront.payments.base import PaymentSession, absolute_url, to_cents

logger = logging.getLogger(__name__)

SHIPPING_COUNTRIES = ["US", "CA", "GB", "AU"]
ORDER_SOURCE = "yaya_website"


# module storefront.payments.stripe_provider
class StripeProvider:
    name = "stripe"

    def __init__(self, settings: Settings):
        self._api_key = settings.stripe_secret_key
        self._webhook_secret = settings.stripe_webhook_secret
        self._site_url = settings.site_url

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _require_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError("Stripe not configured", provider=self.name)
        return self._api_key

    def line_items(self, order: Order) -> List[Dict[str, Any]]:
        """
        Lignes Stripe en USD à partir des prix catalogue de la commande.
        - unit_amount en centimes, quantity >= 1
        - product_data: nom + image absolue
        """
        items: List[Dict[str, Any]] = []
        for line in order.items:
            product_data: Dict[str, Any] = {"name": line.title}
            if line.image:
                product_data["images"] = [absolute_url(self._site_url, line.image)]
            items.append({
                "quantity": line.qty,
                "price_data": {
                    "currency": "usd",
                    "unit_amount": to_cents(line.price),
                    "product_data": product_data,
                },
            })
        return items

    def metadata(self, order: Order) -> Dict[str, str]:
        return {
            "order_id": order.id,
            "customer_name": order.customer.name or "",
            "discount_code": order.discount_code or "",
            "discount_amount": f"{order.discount_amount:.2f}",
            "order_source": ORDER_SOURCE,
        }

    def _coupon_for(self, order: Order) -> Optional[str]:
        """
        Coupon à usage unique pour la remise: amount_off exact en centimes.
        Retourne None sans remise.
        """
        if not order.discount_code or order.discount_amount <= 0:
            return None
        coupon = stripe.Coupon.create(
            api_key=self._api_key,
            amount_off=to_cents(order.discount_amount),
            currency="usd",
            duration="once",
            name=order.discount_code,
        )
        return coupon.id

    def create_session(
        self,
        order: Order,
        *,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> PaymentSession:
        """
        Crée une session Stripe Checkout.
        - success_url par défaut: {SITE_URL}/success.html?session_id={CHECKOUT_SESSION_ID}
        - cancel_url par défaut: {SITE_URL}/cart.html
        - adresse de facturation requise, livraison US/CA/GB/AU
        Retour: PaymentSession(session_id="cs_...", redirect_url="https://checkout.stripe.com/...")
        """
        api_key = self._require_key()
        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": self.line_items(order),
            "success_url": success_url
            or f"{self._site_url}/success.html?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": cancel_url or f"{self._site_url}/cart.html",
            "shipping_address_collection": {"allowed_countries": SHIPPING_COUNTRIES},
            "billing_address_collection": "required",
            "client_reference_id": order.id,
            "metadata": self.metadata(order),
        }
        if order.customer.email:
            params["customer_email"] = order.customer.email
        try:
            coupon_id = self._coupon_for(order)
            if coupon_id:
                params["discounts"] = [{"coupon": coupon_id}]
            session = stripe.checkout.Session.create(api_key=api_key, **params)
        except stripe.APIConnectionError as e:
            logger.exception("payments.stripe.create_session network error order=%s", order.id)
            raise NetworkError(str(e), provider=self.name) from e
        except stripe.StripeError as e:
            logger.exception("payments.stripe.create_session failed order=%s", order.id)
            raise ProviderError(getattr(e, "user_message", None) or str(e), provider=self.name) from e
        return PaymentSession(
            provider=self.name,
            session_id=session.id,
            redirect_url=session.url,
            raw={"id": session.id, "url": session.url},
        )

    def parse_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Parse un webhook Stripe.
        - Avec STRIPE_WEBHOOK_SECRET: vérifie l'en-tête Stripe-Signature (ValidationError si invalide).
        - Sans secret: accepte le JSON brut (dev/tests) avec un warning.
        Retour: l'événement sous forme de dict.
        """
        if self._webhook_secret:
            try:
                stripe.Webhook.construct_event(payload, sig_header or "", self._webhook_secret)
            except (ValueError, stripe.SignatureVerificationError) as e:
                logger.warning("payments.stripe.parse_event signature rejected: %s", e)
                raise ValidationError(f"Webhook Error: {e}", provider=self.name) from e
        else:
            logger.warning("STRIPE_WEBHOOK_SECRET not set, accepting unsigned webhook payload")
        try:
            event = json.loads(payload or b"{}")
        except ValueError as e:
            raise ValidationError(f"Webhook Error: {e}", provider=self.name) from e
        if not isinstance(event, dict):
            raise ValidationError("Webhook Error: payload must be a JSON object", provider=self.name)
        return event
