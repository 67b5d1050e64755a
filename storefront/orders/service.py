"""
Cas d'usage 'orders': validation/prix des paniers, sessions de paiement, webhooks, soumissions.
Orchestre le dépôt de commandes, la garde d'idempotence, les fournisseurs et le dispatcher.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from storefront.cart.discounts import apply_discount, discounted_total, normalize_code
from storefront.catalog.products import get_product_by_id
from storefront.errors import ConfigurationError, ValidationError
from storefront.notifications.dispatcher import NotificationDispatcher, NotifyResult
from storefront.orders.idempotency import ProcessedEventStore
from storefront.orders.models import Customer, Order, OrderLine, utcnow_iso
from storefront.orders.repository import OrderRepository
from storefront.orders.submissions import SubmissionStore
from storefront.payments.base import PaymentProvider, PaymentSession

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def _positive_int(value: Any) -> Optional[int]:
    """Entier strictement positif (int ou texte "3"); None sinon. Les booléens sont refusés."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
        return n if n > 0 else None
    return None


def parse_items(items: Any) -> Dict[int, int]:
    """
    Valide et agrège un panier brut [{id, qty|quantity}, ...] en {product_id: qty}.
    - items doit être une liste non vide (sinon "Items array is required").
    - id et quantité doivent être des entiers positifs; quantité absente -> 1.
    - Les ids en double sont fusionnés.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("Items array is required")
    quantities: Dict[int, int] = {}
    for index, it in enumerate(items):
        if not isinstance(it, Mapping):
            raise ValidationError(f"items[{index}] must be an object")
        pid = _positive_int(it.get("id"))
        if pid is None:
            raise ValidationError(f"items[{index}].id must be a positive integer")
        raw_qty = it.get("qty", it.get("quantity", 1))
        qty = _positive_int(raw_qty)
        if qty is None:
            raise ValidationError(f"items[{index}].qty must be a positive integer")
        quantities[pid] = quantities.get(pid, 0) + qty
    return quantities


def price_lines(quantities: Mapping[int, int]) -> List[OrderLine]:
    """Prix catalogue pour chaque id (jamais ceux du client). Id inconnu -> ValidationError."""
    lines: List[OrderLine] = []
    for pid, qty in quantities.items():
        product = get_product_by_id(pid)
        if product is None:
            raise ValidationError(f"Unknown product id {pid}")
        lines.append(OrderLine(id=product.id, title=product.title, price=product.price, qty=qty, image=product.image))
    return lines


def _session_address(session: Mapping[str, Any]) -> str:
    details = session.get("shipping_details") or session.get("customer_details") or {}
    address = details.get("address") or {}
    parts = [address.get(k) for k in ("line1", "line2", "city", "state", "postal_code", "country")]
    return ", ".join(p for p in parts if p)


class OrderIntakeService:
    def __init__(
        self,
        *,
        orders: OrderRepository,
        processed_events: ProcessedEventStore,
        notifier: NotificationDispatcher,
        providers: Mapping[str, PaymentProvider],
        submissions: SubmissionStore,
        default_provider: str = "stripe",
        site_url: str = "",
    ):
        self.orders = orders
        self.processed_events = processed_events
        self.notifier = notifier
        self.providers = dict(providers)
        self.submissions = submissions
        self.default_provider = default_provider
        self.site_url = site_url.rstrip("/")

    # --- construction de commande ---
    def build_order(
        self,
        items: Any,
        customer: Optional[Customer] = None,
        discount_code: Optional[str] = None,
    ) -> Order:
        lines = price_lines(parse_items(items))
        subtotal = sum((line.line_total for line in lines), Decimal("0"))
        code = normalize_code(discount_code)
        discount, total = discounted_total(subtotal, code)
        return Order(
            items=lines,
            subtotal=subtotal,
            total_amount=total,
            customer=customer or Customer(),
            discount_code=code if apply_discount(code) else None,
            discount_amount=discount,
        )

    def provider(self, name: Optional[str]) -> PaymentProvider:
        key = (name or self.default_provider).strip().lower()
        provider = self.providers.get(key)
        if provider is None:
            if key in ("stripe", "paypal"):
                raise ConfigurationError(f"Payment provider '{key}' is not available", provider=key)
            raise ValidationError(f"Unsupported payment method '{key}'")
        return provider

    # --- paiement ---
    def start_payment(
        self,
        provider_name: Optional[str],
        order: Order,
        *,
        persisted: bool = False,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> Tuple[Order, PaymentSession]:
        """
        Crée la session du fournisseur puis enregistre la commande 'created' avec l'id de session.
        - persisted=True: le brouillon existe déjà, on y rattache la session.
        - Un échec d'écriture est journalisé: la session reste utilisable (commande orpheline).
        """
        provider = self.provider(provider_name)
        session = provider.create_session(order, success_url=success_url, cancel_url=cancel_url)
        order = order.with_session(session.provider, session.session_id)
        if persisted:
            result = self.orders.attach_session(order.id, session.provider, session.session_id)
            if not result.ok:
                logger.warning("orders.service.start_payment attach failed id=%s: %s, inserting", order.id, result.error)
                result = self.orders.insert(order)
        else:
            result = self.orders.insert(order)
        if not result.ok:
            logger.error(
                "orders.service.start_payment order not persisted provider=%s session=%s error=%s",
                session.provider, session.session_id, result.error,
            )
        else:
            logger.info("orders.service.start_payment order=%s provider=%s session=%s", order.id, session.provider, session.session_id)
        return order, session

    def create_session(
        self,
        provider_name: str,
        items: Any,
        *,
        customer: Optional[Customer] = None,
        discount_code: Optional[str] = None,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> Tuple[Order, PaymentSession]:
        order = self.build_order(items, customer, discount_code)
        return self.start_payment(provider_name, order, success_url=success_url, cancel_url=cancel_url)

    # --- webhooks ---
    def handle_stripe_event(self, event: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Traite un événement Stripe déjà vérifié.
        - checkout.session.completed: garde d'idempotence (event.id, sinon l'id de session),
          transition created -> paid, notification 'order' à COMPANY_EMAIL puis
          'confirmation' au client (best-effort, sous la même garde: jamais renvoyée sur un rejeu).
        - autres types: ignorés.
        Retour: {"status": "paid" | "duplicate" | "already_paid" | "unknown_order" | "ignored", ...}
        """
        event_type = event.get("type")
        if event_type != CHECKOUT_COMPLETED:
            logger.info("orders.service.handle_stripe_event ignored type=%s", event_type)
            return {"status": "ignored"}

        session = (event.get("data") or {}).get("object") or {}
        session_id = session.get("id")
        if not session_id:
            raise ValidationError("Webhook Error: missing checkout session id")

        key = event.get("id") or f"session:{session_id}"
        if not self.processed_events.claim(key):
            logger.info("orders.service.handle_stripe_event duplicate key=%s", key)
            return {"status": "duplicate"}

        try:
            order = self.orders.mark_paid(session_id, paid_at=utcnow_iso())
        except Exception:
            self.processed_events.release(key)
            raise

        if order is None:
            existing = self.orders.get_by_session(session_id)
            if existing is None:
                logger.warning("orders.service.handle_stripe_event no order for session=%s", session_id)
                return {"status": "unknown_order"}
            return {"status": "already_paid", "order_id": existing.id}

        result = self.notify_order(order, session)
        confirmation = self.notify_customer(order, session)
        return {
            "status": "paid",
            "order_id": order.id,
            "notified": result.success and not result.skipped,
            "confirmed": confirmation.success and not confirmation.skipped,
        }

    def notify_order(self, order: Order, session: Optional[Mapping[str, Any]] = None) -> NotifyResult:
        session = session or {}
        details = session.get("customer_details") or {}
        address = _session_address(session) or ", ".join(
            p for p in (order.customer.address, order.customer.city) if p
        )
        payload = {
            "order_id": order.id,
            "customer_name": order.customer.name or details.get("name") or "",
            "customer_email": order.customer.email or details.get("email") or "",
            "items": [{"name": line.title, "quantity": line.qty, "price": float(line.price)} for line in order.items],
            "discount_code": order.discount_code or "",
            "discount_amount": float(order.discount_amount),
            "total": float(order.total_amount),
            "shipping_address": address,
            "payment_method": order.provider or "",
        }
        result = self.notifier.notify("order", payload)
        if not result.success:
            logger.error("orders.service.notify_order failed order=%s error=%s", order.id, result.error)
        return result

    def notify_customer(self, order: Order, session: Optional[Mapping[str, Any]] = None) -> NotifyResult:
        """E-mail de confirmation à l'acheteur (e-mail de la session Stripe, sinon celui du formulaire)."""
        session = session or {}
        details = session.get("customer_details") or {}
        email = details.get("email") or order.customer.email
        if not email:
            logger.info("orders.service.notify_customer no customer email order=%s", order.id)
            return NotifyResult(success=True, skipped=True)
        payload = {
            "order_id": order.id,
            "customer_name": order.customer.name or details.get("name") or "",
            "items": [{"name": line.title, "quantity": line.qty, "price": float(line.price)} for line in order.items],
            "discount_code": order.discount_code or "",
            "discount_amount": float(order.discount_amount),
            "total": float(order.total_amount),
            "shipping_address": _session_address(session),
            "order_url": f"{self.site_url}/order-confirmation/{order.id}" if self.site_url else "",
        }
        result = self.notifier.notify("confirmation", payload, to=email)
        if not result.success:
            logger.error("orders.service.notify_customer failed order=%s error=%s", order.id, result.error)
        return result

    # --- soumission sans paiement ---
    def submit_order(
        self,
        *,
        name: str,
        email: str,
        items: Iterable[Mapping[str, Any]],
        address: str = "",
        city: str = "",
        gift_wrap: bool = False,
        pay: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Archive une commande (Firestore ou dépôt) et prévient COMPANY_EMAIL.
        Les titres et prix du catalogue priment sur ceux envoyés par le client.
        Retour: {"ok": True, "id": <id document ou None>}
        """
        lines: List[Dict[str, Any]] = []
        for it in items:
            product = get_product_by_id(it.get("id"))
            qty = _positive_int(it.get("qty", it.get("quantity", 1))) or 1
            title = product.title if product else str(it.get("title") or f"Item {it.get('id')}")
            price = product.price if product else Decimal(str(it.get("price") or 0))
            lines.append({"id": it.get("id"), "title": title, "price": float(price), "qty": qty})
        total = sum((Decimal(str(line["price"])) * line["qty"] for line in lines), Decimal("0"))

        record = {
            "name": name,
            "email": email,
            "items": lines,
            "address": address,
            "city": city,
            "giftWrap": bool(gift_wrap),
            "pay": pay or "",
            "total": float(total),
            "created_at": utcnow_iso(),
        }
        result = self.submissions.add(record)
        if not result.ok:
            logger.warning("orders.service.submit_order persist failed email=%s error=%s", email, result.error)

        notify = self.notifier.notify("order", {
            "order_id": result.value or "",
            "customer_name": name,
            "customer_email": email,
            "items": [{"name": line["title"], "quantity": line["qty"], "price": line["price"]} for line in lines],
            "total": float(total),
            "gift_wrap": bool(gift_wrap),
            "shipping_address": ", ".join(p for p in (address, city) if p),
            "payment_method": pay or "",
        })
        if not notify.success:
            logger.error("orders.service.submit_order notification failed email=%s error=%s", email, notify.error)
        return {"ok": True, "id": result.value}
