"""
Contrat commun des fournisseurs de paiement (Stripe Checkout, PayPal Orders v2).
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from storefront.orders.models import Order

# module storefront.payments.base


@dataclass(frozen=True)
class PaymentSession:
    provider: str
    session_id: str
    redirect_url: str
    raw: Dict[str, Any] = field(default_factory=dict)


class PaymentProvider(Protocol):
    name: str

    def create_session(
        self,
        order: Order,
        *,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> PaymentSession: ...


def to_cents(amount) -> int:
    """Montant décimal -> centimes entiers (19.99 -> 1999)."""
    return int(round(float(amount) * 100))


def absolute_url(site_url: str, path: str) -> str:
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{site_url.rstrip('/')}/{path.lstrip('/')}"
