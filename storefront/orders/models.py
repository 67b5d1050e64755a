"""
Modèle de commande (domaine) et conversions ligne Supabase <-> objet.
"""
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4


class OrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class OrderLine:
    id: int
    title: str
    price: Decimal
    qty: int
    image: str = ""

    @property
    def line_total(self) -> Decimal:
        return self.price * self.qty

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "price": float(self.price),
            "qty": self.qty,
            "image": self.image,
        }


@dataclass(frozen=True)
class Customer:
    name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class Order:
    items: List[OrderLine]
    subtotal: Decimal
    total_amount: Decimal
    customer: Customer = field(default_factory=Customer)
    discount_code: Optional[str] = None
    discount_amount: Decimal = Decimal("0.00")
    provider: Optional[str] = None
    provider_session_id: Optional[str] = None
    status: OrderStatus = OrderStatus.CREATED
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: str = field(default_factory=utcnow_iso)
    paid_at: Optional[str] = None

    def with_session(self, provider: str, session_id: str) -> "Order":
        return replace(self, provider=provider, provider_session_id=session_id)

    def mark_paid(self, paid_at: Optional[str] = None) -> "Order":
        return replace(self, status=OrderStatus.PAID, paid_at=paid_at or utcnow_iso())

    def to_row(self) -> Dict[str, Any]:
        """
        Ligne de la table 'orders'.
        - Colonnes historiques conservées: stripe_session_id / paypal_order_id, customer_email, customer_name.
        - metadata: {items, customer} en JSON.
        """
        row: Dict[str, Any] = {
            "id": self.id,
            "provider": self.provider,
            "provider_session_id": self.provider_session_id,
            "customer_email": self.customer.email or None,
            "customer_name": self.customer.name or None,
            "total_amount": float(self.total_amount),
            "discount_code": self.discount_code,
            "discount_amount": float(self.discount_amount),
            "metadata": {
                "items": [line.to_dict() for line in self.items],
                "customer": self.customer.to_dict(),
                "subtotal": float(self.subtotal),
            },
            "status": self.status.value,
            "created_at": self.created_at,
            "paid_at": self.paid_at,
        }
        if self.provider == "stripe":
            row["stripe_session_id"] = self.provider_session_id
        elif self.provider == "paypal":
            row["paypal_order_id"] = self.provider_session_id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Order":
        meta = row.get("metadata") or {}
        items = [
            OrderLine(
                id=int(it.get("id") or 0),
                title=str(it.get("title") or ""),
                price=Decimal(str(it.get("price") or 0)),
                qty=int(it.get("qty") or it.get("quantity") or 1),
                image=str(it.get("image") or ""),
            )
            for it in (meta.get("items") or [])
            if isinstance(it, dict)
        ]
        cust = meta.get("customer") or {}
        total = Decimal(str(row.get("total_amount") or 0))
        return cls(
            id=str(row.get("id") or uuid4()),
            items=items,
            subtotal=Decimal(str(meta.get("subtotal") or total)),
            total_amount=total,
            customer=Customer(
                name=row.get("customer_name") or cust.get("name") or "",
                email=row.get("customer_email") or cust.get("email") or "",
                address=cust.get("address") or "",
                city=cust.get("city") or "",
            ),
            discount_code=row.get("discount_code"),
            discount_amount=Decimal(str(row.get("discount_amount") or 0)),
            provider=row.get("provider"),
            provider_session_id=(
                row.get("provider_session_id") or row.get("stripe_session_id") or row.get("paypal_order_id")
            ),
            status=OrderStatus(row.get("status") or OrderStatus.CREATED.value),
            created_at=row.get("created_at") or utcnow_iso(),
            paid_at=row.get("paid_at"),
        )

    def to_public(self) -> Dict[str, Any]:
        """Représentation JSON (debug, page de confirmation)."""
        row = self.to_row()
        row["items"] = row["metadata"]["items"]
        row["customer"] = row["metadata"]["customer"]
        row["subtotal"] = float(self.subtotal)
        return row
