"""
Accès aux données pour la feature 'orders' (table Supabase 'orders', ou mémoire en dev/tests).
- insert / attach_session / insert_submission: écritures best-effort -> PersistResult
- mark_paid: transition created -> paid conditionnelle (au plus une fois par session)
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from storefront.errors import ProviderError
from storefront.orders.models import Order, OrderStatus, utcnow_iso
from storefront.utils.result import PersistResult

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"


class OrderRepository(Protocol):
    def insert(self, order: Order) -> PersistResult[Order]: ...

    def attach_session(self, order_id: str, provider: str, session_id: str) -> PersistResult[Order]: ...

    def insert_submission(self, record: Dict[str, Any]) -> PersistResult[str]: ...

    def get(self, order_id: str) -> Optional[Order]: ...

    def get_by_session(self, session_id: str) -> Optional[Order]: ...

    def mark_paid(self, session_id: str, paid_at: Optional[str] = None) -> Optional[Order]: ...

    def list_recent(self, limit: int = 50) -> List[Order]: ...


# module storefront.orders.repository
class SupabaseOrderRepository:
    def __init__(self, client):
        self._client = client

    def _table(self):
        return self._client.table(ORDERS_TABLE)

    def insert(self, order: Order) -> PersistResult[Order]:
        try:
            self._table().insert(order.to_row()).execute()
            return PersistResult.success(order)
        except Exception as e:
            logger.exception("orders.repository.insert failed id=%s", order.id)
            return PersistResult.failure(str(e))

    def attach_session(self, order_id: str, provider: str, session_id: str) -> PersistResult[Order]:
        """Rattache l'id de session du fournisseur au brouillon déjà persisté."""
        patch: Dict[str, Any] = {"provider": provider, "provider_session_id": session_id}
        if provider == "stripe":
            patch["stripe_session_id"] = session_id
        elif provider == "paypal":
            patch["paypal_order_id"] = session_id
        try:
            res = self._table().update(patch).eq("id", order_id).execute()
            rows = res.data or []
            if not rows:
                return PersistResult.failure(f"order {order_id} not found")
            return PersistResult.success(Order.from_row(rows[0]))
        except Exception as e:
            logger.exception("orders.repository.attach_session failed id=%s session=%s", order_id, session_id)
            return PersistResult.failure(str(e))

    def insert_submission(self, record: Dict[str, Any]) -> PersistResult[str]:
        try:
            res = self._table().insert(record).execute()
            rows = res.data or []
            doc_id = str(rows[0].get("id")) if rows and isinstance(rows[0], dict) else None
            return PersistResult.success(doc_id)
        except Exception as e:
            logger.exception("orders.repository.insert_submission failed email=%s", record.get("email"))
            return PersistResult.failure(str(e))

    def get(self, order_id: str) -> Optional[Order]:
        try:
            res = self._table().select("*").eq("id", order_id).limit(1).execute()
            rows = res.data or []
            return Order.from_row(rows[0]) if rows else None
        except Exception:
            logger.exception("orders.repository.get failed id=%s", order_id)
            return None

    def get_by_session(self, session_id: str) -> Optional[Order]:
        try:
            res = self._table().select("*").eq("provider_session_id", session_id).limit(1).execute()
            rows = res.data or []
            return Order.from_row(rows[0]) if rows else None
        except Exception:
            logger.exception("orders.repository.get_by_session failed session=%s", session_id)
            return None

    def mark_paid(self, session_id: str, paid_at: Optional[str] = None) -> Optional[Order]:
        """
        UPDATE ... SET status='paid' WHERE provider_session_id=? AND status='created'.
        Retourne la commande si la transition a eu lieu, None si déjà payée ou inconnue.
        Lève ProviderError si la base est injoignable (le webhook répond 500 et Stripe réessaie).
        """
        try:
            res = (
                self._table()
                .update({"status": OrderStatus.PAID.value, "paid_at": paid_at or utcnow_iso()})
                .eq("provider_session_id", session_id)
                .eq("status", OrderStatus.CREATED.value)
                .execute()
            )
        except Exception as e:
            logger.exception("orders.repository.mark_paid failed session=%s", session_id)
            raise ProviderError(f"Could not update order: {e}", provider="supabase") from e
        rows = res.data or []
        return Order.from_row(rows[0]) if rows else None

    def list_recent(self, limit: int = 50) -> List[Order]:
        try:
            res = self._table().select("*").order("created_at", desc=True).limit(limit).execute()
            return [Order.from_row(r) for r in (res.data or [])]
        except Exception:
            logger.exception("orders.repository.list_recent failed")
            return []


class InMemoryOrderRepository:
    """Dépôt en mémoire (dev sans Supabase, tests). Les mutations sont sérialisées par un verrou."""

    def __init__(self):
        self._lock = threading.Lock()
        self._orders: Dict[str, Order] = {}
        self.submissions: List[Dict[str, Any]] = []

    def insert(self, order: Order) -> PersistResult[Order]:
        with self._lock:
            self._orders[order.id] = order
        return PersistResult.success(order)

    def attach_session(self, order_id: str, provider: str, session_id: str) -> PersistResult[Order]:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return PersistResult.failure(f"order {order_id} not found")
            order = order.with_session(provider, session_id)
            self._orders[order_id] = order
        return PersistResult.success(order)

    def insert_submission(self, record: Dict[str, Any]) -> PersistResult[str]:
        with self._lock:
            doc_id = f"sub_{len(self.submissions) + 1}"
            self.submissions.append({"id": doc_id, **record})
        return PersistResult.success(doc_id)

    def get(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def get_by_session(self, session_id: str) -> Optional[Order]:
        with self._lock:
            for order in self._orders.values():
                if order.provider_session_id == session_id:
                    return order
        return None

    def mark_paid(self, session_id: str, paid_at: Optional[str] = None) -> Optional[Order]:
        with self._lock:
            for order_id, order in self._orders.items():
                if order.provider_session_id == session_id and order.status == OrderStatus.CREATED:
                    paid = order.mark_paid(paid_at)
                    self._orders[order_id] = paid
                    return paid
        return None

    def list_recent(self, limit: int = 50) -> List[Order]:
        with self._lock:
            orders = sorted(self._orders.values(), key=lambda o: o.created_at, reverse=True)
        return orders[:limit]
