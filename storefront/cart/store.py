# module storefront.cart.store
"""
Panier persistant côté client (session cookie signée).
- Stocke une liste JSON [{"id": <int>, "qty": <int>}] sous la clé "yaya_cart_v1".
- Un contenu illisible (JSON corrompu, mauvais type) est lu comme un panier vide.
- Les ids inconnus du catalogue sont ignorés (avec un warning) dans les totaux.
"""
import json
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, MutableMapping, Optional

from storefront.catalog.products import Product, get_product_by_id

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "yaya_cart_v1"


class CartStore:
    def __init__(
        self,
        storage: MutableMapping[str, Any],
        lookup: Callable[[Any], Optional[Product]] = get_product_by_id,
        key: str = CART_STORAGE_KEY,
    ):
        self._storage = storage
        self._lookup = lookup
        self._key = key

    # --- lecture / écriture brute ---
    def get_all(self) -> List[Dict[str, int]]:
        """Retourne les lignes brutes du panier; [] si absent ou illisible."""
        raw = self._storage.get(self._key)
        if not raw:
            return []
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
        except (TypeError, ValueError):
            logger.warning("cart.store.get_all unreadable payload, resetting")
            return []
        if not isinstance(data, list):
            return []
        items: List[Dict[str, int]] = []
        for it in data:
            if not isinstance(it, dict):
                continue
            try:
                pid = int(it.get("id"))
                qty = int(it.get("qty"))
            except (TypeError, ValueError):
                continue
            if qty > 0:
                items.append({"id": pid, "qty": qty})
        return items

    def _save(self, items: List[Dict[str, int]]) -> None:
        self._storage[self._key] = json.dumps(items)

    # --- opérations ---
    def add(self, product_id: int, qty: int = 1) -> List[Dict[str, int]]:
        """
        Ajoute qty exemplaires d'un produit.
        - Si l'id est déjà présent, incrémente la quantité (une seule ligne par id).
        - qty doit être >= 1.
        """
        if qty < 1:
            raise ValueError("qty must be >= 1")
        items = self.get_all()
        for it in items:
            if it["id"] == product_id:
                it["qty"] += qty
                break
        else:
            items.append({"id": product_id, "qty": qty})
        self._save(items)
        return items

    def set_quantity(self, product_id: int, qty: int) -> List[Dict[str, int]]:
        """Fixe la quantité d'une ligne; qty <= 0 retire la ligne."""
        items = [it for it in self.get_all() if it["id"] != product_id or qty > 0]
        for it in items:
            if it["id"] == product_id:
                it["qty"] = qty
                break
        else:
            if qty > 0:
                items.append({"id": product_id, "qty": qty})
        self._save(items)
        return items

    def remove(self, product_id: int) -> List[Dict[str, int]]:
        items = [it for it in self.get_all() if it["id"] != product_id]
        self._save(items)
        return items

    def clear(self) -> None:
        self._storage.pop(self._key, None)

    def count(self) -> int:
        """Nombre d'articles (somme des quantités)."""
        return sum(it["qty"] for it in self.get_all())

    def lines(self) -> List[Dict[str, Any]]:
        """Lignes enrichies depuis le catalogue (titre, prix unitaire, sous-total)."""
        out: List[Dict[str, Any]] = []
        for it in self.get_all():
            product = self._lookup(it["id"])
            if product is None:
                logger.warning("cart.store.lines unknown product id=%s skipped", it["id"])
                continue
            out.append({
                "id": product.id,
                "title": product.title,
                "image": product.image,
                "qty": it["qty"],
                "price": product.price,
                "line_total": product.price * it["qty"],
            })
        return out

    def total(self) -> Decimal:
        """Somme prix x quantité pour les ids connus du catalogue."""
        return sum((line["line_total"] for line in self.lines()), Decimal("0"))
