"""
Codes promo (table fixe). Pas d'état, pas d'I/O.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

# module storefront.cart.discounts
DISCOUNTS: Dict[str, Decimal] = {
    "SUN10": Decimal("0.10"),
    "FAIRY5": Decimal("0.05"),
}

CENT = Decimal("0.01")


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def apply_discount(code: Optional[str]) -> Decimal:
    """
    Retourne le pourcentage de remise d'un code (0.10 pour 10%).
    - Insensible à la casse et aux espaces autour (" sun10 " -> 0.10).
    - Code inconnu ou vide -> Decimal("0").
    """
    return DISCOUNTS.get(normalize_code(code), Decimal("0"))


def discount_amount(subtotal: Decimal, percent: Decimal) -> Decimal:
    """Montant de la remise, arrondi au centime (demi supérieur)."""
    return (Decimal(subtotal) * Decimal(percent)).quantize(CENT, rounding=ROUND_HALF_UP)


def discounted_total(subtotal: Decimal, code: Optional[str]) -> Tuple[Decimal, Decimal]:
    """(remise, total après remise): 52.98 avec SUN10 -> (5.30, 47.68)."""
    subtotal = Decimal(subtotal).quantize(CENT, rounding=ROUND_HALF_UP)
    discount = discount_amount(subtotal, apply_discount(code))
    return discount, subtotal - discount
