"""
Endpoints panier et codes promo (état porté par la session cookie).
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from storefront.cart.discounts import apply_discount, discounted_total, normalize_code
from storefront.cart.store import CartStore
from storefront.catalog.products import get_product_by_id
from storefront.errors import ValidationError

DISCOUNT_SESSION_KEY = "yaya_discount_code"

router = APIRouter(tags=["Cart"])


class AddItemRequest(BaseModel):
    productId: int
    qty: int = Field(default=1, ge=1)


class SetQuantityRequest(BaseModel):
    qty: int = Field(ge=0)


class DiscountRequest(BaseModel):
    code: str = ""


def cart_store(request: Request) -> CartStore:
    return CartStore(request.session)


def session_discount_code(request: Request) -> str:
    return request.session.get(DISCOUNT_SESSION_KEY) or ""


def cart_summary(cart: CartStore, code: Optional[str] = None) -> Dict[str, Any]:
    """
    Vue JSON du panier: lignes, nombre d'articles, sous-total, remise et total.
    """
    subtotal = cart.total()
    discount, total = discounted_total(subtotal, code)
    return {
        "items": [
            {
                "id": line["id"],
                "title": line["title"],
                "image": line["image"],
                "qty": line["qty"],
                "price": float(line["price"]),
                "line_total": float(line["line_total"]),
            }
            for line in cart.lines()
        ],
        "count": cart.count(),
        "subtotal": float(subtotal),
        "discount_code": normalize_code(code) if apply_discount(code) else None,
        "discount": float(discount),
        "total": float(total),
    }


@router.get("/cart")
def get_cart(request: Request, error: Optional[str] = None):
    body = cart_summary(cart_store(request), session_discount_code(request))
    if not body["items"]:
        body["message"] = "Your cart is empty."
    if error:
        body["error"] = error
    return body


@router.post("/cart/items")
def add_item(payload: AddItemRequest, request: Request):
    if get_product_by_id(payload.productId) is None:
        raise ValidationError(f"Unknown product id {payload.productId}")
    cart = cart_store(request)
    cart.add(payload.productId, payload.qty)
    return cart_summary(cart, session_discount_code(request))


@router.patch("/cart/items/{product_id}")
def set_item_quantity(product_id: int, payload: SetQuantityRequest, request: Request):
    if get_product_by_id(product_id) is None:
        raise ValidationError(f"Unknown product id {product_id}")
    cart = cart_store(request)
    cart.set_quantity(product_id, payload.qty)
    return cart_summary(cart, session_discount_code(request))


@router.delete("/cart/items/{product_id}")
def remove_item(product_id: int, request: Request):
    cart = cart_store(request)
    cart.remove(product_id)
    return cart_summary(cart, session_discount_code(request))


@router.delete("/cart")
def clear_cart(request: Request):
    cart = cart_store(request)
    cart.clear()
    request.session.pop(DISCOUNT_SESSION_KEY, None)
    return cart_summary(cart)


@router.post("/discounts/apply")
def apply_discount_code(payload: DiscountRequest, request: Request):
    """
    Applique un code promo au panier de la session.
    - Code valide: mémorisé en session, renvoie le pourcentage et les totaux.
    - Code invalide: {"valid": false, "message": "Invalid code"} et le code précédent est retiré.
    """
    percent = apply_discount(payload.code)
    if not percent:
        request.session.pop(DISCOUNT_SESSION_KEY, None)
        body = cart_summary(cart_store(request))
        body.update({"valid": False, "percent": 0.0, "message": "Invalid code"})
        return body
    code = normalize_code(payload.code)
    request.session[DISCOUNT_SESSION_KEY] = code
    body = cart_summary(cart_store(request), code)
    body.update({
        "valid": True,
        "percent": float(percent),
        "message": f"Discount applied: {int(percent * 100)}%",
    })
    return body
