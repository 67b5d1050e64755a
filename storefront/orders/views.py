"""
Endpoints d'intake des commandes:
- POST /create-stripe-session, POST /create-paypal-order
- POST /webhook/stripe
- POST /submit-order
- GET /order-confirmation/{order_id}
- GET /_debug/orders, GET /_debug/sent-emails (404 en production)
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, EmailStr, Field

from storefront.errors import ValidationError
from storefront.orders.models import Customer
from storefront.services import Services, get_services
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.templates import templates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Orders"])
debug_router = APIRouter(prefix="/_debug", tags=["Debug"], include_in_schema=False)


class CustomerIn(BaseModel):
    name: str = ""
    email: Optional[EmailStr] = None
    address: str = ""
    city: str = ""

    def to_customer(self) -> Customer:
        return Customer(name=self.name.strip(), email=str(self.email or ""), address=self.address, city=self.city)


class SessionRequest(BaseModel):
    """
    Corps de /create-stripe-session et /create-paypal-order.
    items reste brut: la validation fine (ids / quantités) est faite par le service.
    """
    items: Any = None
    customer: Optional[CustomerIn] = None
    discountCode: Optional[str] = None
    successUrl: Optional[str] = None
    cancelUrl: Optional[str] = None
    returnUrl: Optional[str] = None


class SubmittedItem(BaseModel):
    id: Any
    title: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    qty: int = Field(default=1, ge=1)


class OrderSubmission(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    items: List[SubmittedItem] = Field(min_length=1)
    address: str = ""
    city: str = ""
    giftWrap: bool = False
    pay: Optional[str] = None


def _session_request(payload: SessionRequest, provider: str, services: Services):
    customer = payload.customer.to_customer() if payload.customer else None
    success_url = payload.returnUrl if provider == "paypal" and payload.returnUrl else payload.successUrl
    return services.intake.create_session(
        provider,
        payload.items,
        customer=customer,
        discount_code=payload.discountCode,
        success_url=success_url,
        cancel_url=payload.cancelUrl,
    )


@router.post("/create-stripe-session", dependencies=[Depends(optional_rate_limit(10, 60))])
def create_stripe_session(payload: SessionRequest, services: Services = Depends(get_services)):
    """
    Crée une session Stripe Checkout à partir d'un panier [{id, qty}].
    Retour: {"url": <page hébergée>, "id": <cs_...>}
    """
    _, session = _session_request(payload, "stripe", services)
    return {"url": session.redirect_url, "id": session.session_id}


@router.post("/create-paypal-order", dependencies=[Depends(optional_rate_limit(10, 60))])
def create_paypal_order(payload: SessionRequest, services: Services = Depends(get_services)):
    """Crée une commande PayPal; renvoie le JSON PayPal (dont links[rel=approve])."""
    _, session = _session_request(payload, "paypal", services)
    return session.raw


@router.post("/webhook/stripe")
async def stripe_webhook(request: Request, services: Services = Depends(get_services)):
    """
    Webhook Stripe.
    - Signature vérifiée si STRIPE_WEBHOOK_SECRET est défini (400 sinon).
    - checkout.session.completed: commande -> paid + notification (une seule fois par événement).
    """
    stripe_provider = services.providers.get("stripe")
    if stripe_provider is None:
        raise ValidationError("Webhook Error: Stripe provider unavailable")
    payload = await request.body()
    event = stripe_provider.parse_event(payload, request.headers.get("stripe-signature"))
    result = await run_in_threadpool(services.intake.handle_stripe_event, event)
    logger.info("orders.views.stripe_webhook type=%s result=%s", event.get("type"), result.get("status"))
    return {"received": True, **result}


@router.post("/submit-order", dependencies=[Depends(optional_rate_limit(60, 60))])
def submit_order(payload: OrderSubmission, services: Services = Depends(get_services)):
    return services.intake.submit_order(
        name=payload.name.strip(),
        email=str(payload.email),
        items=[it.model_dump() for it in payload.items],
        address=payload.address,
        city=payload.city,
        gift_wrap=payload.giftWrap,
        pay=payload.pay,
    )


@router.get("/order-confirmation/{order_id}", response_class=HTMLResponse)
def order_confirmation(order_id: str, request: Request, services: Services = Depends(get_services)):
    order = services.orders.get(order_id)
    return templates.TemplateResponse(
        request,
        "pages/order_confirmation.html",
        {"order_id": order_id, "order": order.to_public() if order else None},
    )


def require_debug(services: Services = Depends(get_services)) -> Services:
    if services.settings.is_production:
        raise HTTPException(status_code=404, detail="Not Found")
    return services


@debug_router.get("/orders")
def debug_orders(services: Services = Depends(require_debug)) -> List[Dict[str, Any]]:
    return [order.to_public() for order in services.orders.list_recent(50)]


@debug_router.get("/sent-emails")
def debug_sent_emails(services: Services = Depends(require_debug)) -> List[Dict[str, Any]]:
    return services.notifier.sent()
