import urllib.parse
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from storefront.cart.views import cart_store, cart_summary, session_discount_code
from storefront.checkout.orchestrator import CheckoutForm, CheckoutOrchestrator
from storefront.services import Services, get_services
from storefront.utils.rate_limit import optional_rate_limit

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.get("/summary")
def checkout_summary(request: Request):
    """Récapitulatif de commande (lignes, sous-total, remise, total) pour la page de checkout."""
    return cart_summary(cart_store(request), session_discount_code(request))


@router.post("", dependencies=[Depends(optional_rate_limit(10, 60))])
def checkout(
    request: Request,
    fullname: str = Form(""),
    email: str = Form(""),
    address: str = Form(""),
    city: str = Form(""),
    pay: Optional[str] = Form(None),
    discount_code: Optional[str] = Form(None),
    services: Services = Depends(get_services),
):
    """
    Soumission du formulaire de checkout.
    - Succès: 303 vers la page hébergée (Stripe) ou le lien d'approbation (PayPal).
    - Échec: 303 vers /cart?error=... (le panier est conservé).
    """
    form = CheckoutForm(
        fullname=fullname,
        email=email,
        address=address,
        city=city,
        pay=pay or services.settings.payment_provider,
        discount_code=discount_code or session_discount_code(request),
    )
    orchestrator = CheckoutOrchestrator(services.intake, expose_errors=not services.settings.is_production)
    outcome = orchestrator.run(cart_store(request), form)
    if not outcome.ok:
        msg = urllib.parse.quote_plus(outcome.error or "Payment failed to start")
        return RedirectResponse(url=f"/cart?error={msg}", status_code=HTTP_303_SEE_OTHER)
    return RedirectResponse(url=outcome.redirect_url, status_code=HTTP_303_SEE_OTHER)
