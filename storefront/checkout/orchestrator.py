"""
Orchestrateur de checkout (formulaire -> brouillon -> session de paiement -> redirection).
États: idle -> pending_persist -> pending_session -> redirected (retour à idle en cas d'échec).
Pas de nouvelle tentative automatique.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from storefront.cart.store import CartStore
from storefront.errors import StorefrontError, ValidationError
from storefront.orders.models import Customer
from storefront.orders.service import OrderIntakeService

logger = logging.getLogger(__name__)


class CheckoutState(str, Enum):
    IDLE = "idle"
    PENDING_PERSIST = "pending_persist"
    PENDING_SESSION = "pending_session"
    REDIRECTED = "redirected"


@dataclass(frozen=True)
class CheckoutForm:
    fullname: str
    email: str
    address: str = ""
    city: str = ""
    pay: Optional[str] = None
    discount_code: Optional[str] = None

    def customer(self) -> Customer:
        return Customer(name=self.fullname.strip(), email=self.email.strip(), address=self.address.strip(), city=self.city.strip())


@dataclass(frozen=True)
class CheckoutOutcome:
    state: CheckoutState
    redirect_url: Optional[str] = None
    order_id: Optional[str] = None
    draft_persisted: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == CheckoutState.REDIRECTED


class CheckoutOrchestrator:
    def __init__(self, intake: OrderIntakeService, *, expose_errors: bool = True):
        self._intake = intake
        self._expose_errors = expose_errors
        self.state = CheckoutState.IDLE

    def _fail(self, exc: StorefrontError, order_id: Optional[str] = None, persisted: bool = False) -> CheckoutOutcome:
        self.state = CheckoutState.IDLE
        message = exc.message if (self._expose_errors or exc.expose) else exc.public_message
        return CheckoutOutcome(
            state=CheckoutState.IDLE,
            order_id=order_id,
            draft_persisted=persisted,
            error=f"Payment failed to start: {message}",
        )

    def run(
        self,
        cart: CartStore,
        form: CheckoutForm,
        *,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> CheckoutOutcome:
        """
        Exécute un checkout complet.
        1) panier + formulaire -> commande (prix catalogue, remise)
        2) brouillon persisté en best-effort (PersistResult journalisé, on continue)
        3) session chez le fournisseur choisi (stripe/paypal) et URL de redirection
        Retour: CheckoutOutcome(state=redirected, redirect_url=...) ou state=idle avec error.
        """
        self.state = CheckoutState.IDLE
        # uniquement les lignes connues du catalogue, comme le récapitulatif du panier
        items = [{"id": line["id"], "qty": line["qty"]} for line in cart.lines()]
        if not items:
            return self._fail(ValidationError("Your cart is empty."))
        if not form.fullname.strip() or not form.email.strip():
            return self._fail(ValidationError("Name and email are required"))

        try:
            order = self._intake.build_order(items, form.customer(), form.discount_code)
        except StorefrontError as e:
            return self._fail(e)

        self.state = CheckoutState.PENDING_PERSIST
        draft = self._intake.orders.insert(order)
        if not draft.ok:
            logger.warning("checkout.orchestrator draft not persisted order=%s error=%s", order.id, draft.error)

        self.state = CheckoutState.PENDING_SESSION
        try:
            order, session = self._intake.start_payment(
                form.pay,
                order,
                persisted=draft.ok,
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except StorefrontError as e:
            logger.error("checkout.orchestrator session failed order=%s provider=%s error=%s", order.id, form.pay, e)
            return self._fail(e, order_id=order.id, persisted=draft.ok)

        self.state = CheckoutState.REDIRECTED
        return CheckoutOutcome(
            state=CheckoutState.REDIRECTED,
            redirect_url=session.redirect_url,
            order_id=order.id,
            draft_persisted=draft.ok,
        )
