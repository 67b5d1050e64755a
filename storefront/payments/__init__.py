"""
Module 'payments' (feature-first): point d'entrée public.
Réunit le contrat PaymentProvider et les adaptateurs Stripe / PayPal.
"""
from typing import Dict

from storefront.config import Settings

from .base import PaymentProvider, PaymentSession, absolute_url, to_cents
from .paypal_provider import PayPalProvider, approve_link
from .stripe_provider import StripeProvider


def build_providers(settings: Settings) -> Dict[str, PaymentProvider]:
    """Un adaptateur par fournisseur; les identifiants manquants lèvent ConfigurationError à l'usage."""
    return {
        "stripe": StripeProvider(settings),
        "paypal": PayPalProvider(settings),
    }


__all__ = [
    # contrat
    "PaymentProvider",
    "PaymentSession",
    "absolute_url",
    "to_cents",
    # adaptateurs
    "StripeProvider",
    "PayPalProvider",
    "approve_link",
    "build_providers",
]
