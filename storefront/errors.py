"""
Taxonomie des erreurs métier de la boutique.
- ValidationError: corps de requête invalide (400)
- ConfigurationError: identifiant/service requis absent (500)
- ProviderError: échec d'un service aval (Stripe, PayPal, Supabase, Firestore) (500)
- NetworkError: appel sortant impossible (timeout, DNS, connexion), sous-type de ProviderError
Le mapping HTTP est fait par app_setup.exceptions.register_exception_handlers.
"""
from typing import Optional


class StorefrontError(Exception):
    status_code = 500
    # Message renvoyé au client en production à la place du message réel
    public_message = "Internal server error"
    # True si le message réel peut toujours être montré (erreur côté client)
    expose = False

    def __init__(self, message: str, *, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider


class ValidationError(StorefrontError):
    status_code = 400
    public_message = "Invalid request"
    expose = True


class ConfigurationError(StorefrontError):
    status_code = 500
    public_message = "Service not configured"


class ProviderError(StorefrontError):
    status_code = 500
    public_message = "Payment or storage provider error"


class NetworkError(ProviderError):
    public_message = "Upstream service unreachable"
