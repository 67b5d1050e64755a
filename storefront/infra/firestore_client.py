"""
Client Firestore (firebase-admin) pour l'archivage des soumissions de commande.
- FIREBASE_SERVICE_ACCOUNT: JSON du compte de service (inline)
- FIREBASE_SERVICE_ACCOUNT_PATH: chemin vers le fichier JSON
"""
import json
import logging
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from storefront.config import Settings

logger = logging.getLogger(__name__)

APP_NAME = "storefront"


def create_firestore_client(settings: Settings) -> Optional[Any]:
    """Retourne un client Firestore, ou None si non configuré / initialisation impossible."""
    if not settings.firebase_configured:
        return None
    try:
        if settings.firebase_service_account:
            cred = credentials.Certificate(json.loads(settings.firebase_service_account))
        else:
            cred = credentials.Certificate(settings.firebase_service_account_path)
        try:
            app = firebase_admin.get_app(APP_NAME)
        except ValueError:
            app = firebase_admin.initialize_app(cred, name=APP_NAME)
        return firestore.client(app=app)
    except (ValueError, OSError):
        logger.exception("infra.firestore_client init failed")
        return None
