"""
Archivage des commandes soumises via /submit-order (formulaire sans paiement en ligne).
- Firestore (collection 'orders') si un compte de service Firebase est configuré
- sinon la table 'orders' du dépôt de commandes
"""
import logging
from typing import Any, Dict, Protocol

from storefront.orders.repository import OrderRepository
from storefront.utils.result import PersistResult

logger = logging.getLogger(__name__)

FIRESTORE_COLLECTION = "orders"


class SubmissionStore(Protocol):
    def add(self, record: Dict[str, Any]) -> PersistResult[str]: ...


class FirestoreSubmissionStore:
    def __init__(self, client):
        self._client = client

    def add(self, record: Dict[str, Any]) -> PersistResult[str]:
        try:
            _, doc_ref = self._client.collection(FIRESTORE_COLLECTION).add(record)
            return PersistResult.success(doc_ref.id)
        except Exception as e:
            logger.exception("orders.submissions.firestore add failed email=%s", record.get("email"))
            return PersistResult.failure(str(e))


class RepositorySubmissionStore:
    def __init__(self, orders: OrderRepository):
        self._orders = orders

    def add(self, record: Dict[str, Any]) -> PersistResult[str]:
        return self._orders.insert_submission(record)
