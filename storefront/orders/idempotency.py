"""
Garde d'idempotence des webhooks: un événement (event.id) n'est traité qu'une fois.
- claim(key) est un check-and-set atomique: True pour le premier appel, False pour les rejeux.
- release(key) libère la clé si le traitement a échoué, pour que le réessai du fournisseur passe.
"""
import logging
import threading
from typing import Protocol, Set

from storefront.errors import ProviderError
from storefront.orders.models import utcnow_iso

logger = logging.getLogger(__name__)

PROCESSED_EVENTS_TABLE = "processed_events"
# Code Postgres: violation de contrainte d'unicité
UNIQUE_VIOLATION = "23505"


class ProcessedEventStore(Protocol):
    def claim(self, key: str) -> bool: ...

    def release(self, key: str) -> None: ...


class InMemoryProcessedEventStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._keys: Set[str] = set()

    def claim(self, key: str) -> bool:
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._keys.discard(key)

    def __contains__(self, key: str) -> bool:
        return key in self._keys


class SupabaseProcessedEventStore:
    """
    Table 'processed_events' (event_key text primary key, processed_at timestamptz).
    L'unicité est garantie par la base: un INSERT en doublon échoue avec 23505.
    """

    def __init__(self, client):
        self._client = client

    def claim(self, key: str) -> bool:
        try:
            self._client.table(PROCESSED_EVENTS_TABLE).insert(
                {"event_key": key, "processed_at": utcnow_iso()}
            ).execute()
            return True
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION or UNIQUE_VIOLATION in str(e):
                return False
            logger.exception("orders.idempotency.claim failed key=%s", key)
            raise ProviderError(f"Could not record webhook event: {e}", provider="supabase") from e

    def release(self, key: str) -> None:
        try:
            self._client.table(PROCESSED_EVENTS_TABLE).delete().eq("event_key", key).execute()
        except Exception:
            logger.exception("orders.idempotency.release failed key=%s", key)
