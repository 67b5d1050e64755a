"""
Accès aux données pour la feature 'feed' (tables Supabase 'comments' et 'newsletter').
Append-only; les écritures renvoient un PersistResult.
"""
import logging
import threading
from typing import Any, Dict, List, Protocol

from storefront.orders.models import utcnow_iso
from storefront.utils.result import PersistResult

logger = logging.getLogger(__name__)

COMMENTS_TABLE = "comments"
NEWSLETTER_TABLE = "newsletter"


class FeedRepository(Protocol):
    def list_comments(self, limit: int = 50) -> List[Dict[str, Any]]: ...

    def add_comment(self, name: str, text: str) -> PersistResult[Dict[str, Any]]: ...

    def add_subscriber(self, email: str) -> PersistResult[Dict[str, Any]]: ...


# module storefront.feed.repository
class SupabaseFeedRepository:
    def __init__(self, client):
        self._client = client

    def list_comments(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Derniers commentaires (plus récents d'abord).
        - Retourne [] en cas d'erreur (journalisée).
        """
        try:
            res = (
                self._client.table(COMMENTS_TABLE)
                .select("name,text,created_at")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return res.data or []
        except Exception:
            logger.exception("feed.repository.list_comments failed")
            return []

    def add_comment(self, name: str, text: str) -> PersistResult[Dict[str, Any]]:
        row = {"name": name, "text": text, "created_at": utcnow_iso()}
        try:
            self._client.table(COMMENTS_TABLE).insert(row).execute()
            return PersistResult.success(row)
        except Exception as e:
            logger.exception("feed.repository.add_comment failed name=%s", name)
            return PersistResult.failure(str(e))

    def add_subscriber(self, email: str) -> PersistResult[Dict[str, Any]]:
        row = {"email": email, "created_at": utcnow_iso()}
        try:
            self._client.table(NEWSLETTER_TABLE).insert(row).execute()
            return PersistResult.success(row)
        except Exception as e:
            logger.exception("feed.repository.add_subscriber failed email=%s", email)
            return PersistResult.failure(str(e))


class InMemoryFeedRepository:
    def __init__(self):
        self._lock = threading.Lock()
        self.comments: List[Dict[str, Any]] = []
        self.subscribers: List[Dict[str, Any]] = []

    def list_comments(self, limit: int = 50) -> List[Dict[str, Any]]:
        with self._lock:
            return list(reversed(self.comments))[:limit]

    def add_comment(self, name: str, text: str) -> PersistResult[Dict[str, Any]]:
        row = {"name": name, "text": text, "created_at": utcnow_iso()}
        with self._lock:
            self.comments.append(row)
        return PersistResult.success(row)

    def add_subscriber(self, email: str) -> PersistResult[Dict[str, Any]]:
        row = {"email": email, "created_at": utcnow_iso()}
        with self._lock:
            self.subscribers.append(row)
        return PersistResult.success(row)
