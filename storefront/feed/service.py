"""
Cas d'usage 'feed': commentaires publics et inscriptions newsletter.
Une écriture échouée lève ProviderError (500); la notification est best-effort.
"""
import logging
from typing import Any, Dict, List

from storefront.errors import ProviderError, ValidationError
from storefront.feed.repository import FeedRepository
from storefront.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_TEXT_LENGTH = 2000


class FeedService:
    def __init__(self, repository: FeedRepository, notifier: NotificationDispatcher):
        self.repository = repository
        self.notifier = notifier

    def list_comments(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self.repository.list_comments(limit)

    def add_comment(self, name: str, text: str, email: str = "") -> Dict[str, Any]:
        name = (name or "").strip()
        text = (text or "").strip()
        if not name or not text:
            raise ValidationError("name and text are required")
        if len(name) > MAX_NAME_LENGTH or len(text) > MAX_TEXT_LENGTH:
            raise ValidationError("comment too long")
        result = self.repository.add_comment(name, text)
        if not result.ok:
            raise ProviderError(f"Could not save comment: {result.error}", provider="supabase")
        notify = self.notifier.notify("comment", {"name": name, "email": email, "text": text})
        if not notify.success:
            logger.warning("feed.service.add_comment notification failed: %s", notify.error)
        return result.value or {}

    def subscribe(self, email: str, source: str = "website") -> Dict[str, Any]:
        result = self.repository.add_subscriber(email)
        if not result.ok:
            raise ProviderError(f"Could not subscribe: {result.error}", provider="supabase")
        row = result.value or {}
        notify = self.notifier.notify("newsletter", {
            "email": email,
            "source": source,
            "date": row.get("created_at", ""),
        })
        if not notify.success:
            logger.warning("feed.service.subscribe notification failed: %s", notify.error)
        return row
