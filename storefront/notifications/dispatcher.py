"""
Dispatcher de notifications (newsletter, comment, order, confirmation).
- newsletter/comment/order vont à COMPANY_EMAIL; confirmation va au client (to=...).
- Sélectionne le premier transport configuré (SendGrid -> SMTP -> Cloud Function -> EmailJS).
- Aucun transport: succès avec skipped=True (rien n'est envoyé).
- Échec du transport: NotifyResult(success=False, error=...) journalisé, jamais propagé.
- Chaque envoi réussi est conservé dans un historique borné (endpoint /_debug/sent-emails).
"""
import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Sequence

from storefront.errors import StorefrontError
from storefront.notifications.transports import EmailDraft
from storefront.utils.templates import templates

logger = logging.getLogger(__name__)

KINDS = ("newsletter", "comment", "order", "confirmation")
HISTORY_SIZE = 100


@dataclass(frozen=True)
class NotifyResult:
    success: bool
    message_id: Optional[str] = None
    skipped: bool = False
    transport: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class NotificationRecord:
    kind: str
    to: str
    subject: str
    transport: str
    message_id: Optional[str]
    sent_at: str
    order_id: Optional[str] = None


def render_subject(kind: str, payload: Dict[str, Any]) -> str:
    if kind == "newsletter":
        return "✨ New Newsletter Subscriber"
    if kind == "comment":
        return f"💬 New Comment from {payload.get('name') or 'Anonymous'}"
    if kind == "order":
        return f"🛒 New Order - ${float(payload.get('total') or 0):.2f}"
    if kind == "confirmation":
        return "Yaya Starchild - Order confirmation"
    raise ValueError(f"Unknown notification kind: {kind}")


def render_body(kind: str, payload: Dict[str, Any]) -> str:
    return templates.env.get_template(f"emails/{kind}.html").render(**payload)


class NotificationDispatcher:
    def __init__(self, transports: Sequence[Any], sender: str, default_recipient: str = ""):
        self._transports = list(transports)
        self._sender = sender
        self._default_recipient = default_recipient
        self._lock = threading.Lock()
        self._history: Deque[NotificationRecord] = deque(maxlen=HISTORY_SIZE)

    @property
    def transport_name(self) -> Optional[str]:
        return self._transports[0].name if self._transports else None

    def sent(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [asdict(r) for r in self._history]

    def notify(self, kind: str, payload: Dict[str, Any], to: Optional[str] = None) -> NotifyResult:
        """
        Envoie une notification du type donné.
        - to: destinataire (par défaut COMPANY_EMAIL)
        - payload: données du gabarit (emails/<kind>.html)
        Retour: NotifyResult; ne lève jamais pour une erreur de transport.
        """
        if kind not in KINDS:
            raise ValueError(f"Unknown notification kind: {kind}")
        recipient = to or self._default_recipient
        if not self._transports:
            logger.info("notifications.notify skipped kind=%s (no transport configured)", kind)
            return NotifyResult(success=True, skipped=True)
        if not recipient:
            logger.warning("notifications.notify skipped kind=%s (no recipient, set COMPANY_EMAIL)", kind)
            return NotifyResult(success=True, skipped=True)

        transport = self._transports[0]
        subject = render_subject(kind, payload)
        draft = EmailDraft(
            kind=kind,
            to=recipient,
            sender=self._sender,
            subject=subject,
            html=render_body(kind, payload),
            payload=payload,
            reply_to=payload.get("customer_email") or payload.get("email") or None,
        )
        try:
            outcome = transport.send(draft)
        except StorefrontError as e:
            logger.error("notifications.notify failed kind=%s transport=%s error=%s", kind, transport.name, e)
            return NotifyResult(success=False, transport=transport.name, error=str(e))

        if outcome.skipped:
            logger.info("notifications.notify kind=%s not supported by transport=%s", kind, transport.name)
            return NotifyResult(success=True, skipped=True, transport=transport.name)

        record = NotificationRecord(
            kind=kind,
            to=recipient,
            subject=subject,
            transport=transport.name,
            message_id=outcome.message_id,
            sent_at=datetime.now(timezone.utc).isoformat(),
            order_id=payload.get("order_id") or None,
        )
        with self._lock:
            self._history.append(record)
        logger.info("notifications.notify sent kind=%s transport=%s to=%s", kind, transport.name, recipient)
        return NotifyResult(success=True, message_id=outcome.message_id, transport=transport.name)
