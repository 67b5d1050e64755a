"""
Transports d'e-mail, du plus direct au plus indirect:
- SendGridTransport: API v3 /mail/send (Bearer)
- SmtpTransport: smtplib + STARTTLS
- CloudFunctionTransport: POST {type, data} vers la fonction send-email (elle rend son propre gabarit)
- EmailJsTransport: API REST EmailJS (uniquement newsletter / order)
Chaque transport lève NetworkError / ProviderError; le dispatcher les convertit en NotifyResult.
"""
import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Dict, List, Optional

import requests

from storefront.config import Settings
from storefront.errors import NetworkError, ProviderError

logger = logging.getLogger(__name__)

TIMEOUT = 10
SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"
EMAILJS_URL = "https://api.emailjs.com/api/v1.0/email/send"


@dataclass
class EmailDraft:
    kind: str
    to: str
    sender: str
    subject: str
    html: str
    payload: Dict[str, Any] = field(default_factory=dict)
    reply_to: Optional[str] = None


@dataclass
class SendOutcome:
    message_id: Optional[str] = None
    skipped: bool = False


def _post_json(url: str, *, json: Dict[str, Any], headers: Optional[Dict[str, str]] = None, provider: str):
    try:
        resp = requests.post(url, json=json, headers=headers or {}, timeout=TIMEOUT)
    except requests.RequestException as e:
        raise NetworkError(f"{provider} unreachable: {e}", provider=provider) from e
    if resp.status_code >= 400:
        raise ProviderError(f"{provider} rejected message: HTTP {resp.status_code} {resp.text[:200]}", provider=provider)
    return resp


class SendGridTransport:
    name = "sendgrid"

    def __init__(self, api_key: str):
        self._api_key = api_key

    def send(self, draft: EmailDraft) -> SendOutcome:
        body: Dict[str, Any] = {
            "personalizations": [{"to": [{"email": draft.to}]}],
            "from": {"email": draft.sender},
            "subject": draft.subject,
            "content": [{"type": "text/html", "value": draft.html}],
        }
        if draft.reply_to:
            body["reply_to"] = {"email": draft.reply_to}
        resp = _post_json(
            SENDGRID_URL,
            json=body,
            headers={"Authorization": f"Bearer {self._api_key}"},
            provider=self.name,
        )
        return SendOutcome(message_id=resp.headers.get("X-Message-Id"))


class SmtpTransport:
    name = "smtp"

    def __init__(self, host: str, port: int, user: str = "", password: str = ""):
        self._host = host
        self._port = port
        self._user = user
        self._password = password

    def send(self, draft: EmailDraft) -> SendOutcome:
        msg = EmailMessage()
        msg["Subject"] = draft.subject
        msg["From"] = draft.sender
        msg["To"] = draft.to
        if draft.reply_to:
            msg["Reply-To"] = draft.reply_to
        message_id = make_msgid(domain=draft.sender.split("@")[-1] or None)
        msg["Message-ID"] = message_id
        msg.set_content("This message requires an HTML-capable e-mail client.")
        msg.add_alternative(draft.html, subtype="html")
        # 465: TLS implicite; 587: STARTTLS
        smtp_class = smtplib.SMTP_SSL if self._port == 465 else smtplib.SMTP
        try:
            with smtp_class(self._host, self._port, timeout=TIMEOUT) as smtp:
                if self._port == 587:
                    smtp.starttls()
                if self._user and self._password:
                    smtp.login(self._user, self._password)
                smtp.send_message(msg)
        except smtplib.SMTPException as e:
            raise ProviderError(f"SMTP error: {e}", provider=self.name) from e
        except OSError as e:
            raise NetworkError(f"SMTP unreachable: {e}", provider=self.name) from e
        return SendOutcome(message_id=message_id)


# La fonction send-email attend des clés camelCase
_CLOUD_FIELDS = {
    "customer_name": "customerName",
    "customer_email": "customerEmail",
    "shipping_address": "shippingAddress",
}


class CloudFunctionTransport:
    name = "cloud_function"
    # La fonction envoie toujours à la boutique: pas de confirmation client
    SUPPORTED_KINDS = ("newsletter", "comment", "order")

    def __init__(self, url: str, api_key: str = ""):
        self._url = url
        self._api_key = api_key

    def send(self, draft: EmailDraft) -> SendOutcome:
        if draft.kind not in self.SUPPORTED_KINDS:
            return SendOutcome(skipped=True)
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        data = {_CLOUD_FIELDS.get(k, k): v for k, v in draft.payload.items()}
        resp = _post_json(self._url, json={"type": draft.kind, "data": data}, headers=headers, provider=self.name)
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if body.get("success") is False:
            raise ProviderError(f"cloud function failed: {body.get('error') or 'unknown error'}", provider=self.name)
        return SendOutcome(message_id=body.get("messageId"))


class EmailJsTransport:
    name = "emailjs"
    # Le gabarit EmailJS du site ne couvre que ces deux types
    SUPPORTED_KINDS = ("newsletter", "order")

    def __init__(self, service_id: str, template_id: str, user_id: str, access_token: str = ""):
        self._service_id = service_id
        self._template_id = template_id
        self._user_id = user_id
        self._access_token = access_token

    def send(self, draft: EmailDraft) -> SendOutcome:
        if draft.kind not in self.SUPPORTED_KINDS:
            return SendOutcome(skipped=True)
        body: Dict[str, Any] = {
            "service_id": self._service_id,
            "template_id": self._template_id,
            "user_id": self._user_id,
            "template_params": {
                "to_email": draft.to,
                "subject": draft.subject,
                "message_html": draft.html,
                "notification_type": draft.kind,
                **{k: v for k, v in draft.payload.items() if isinstance(v, (str, int, float))},
            },
        }
        if self._access_token:
            body["accessToken"] = self._access_token
        _post_json(EMAILJS_URL, json=body, provider=self.name)
        return SendOutcome(message_id=None)


def build_transports(settings: Settings) -> List[Any]:
    """
    Transports configurés, dans l'ordre de préférence:
    SendGrid -> SMTP -> Cloud Function -> EmailJS.
    """
    transports: List[Any] = []
    if settings.sendgrid_api_key:
        transports.append(SendGridTransport(settings.sendgrid_api_key))
    if settings.smtp_host:
        transports.append(SmtpTransport(settings.smtp_host, settings.smtp_port, settings.smtp_user, settings.smtp_pass))
    if settings.cloud_function_url:
        transports.append(CloudFunctionTransport(settings.cloud_function_url, settings.cloud_function_api_key))
    if settings.emailjs_service_id and settings.emailjs_template_id and settings.emailjs_user_id:
        transports.append(EmailJsTransport(
            settings.emailjs_service_id,
            settings.emailjs_template_id,
            settings.emailjs_user_id,
            settings.emailjs_access_token,
        ))
    return transports
