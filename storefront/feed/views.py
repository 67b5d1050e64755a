from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.errors import ValidationError
from storefront.services import Services, get_services
from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.recaptcha import verify_recaptcha

router = APIRouter(tags=["Feed"])


class NewsletterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    recaptcha: Optional[str] = Field(default=None, alias="g-recaptcha-response")
    source: str = "website"


class CommentRequest(BaseModel):
    name: str = Field(min_length=1)
    text: str = Field(min_length=1)
    email: Optional[EmailStr] = None


def _check_recaptcha(request: Request, services: Services, token: Optional[str]) -> None:
    """Vérifie reCAPTCHA si RECAPTCHA_SECRET et un jeton (corps ou en-tête x-recaptcha-token) sont présents."""
    secret = services.settings.recaptcha_secret
    token = token or request.headers.get("x-recaptcha-token")
    if not secret or not token:
        return
    remote_ip = request.client.host if request.client else None
    if not verify_recaptcha(secret, token, remote_ip):
        raise ValidationError("recaptcha verification failed")


@router.post("/newsletter", dependencies=[Depends(optional_rate_limit(60, 60))])
def subscribe_newsletter(payload: NewsletterRequest, request: Request, services: Services = Depends(get_services)):
    _check_recaptcha(request, services, payload.recaptcha)
    services.feed.subscribe(str(payload.email), source=payload.source)
    return {"ok": True}


@router.get("/comments")
def list_comments(services: Services = Depends(get_services)):
    return services.feed.list_comments(50)


@router.post("/comments", dependencies=[Depends(optional_rate_limit(60, 60))])
def add_comment(payload: CommentRequest, services: Services = Depends(get_services)):
    services.feed.add_comment(payload.name, payload.text, email=str(payload.email or ""))
    return {"ok": True}
