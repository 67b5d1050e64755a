import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


def verify_recaptcha(secret: str, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
    """
    Vérifie un jeton reCAPTCHA auprès de Google (timeout 10s).
    - Réseau en échec ou réponse illisible -> False (journalisé).
    """
    data = {"secret": secret, "response": token or ""}
    if remote_ip:
        data["remoteip"] = remote_ip
    try:
        resp = requests.post(SITEVERIFY_URL, data=data, timeout=10)
        return bool(resp.json().get("success"))
    except (requests.RequestException, ValueError) as e:
        logger.warning("utils.recaptcha.verify failed: %s", e)
        return False
