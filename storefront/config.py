# storefront.config
"""
Configuration centrale du backend de la boutique.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Expose les chemins utiles (PACKAGE_DIR, TEMPLATES_DIR)
- Construit une seule fois un objet Settings (immuable) à partir de l'environnement;
  l'application le range dans app.state et le transmet aux services.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional
import os

from dotenv import load_dotenv

PACKAGE_DIR = Path(__file__).resolve().parent
BASE_DIR = PACKAGE_DIR.parent
ENV_PATH = BASE_DIR / ".env"
TEMPLATES_DIR = PACKAGE_DIR / "templates"

DEFAULT_CORS_ORIGINS = (
    "https://pastelpoetics.com,"
    "https://www.pastelpoetics.com,"
    "http://localhost:8080,"
    "http://localhost:3000,"
    "http://127.0.0.1:8080"
)
DEFAULT_PAYPAL_API_BASE = "https://api-m.sandbox.paypal.com"


def _clean_env(v: Optional[str]) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")


def _split_csv(v: str) -> List[str]:
    return [x.strip() for x in (v or "").split(",") if x.strip()]


def _flag(v: Optional[str]) -> bool:
    return (v or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Application
    environment: str = "development"
    site_url: str = "https://pastelpoetics.com"
    port: int = 4242
    log_level: str = "info"
    cors_origins: List[str] = field(default_factory=lambda: _split_csv(DEFAULT_CORS_ORIGINS))
    allowed_hosts: List[str] = field(default_factory=lambda: ["*"])
    session_secret_key: str = "replace_me_with_a_long_random_secret"
    cookie_secure: bool = False

    # Paiement
    payment_provider: str = "stripe"
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    paypal_client_id: str = ""
    paypal_secret: str = ""
    paypal_api_base: str = DEFAULT_PAYPAL_API_BASE

    # Persistance
    supabase_url: str = ""
    supabase_service_role: str = ""
    firebase_service_account: str = ""
    firebase_service_account_path: str = ""

    # E-mail
    company_email: str = ""
    email_from: str = ""
    sendgrid_api_key: str = ""
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    cloud_function_url: str = ""
    cloud_function_api_key: str = ""
    emailjs_service_id: str = ""
    emailjs_template_id: str = ""
    emailjs_user_id: str = ""
    emailjs_access_token: str = ""

    # Anti-spam / rate limiting
    recaptcha_secret: str = ""
    rate_limit_redis_url: str = "redis://127.0.0.1:6379/0"
    disable_rate_limiter: bool = False
    use_fake_redis: bool = False
    local_rate_limit_fallback: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role)

    @property
    def firebase_configured(self) -> bool:
        return bool(self.firebase_service_account or self.firebase_service_account_path)

    @property
    def sender(self) -> str:
        return self.email_from or self.smtp_user or "no-reply@pastelpoetics.com"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Construit Settings depuis un mapping (os.environ par défaut).
    - Charge .env uniquement quand aucun mapping explicite n'est fourni.
    - Normalise SUPABASE_URL (schéma https://, pas de slash final).
    - COMPANY_EMAIL retombe sur EMAIL_TO puis SMTP_USER (comportement historique).
    """
    if env is None:
        load_dotenv(dotenv_path=ENV_PATH, override=False)
        env = os.environ

    def get(name: str, default: str = "") -> str:
        return _clean_env(env.get(name)) or default

    supabase_url = get("SUPABASE_URL")
    if supabase_url and not supabase_url.startswith("http"):
        supabase_url = "https://" + supabase_url
    supabase_url = supabase_url.rstrip("/")

    smtp_user = get("SMTP_USER")

    return Settings(
        environment=get("ENVIRONMENT", "development"),
        site_url=get("SITE_URL", "https://pastelpoetics.com").rstrip("/"),
        port=int(get("PORT", "4242")),
        log_level=get("LOG_LEVEL", "info").lower(),
        cors_origins=_split_csv(get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)),
        allowed_hosts=_split_csv(get("ALLOWED_HOSTS", "*")),
        session_secret_key=get("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret"),
        cookie_secure=_flag(env.get("COOKIE_SECURE")),
        payment_provider=get("PAYMENT_PROVIDER", "stripe").lower(),
        stripe_secret_key=get("STRIPE_SECRET_KEY") or get("STRIPE_SECRET"),
        stripe_webhook_secret=get("STRIPE_WEBHOOK_SECRET"),
        paypal_client_id=get("PAYPAL_CLIENT_ID"),
        paypal_secret=get("PAYPAL_SECRET"),
        paypal_api_base=get("PAYPAL_API_BASE", DEFAULT_PAYPAL_API_BASE).rstrip("/"),
        supabase_url=supabase_url,
        supabase_service_role=get("SUPABASE_SERVICE_ROLE"),
        firebase_service_account=get("FIREBASE_SERVICE_ACCOUNT"),
        firebase_service_account_path=get("FIREBASE_SERVICE_ACCOUNT_PATH"),
        company_email=get("COMPANY_EMAIL") or get("EMAIL_TO") or smtp_user,
        email_from=get("EMAIL_FROM"),
        sendgrid_api_key=get("SENDGRID_API_KEY"),
        smtp_host=get("SMTP_HOST"),
        smtp_port=int(get("SMTP_PORT", "587")),
        smtp_user=smtp_user,
        smtp_pass=get("SMTP_PASS"),
        cloud_function_url=get("CLOUD_FUNCTION_URL"),
        cloud_function_api_key=get("CLOUD_FUNCTION_API_KEY"),
        emailjs_service_id=get("EMAILJS_SERVICE_ID"),
        emailjs_template_id=get("EMAILJS_TEMPLATE_ID"),
        emailjs_user_id=get("EMAILJS_USER_ID"),
        emailjs_access_token=get("EMAILJS_ACCESS_TOKEN"),
        recaptcha_secret=get("RECAPTCHA_SECRET"),
        rate_limit_redis_url=get("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0"),
        disable_rate_limiter=_flag(env.get("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")),
        use_fake_redis=_flag(env.get("USE_FAKE_REDIS_FOR_TESTS")),
        local_rate_limit_fallback=_flag(env.get("LOCAL_RATE_LIMIT_FALLBACK")),
    )
