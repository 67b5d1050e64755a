"""
Middlewares transverses de l'application.
- register_basic_middlewares: session (panier), CORS, TrustedHost.
- register_security_middleware: en-têtes de sécurité et CSP (Stripe, PayPal, reCAPTCHA autorisés).
- register_no_cache_middleware: empêche la mise en cache de /cart, /checkout et /_debug.
- register_request_logging_middleware: une ligne de log par requête (méthode, chemin, statut, durée).
"""
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from storefront.config import Settings

logger = logging.getLogger("storefront.access")

SESSION_COOKIE_NAME = "yaya_session"
NO_CACHE_PREFIXES = ("/cart", "/checkout", "/_debug")


def register_basic_middlewares(app: FastAPI, settings: Settings) -> None:
    """
    Ajoute les middlewares « de base »:
    - SessionMiddleware: cookie signé portant le panier (clé yaya_cart_v1).
    - CORSMiddleware: origines du site (pastelpoetics.com, localhost de dev).
    - TrustedHostMiddleware: limite les hôtes acceptés (ALLOWED_HOSTS, "*" par défaut).
    """
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie=SESSION_COOKIE_NAME,
        same_site="lax",
        https_only=settings.cookie_secure,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts or ["*"])


def register_security_middleware(app: FastAPI, settings: Settings) -> None:
    script_sources = ["https://js.stripe.com", "https://www.paypal.com", "https://www.google.com", "https://www.gstatic.com"]
    connect_sources = ["'self'", "https://api.stripe.com", "https://api.emailjs.com"]
    if settings.supabase_url:
        connect_sources.append(settings.supabase_url)
    csp = (
        "default-src 'self'; "
        "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
        "img-src 'self' data: https:; "
        "style-src 'self' 'unsafe-inline' https://cdnjs.cloudflare.com https://fonts.googleapis.com; "
        "font-src 'self' data: https://fonts.gstatic.com https://cdnjs.cloudflare.com; "
        f"script-src 'self' 'unsafe-inline' {' '.join(script_sources)}; "
        "frame-src https://js.stripe.com https://www.paypal.com https://www.google.com; "
        f"connect-src {' '.join(connect_sources)}"
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        if "X-Frame-Options" not in response.headers:
            response.headers["X-Frame-Options"] = "DENY"
        if "X-Content-Type-Options" not in response.headers:
            response.headers["X-Content-Type-Options"] = "nosniff"
        if "Referrer-Policy" not in response.headers:
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.cookie_secure and "Strict-Transport-Security" not in response.headers:
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        response.headers["Content-Security-Policy"] = csp
        return response


def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_cart(request: Request, call_next):
        response = await call_next(request)
        if request.method == "GET" and request.url.path.startswith(NO_CACHE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response


def register_request_logging_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response
