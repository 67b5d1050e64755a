# module storefront.app
import logging
from typing import Optional

from fastapi import FastAPI

from storefront import __version__
from storefront.app_setup.exceptions import register_exception_handlers
from storefront.app_setup.lifespan import lifespan
from storefront.app_setup.middlewares import (
    register_basic_middlewares,
    register_no_cache_middleware,
    register_request_logging_middleware,
    register_security_middleware,
)
from storefront.app_setup.routers import register_routers
from storefront.app_setup.routes import register_routes
from storefront.config import Settings, load_settings
from storefront.services import Services, build_services


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Crée et configure l'instance FastAPI de la boutique.
    Étapes:
      1) Settings (environnement / .env) et Services construits une seule fois, rangés dans app.state.
      2) register_basic_middlewares: session (panier), CORS, TrustedHost.
      3) register_security_middleware / register_no_cache_middleware / journal des requêtes.
      4) register_exception_handlers: StorefrontError -> {"error": ...}, validation -> 400.
      5) register_routes + register_routers.
    Retourne:
      - FastAPI: l'application prête à être servie (ASGI).
    """
    settings = settings or (services.settings if services else load_settings())
    logging.getLogger("storefront").setLevel(settings.log_level.upper())
    services = services or build_services(settings)

    app = FastAPI(title="Pastel Poetics Storefront", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    register_basic_middlewares(app, settings)
    register_security_middleware(app, settings)
    register_no_cache_middleware(app)
    register_request_logging_middleware(app)
    register_exception_handlers(app)
    register_routes(app)
    register_routers(app)
    return app
