"""
Gestionnaires d'exceptions.
- StorefrontError (et sous-classes): {"error": message}, statut de la classe.
  En production, seuls les messages « client » (ValidationError) sont exposés.
- RequestValidationError: 400 + {"errors": [...]} (forme historique des validations de requête).
- HTTPException: {"detail": ...} standard FastAPI.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.errors import StorefrontError

logger = logging.getLogger(__name__)


def error_message(exc: StorefrontError, production: bool) -> str:
    if exc.expose or not production:
        return exc.message
    return exc.public_message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        settings = getattr(request.app.state, "settings", None)
        production = bool(settings and settings.is_production)
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc, type(exc).__name__)
        return JSONResponse(status_code=exc.status_code, content={"error": error_message(exc, production)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"errors": jsonable_encoder(exc.errors())})

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
