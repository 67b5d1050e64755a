"""
ASGI entrypoint: expose `app` pour les gestionnaires de processus.

- En production: `uvicorn storefront.asgi:app` (ou gunicorn -k uvicorn.workers.UvicornWorker).
- Toute la configuration (routes, middlewares, services) est centralisée dans storefront.app.
"""

from storefront.app import create_app

# App globale
app = create_app()
