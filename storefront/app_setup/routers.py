"""
Registre central des routers.
- Pages: /shop, /product/{id}, /order-confirmation/{id}
- API: catalogue, panier, checkout, intake des commandes, feed
- Health & debug
"""
from fastapi import FastAPI

from storefront.cart.views import router as cart_router
from storefront.catalog.views import api_router as catalog_api_router, web_router as catalog_web_router
from storefront.checkout.views import router as checkout_router
from storefront.feed.views import router as feed_router
from storefront.health.router import router as health_router
from storefront.orders.views import debug_router, router as orders_router


def register_routers(app: FastAPI) -> None:
    # Pages web (HTML)
    app.include_router(catalog_web_router)
    # API
    app.include_router(catalog_api_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(orders_router)
    app.include_router(feed_router)
    # Health & debug
    app.include_router(health_router)
    app.include_router(debug_router)
