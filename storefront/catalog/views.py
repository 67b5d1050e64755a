from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse

from storefront.cart.views import cart_store
from storefront.catalog.products import PRODUCTS, get_product_by_id
from storefront.catalog.render import render_product_detail, render_products_grid
from storefront.services import Services, get_services
from storefront.utils.templates import templates

# API JSON du catalogue
api_router = APIRouter(prefix="/products", tags=["Catalog"])
# Pages HTML
web_router = APIRouter(tags=["Pages"])


@api_router.get("")
def list_products() -> List[Dict[str, Any]]:
    return [p.to_dict() for p in PRODUCTS]


@api_router.get("/{product_id}")
def get_product(product_id: int) -> Dict[str, Any]:
    product = get_product_by_id(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product.to_dict()


@web_router.get("/shop", response_class=HTMLResponse)
def shop_page(request: Request):
    return templates.TemplateResponse(
        request,
        "pages/shop.html",
        {"grid": render_products_grid(), "cart_count": cart_store(request).count()},
    )


@web_router.get("/product/{product_id}", response_class=HTMLResponse)
def product_page(product_id: str, request: Request, services: Services = Depends(get_services)):
    """
    Fiche produit. Un id inconnu ou illisible affiche "Product not found" (404).
    """
    product = get_product_by_id(product_id)
    detail = render_product_detail(product, services.settings.site_url)
    return templates.TemplateResponse(
        request,
        "pages/product.html",
        {"product": product, "detail": detail, "cart_count": cart_store(request).count()},
        status_code=200 if product else 404,
    )
