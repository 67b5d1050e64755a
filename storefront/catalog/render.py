"""
Rendu HTML du catalogue (fragments Jinja2, sans état).
"""
from typing import Any, Dict, Iterable, Optional

from storefront.catalog.products import PRODUCTS, Product
from storefront.utils.templates import templates

# Seul le recueil de poèmes publie des données structurées schema.org/Book
BOOK_PRODUCT_ID = 1


def book_json_ld(product: Product, site_url: str) -> Dict[str, Any]:
    return {
        "@context": "https://schema.org",
        "@type": "Book",
        "name": "Suncatcher Spirit",
        "author": {"@type": "Person", "name": "Yaya Starchild"},
        "datePublished": "2025-10-25",
        "description": product.description,
        "image": f"{site_url.rstrip('/')}/{product.image}",
    }


def render_products_grid(products: Iterable[Product] = PRODUCTS) -> str:
    """
    Une carte par produit: image, titre, 80 premiers caractères de la description + "...", prix formaté.
    """
    return templates.env.get_template("catalog/grid.html").render(products=list(products))


def render_product_detail(product: Optional[Product], site_url: str = "") -> str:
    """
    Fiche produit complète, ou le message "Product not found" si product est None.
    Ajoute le JSON-LD Book pour le produit id=1.
    """
    json_ld = None
    if product is not None and product.id == BOOK_PRODUCT_ID:
        json_ld = book_json_ld(product, site_url)
    return templates.env.get_template("catalog/product.html").render(product=product, json_ld=json_ld)
