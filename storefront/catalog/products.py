# module storefront.catalog.products
"""
Catalogue statique de la boutique (5 articles).
Les prix sont des Decimal: ils servent de source de vérité pour le panier et les sessions de paiement.
"""
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Product:
    id: int
    title: str
    price: Decimal
    description: str
    images: Tuple[str, ...] = field(default_factory=tuple)
    # Icône Font Awesome affichée devant le titre sur les pages HTML
    icon: str = ""

    @property
    def image(self) -> str:
        return self.images[0] if self.images else ""

    @property
    def price_cents(self) -> int:
        return int((self.price * 100).to_integral_value())

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "price": float(self.price),
            "description": self.description,
            "images": list(self.images),
        }


PRODUCTS: List[Product] = [
    Product(
        id=1,
        title="Suncatcher Spirit (Signed Edition)",
        price=Decimal("19.99"),
        description=(
            "The debut poetry collection by Yaya Starchild — 64 pages of luminous verses exploring love, loss, "
            "resilience, and present-moment magic. This signed limited edition includes a handwritten blessing "
            "and arrives wrapped in tissue paper. Each copy numbered and touched by magic. "
            "ISBN: 979-8-9999322-0-4 | Published by Pastel Poetics | October 25, 2025"
        ),
        images=("assets/suncatcher-cover.jpg",),
        icon="fa-crown",
    ),
    Product(
        id=2,
        title="Suncatcher Spirit (Paperback)",
        price=Decimal("19.99"),
        description=(
            "Softcover paperback edition — 64 pages of poetry perfect for bedside reading, carrying in your bag, "
            "or gifting to a friend who needs reminding of their light. Printed on cream-colored pages that feel "
            "gentle in your hands. ISBN: 979-8-9999322-0-4"
        ),
        images=("assets/suncatcher-cover.jpg",),
        icon="fa-book",
    ),
    Product(
        id=3,
        title="Suncatcher Sticker Pack",
        price=Decimal("6.50"),
        description=(
            "A set of 6 waterproof pastel stickers featuring line art from the book — moons, stars, and tiny "
            "spells. Perfect for laptops, journals, water bottles, or anywhere you want to leave a trail of magic."
        ),
        images=("assets/sticker.jpg",),
        icon="fa-sparkles",
    ),
    Product(
        id=4,
        title="Enchanted Tote Bag",
        price=Decimal("22.00"),
        description=(
            "Organic cotton tote printed with a poem excerpt in ethereal script. Spacious enough for books, "
            "groceries, or all your small treasures. Each bag is hand-pressed with eco-friendly ink and comes "
            "with a surprise bookmark tucked inside."
        ),
        images=("assets/tote.jpg",),
        icon="fa-bag-shopping",
    ),
    Product(
        id=5,
        title="Signed Poem Print",
        price=Decimal("15.00"),
        description=(
            "8x10 inch signed poem print on thick, textured paper. Each print features a different poem from "
            "Suncatcher Spirit, hand-signed by Yaya. Frame it, gift it, or tuck it somewhere you'll see it every "
            "morning. Available in 3 designs (randomly selected with love)."
        ),
        images=("assets/print.jpg",),
        icon="fa-image",
    ),
]

_BY_ID: Dict[int, Product] = {p.id: p for p in PRODUCTS}


def get_product_by_id(product_id: Union[int, str, None]) -> Optional[Product]:
    """Recherche par id; accepte un entier ou sa forme texte ("3"). None si inconnu ou illisible."""
    try:
        return _BY_ID.get(int(product_id))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def format_price(value: Union[Decimal, float, int]) -> str:
    """Formate un montant en dollars avec deux décimales: 19.99 -> "$19.99"."""
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"${amount:.2f}"
