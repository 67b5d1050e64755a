# module storefront.utils.templates
from fastapi.templating import Jinja2Templates

from storefront.catalog.products import format_price
from storefront.config import TEMPLATES_DIR

# Instance unique: pages HTML (catalogue, confirmation) et gabarits d'e-mails
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["price"] = format_price
