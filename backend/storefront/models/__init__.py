from storefront.models.category import Category
from storefront.models.product import Product, ProductTag
from storefront.models.lead import Lead
from storefront.models.quote import QuoteRequest, QuoteItem

__all__ = [
    "Category",
    "Product",
    "ProductTag",
    "Lead",
    "QuoteRequest",
    "QuoteItem",
]
