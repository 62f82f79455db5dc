from storefront.schemas.common import CreatedResponse, MessageResponse
from storefront.schemas.category import Category, CategoryCreate, CategoryUpdate, CategoryWithProducts
from storefront.schemas.product import (
    Product,
    ProductWithCategory,
    ProductCreateForm,
    ProductUpdateForm,
)
from storefront.schemas.lead import Lead, LeadCreate
from storefront.schemas.quote import QuoteRequest, QuoteCreate, QuoteItem, QuoteItemCreate

__all__ = [
    "CreatedResponse", "MessageResponse",
    "Category", "CategoryCreate", "CategoryUpdate", "CategoryWithProducts",
    "Product", "ProductWithCategory", "ProductCreateForm", "ProductUpdateForm",
    "Lead", "LeadCreate",
    "QuoteRequest", "QuoteCreate", "QuoteItem", "QuoteItemCreate",
]
