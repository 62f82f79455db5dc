from datetime import datetime
from pydantic import Field

from storefront.schemas.common import CamelModel
from storefront.schemas.product import Product


class CategoryBase(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    icon: str = Field(default="Gift", max_length=50)


class CategoryCreate(CategoryBase):
    id: str | None = Field(default=None, max_length=100)  # Derived from name when absent


class CategoryUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    icon: str | None = Field(default=None, min_length=1, max_length=50)


class Category(CategoryBase):
    id: str
    created_at: datetime | None = None


class CategoryWithProducts(Category):
    products: list[Product] = []
