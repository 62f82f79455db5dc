from datetime import datetime
from decimal import Decimal
from pydantic import Field, field_validator

from storefront.schemas.common import CamelModel


def _parse_quantity(value):
    """Quantities fall back to 1 when missing or unparseable."""
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 1
    return quantity if quantity >= 1 else 1


def _parse_tags(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(tag).strip() for tag in value if str(tag).strip()]


class ProductBase(CamelModel):
    name: str
    description: str | None = None
    price: float
    image: str | None = None
    category_id: str
    in_stock: bool = True
    default_quantity: int = 1
    tags: list[str] = []


class Product(ProductBase):
    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CategoryRef(CamelModel):
    id: str
    name: str
    description: str | None = None
    icon: str


class ProductWithCategory(Product):
    category: CategoryRef | None = None


class ProductCreateForm(CamelModel):
    """Multipart fields for a new product (the image file is handled separately)."""
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    category_id: str = Field(min_length=1)
    in_stock: bool = True
    default_quantity: int = 1
    tags: list[str] = []

    @field_validator("default_quantity", mode="before")
    @classmethod
    def fallback_quantity(cls, value):
        return _parse_quantity(value)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return _parse_tags(value)


class ProductUpdateForm(CamelModel):
    """Multipart fields for a partial product update; absent fields are left unchanged."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    category_id: str | None = Field(default=None, min_length=1)
    in_stock: bool | None = None
    default_quantity: int | None = None
    tags: list[str] | None = None

    @field_validator("default_quantity", mode="before")
    @classmethod
    def fallback_quantity(cls, value):
        if value is None:
            return None
        return _parse_quantity(value)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        if value is None:
            return None
        return _parse_tags(value)
